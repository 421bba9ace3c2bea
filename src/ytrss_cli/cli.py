"""CLI entry point for ytrss.

This module handles command-line argument parsing, logging setup, the
one-shot subcommands, and launching the TUI when no subcommand is given.
"""

from __future__ import annotations

import argparse
import getpass
import json
import logging
import logging.handlers
import queue
import sys
from datetime import UTC, datetime
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .client import APIClient
from .config import Config, load_config
from .credentials import CredentialStore
from .downloads import download_job, open_downloads_folder
from .exceptions import YtrssError
from .models import sort_jobs_newest_first
from .tui.executor import CommandExecutor, run_until_idle
from .tui.messages import Message, PollResult
from .tui.models import AppState, PollOutcome
from .tui.transitions import StateMachine
from .tui.tui_utils import format_bytes, format_created, get_status_badge

logger = logging.getLogger(__name__)


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log line
        """
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "event": record.getMessage(),
            "context": {
                "module": record.module,
                "function": record.funcName,
                "line": record.lineno,
            },
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra context from record if present
        if hasattr(record, "extra_context"):
            log_data["context"].update(record.extra_context)

        return json.dumps(log_data, default=str)


def _setup_logging(log_file: Path, debug: bool) -> None:
    """Setup structured JSON logging to file.

    Args:
        log_file: Path to log file
        debug: Enable debug level logging
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Create rotating file handler (10MB max, 3 backups)
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(JSONFormatter())
    file_handler.setLevel(logging.DEBUG if debug else logging.INFO)

    root_logger.addHandler(file_handler)

    # httpx logs every request at INFO; keep it out of the file unless debugging.
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)

    logger.info(
        "Logging initialized",
        extra={"extra_context": {"log_file": str(log_file), "debug": debug}},
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ytrss",
        description=(
            "A CLI to interact with the yt-rss service. Convert YouTube videos to "
            "audio and add them to your private podcast feeds."
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.json (default: ~/.config/ytrss-cli/config.json)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    auth = subparsers.add_parser("auth", help="Authenticate with the yt-rss service")
    auth.add_argument("--key", help="API key (prompted for when omitted)")
    auth.add_argument("--clear", action="store_true", help="Remove the stored API key")

    subparsers.add_parser("usage", help="Display API usage")
    subparsers.add_parser("jobs", help="List all jobs")

    create = subparsers.add_parser("create", help="Create a conversion job")
    create.add_argument("url", help="Video URL to convert")

    add = subparsers.add_parser("add", help="Add a URL to a podcast and wait for it")
    add.add_argument("url", help="Video URL to add")
    add.add_argument("--podcast", required=True, metavar="ID", help="Podcast id")
    add.add_argument(
        "--no-wait", action="store_true", help="Return after queueing instead of polling"
    )

    download = subparsers.add_parser(
        "download", help="Download the audio file for a completed job"
    )
    download.add_argument("job_id", help="Job id")

    subparsers.add_parser("open", help="Open the downloads directory")

    return parser


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments
    """
    return _build_parser().parse_args(argv)


# Subcommands


def _cmd_auth(args: argparse.Namespace, credentials: CredentialStore, console: Console) -> int:
    if args.clear:
        credentials.clear()
        console.print("[green]API key removed[/green]")
        return 0

    api_key = args.key
    if api_key is None:
        api_key = getpass.getpass("Please enter your API key: ")
    if not api_key.strip():
        console.print("[yellow]No API key entered.[/yellow]")
        return 1

    credentials.set_api_key(api_key)
    console.print("[green]✓ API key saved successfully![/green]")
    return 0


def _cmd_usage(client: APIClient, console: Console) -> int:
    usage = client.get_usage()
    console.print(f"Usage: {format_bytes(usage.used)} / {format_bytes(usage.limit)}")
    return 0


def _cmd_jobs(client: APIClient, console: Console) -> int:
    jobs = sort_jobs_newest_first(client.list_jobs())
    if not jobs:
        console.print("No jobs found.")
        return 0

    table = Table(title="Jobs", header_style="bold #7D56F4")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title / URL")
    table.add_column("Status", no_wrap=True)
    table.add_column("Created", no_wrap=True)
    for job in jobs:
        symbol, label, color = get_status_badge(job.status)
        table.add_row(
            job.id,
            job.title or job.url,
            f"[{color}]{symbol} {label}[/{color}]",
            format_created(job.created),
        )
    console.print(table)
    return 0


def _cmd_create(args: argparse.Namespace, client: APIClient, console: Console) -> int:
    client.create_jobs(args.url)
    console.print("[green]Job created successfully![/green]")
    return 0


def _cmd_add(
    args: argparse.Namespace,
    config: Config,
    client: APIClient,
    credentials: CredentialStore,
    console: Console,
) -> int:
    item = client.add_url_to_podcast(args.podcast, args.url)
    console.print(f"Successfully added URL to podcast. Item: {item.id}")
    if args.no_wait:
        return 0

    # Reuse the TUI's transition rules without the worker thread.
    app_state = AppState()
    machine = StateMachine(app_state, credentials, poll_interval=config.poll_interval_seconds)
    executor = CommandExecutor(client, config.downloads_dir, queue.Queue())

    def _report(message: Message) -> None:
        if isinstance(message, PollResult) and message.item is not None:
            symbol, label, color = get_status_badge(message.item.status)
            console.print(f"Status: [{color}]{symbol} {label}[/{color}]")

    with console.status(f"Polling item {item.id}..."):
        run_until_idle(machine.handle_message, executor, machine.start_polling(item), _report)

    session = app_state.polling
    assert session is not None
    if session.outcome is PollOutcome.SUCCEEDED:
        console.print(f"[green]{session.done_message}[/green]")
        return 0

    console.print(f"[red]{session.done_message}[/red]")
    if session.error:
        console.print(f"[red]Error polling: {session.error}[/red]")
    return 1


def _cmd_download(
    args: argparse.Namespace, config: Config, client: APIClient, console: Console
) -> int:
    console.print("Downloading audio...")
    path = download_job(client, args.job_id, config.downloads_dir)
    console.print(f"[green]Successfully downloaded audio to: {path}[/green]")
    return 0


def _cmd_open(config: Config, console: Console) -> int:
    path = open_downloads_folder(config.downloads_dir)
    console.print(f"Opened {path}")
    return 0


def _run_command(
    args: argparse.Namespace, config: Config, credentials: CredentialStore, console: Console
) -> int:
    if args.command == "auth":
        return _cmd_auth(args, credentials, console)
    if args.command == "open":
        return _cmd_open(config, console)

    with APIClient(
        config.base_url, credentials, timeout=config.request_timeout_seconds
    ) as client:
        if args.command == "usage":
            return _cmd_usage(client, console)
        if args.command == "jobs":
            return _cmd_jobs(client, console)
        if args.command == "create":
            return _cmd_create(args, client, console)
        if args.command == "add":
            return _cmd_add(args, config, client, credentials, console)
        if args.command == "download":
            return _cmd_download(args, config, client, console)

    console.print(f"[red]Unknown command: {args.command}[/red]")
    return 1


def _run_tui(config: Config, credentials: CredentialStore) -> int:
    # Imported here so one-shot commands do not pay for termios/Live setup.
    from .tui.app import TUIApp

    with APIClient(
        config.base_url, credentials, timeout=config.request_timeout_seconds
    ) as client:
        app = TUIApp(config, client, credentials)
        return app.run()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for ytrss.

    Returns:
        Exit code (0=success, 1=error, 130=interrupted)
    """
    args = _parse_args(argv)
    console = Console()

    try:
        config = load_config(args.config.resolve() if args.config else None)
    except YtrssError as err:
        console.print(f"[red]Error loading config: {err}[/red]")
        return 1

    _setup_logging(config.log_file, args.debug)
    logger.info(
        "ytrss starting",
        extra={"extra_context": {"command": args.command, "base_url": config.base_url}},
    )

    credentials = CredentialStore()

    try:
        if args.command is None:
            exit_code = _run_tui(config, credentials)
        else:
            exit_code = _run_command(args, config, credentials, console)
    except KeyboardInterrupt:
        console.print("\nAborted by user.")
        logger.info("Interrupted by user")
        return 130
    except YtrssError as err:
        console.print(f"[red]Error: {err}[/red]")
        logger.error(
            "Command failed",
            extra={"extra_context": {"command": args.command, "error": str(err)}},
        )
        return 1

    logger.info("ytrss exited", extra={"extra_context": {"exit_code": exit_code}})
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
