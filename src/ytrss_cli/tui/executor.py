"""Background execution of UI commands.

This module runs the HTTP work requested by the state machine on a single
worker thread and publishes one result message per command to a queue for
the main thread. The poll timer lives here too: a PollItem command waits its
delay on the stop event before fetching, so shutdown never waits out a full
interval.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable, Iterable
from pathlib import Path

from ..client import APIClient
from ..downloads import download_job, open_downloads_folder
from ..exceptions import YtrssError
from .messages import (
    AddUrl,
    Cancelled,
    Command,
    CreateJob,
    DownloadFinished,
    DownloadJob,
    DownloadsOpened,
    FetchJobs,
    FetchPodcasts,
    FetchUsage,
    JobCreated,
    JobsLoaded,
    Message,
    OpenDownloads,
    PodcastsLoaded,
    PollItem,
    PollResult,
    UrlAdded,
    UsageLoaded,
)

logger = logging.getLogger(__name__)


class CommandExecutor:
    """Worker thread that executes commands one at a time.

    The executor never touches AppState; results only reach the UI through
    ``update_queue``.
    """

    def __init__(
        self,
        client: APIClient,
        downloads_dir: Path,
        update_queue: queue.Queue[Message],
    ):
        """Initialize command executor.

        Args:
            client: API client used for every request
            downloads_dir: Directory finished downloads are written to
            update_queue: Queue to publish result messages to
        """
        self.client = client
        self.downloads_dir = downloads_dir
        self.update_queue = update_queue

        self._commands: queue.Queue[Command] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

        self._handlers: dict[type[Command], Callable[[Command], Message]] = {
            FetchUsage: self._fetch_usage,
            FetchPodcasts: self._fetch_podcasts,
            AddUrl: self._add_url,
            CreateJob: self._create_job,
            FetchJobs: self._fetch_jobs,
            PollItem: self._poll_item,
            DownloadJob: self._download_job,
            OpenDownloads: self._open_downloads,
        }

    # Command handlers

    def _fetch_usage(self, command: FetchUsage) -> Message:
        return UsageLoaded(usage=self.client.get_usage())

    def _fetch_podcasts(self, command: FetchPodcasts) -> Message:
        return PodcastsLoaded(podcasts=self.client.list_podcasts())

    def _add_url(self, command: AddUrl) -> Message:
        return UrlAdded(item=self.client.add_url_to_podcast(command.podcast_id, command.url))

    def _create_job(self, command: CreateJob) -> Message:
        self.client.create_jobs(command.url)
        return JobCreated(url=command.url)

    def _fetch_jobs(self, command: FetchJobs) -> Message:
        return JobsLoaded(jobs=self.client.list_jobs())

    def _poll_item(self, command: PollItem) -> Message:
        if self._stop_event.wait(command.delay):
            return Cancelled(command=command)
        item = self.client.poll_item(command.item_id)
        logger.debug(f"Polled item {item.id}: {item.status.value}")
        return PollResult(item_id=command.item_id, generation=command.generation, item=item)

    def _download_job(self, command: DownloadJob) -> Message:
        path = download_job(self.client, command.job_id, self.downloads_dir)
        return DownloadFinished(job_id=command.job_id, path=path)

    def _open_downloads(self, command: OpenDownloads) -> Message:
        return DownloadsOpened(path=open_downloads_folder(self.downloads_dir))

    @staticmethod
    def _error_message(command: Command, error: str) -> Message:
        """Build the failure message matching a command."""
        if isinstance(command, PollItem):
            return PollResult(item_id=command.item_id, generation=command.generation, error=error)
        if isinstance(command, FetchUsage):
            return UsageLoaded(error=error)
        if isinstance(command, FetchPodcasts):
            return PodcastsLoaded(error=error)
        if isinstance(command, AddUrl):
            return UrlAdded(error=error)
        if isinstance(command, CreateJob):
            return JobCreated(url=command.url, error=error)
        if isinstance(command, FetchJobs):
            return JobsLoaded(error=error)
        if isinstance(command, DownloadJob):
            return DownloadFinished(job_id=command.job_id, error=error)
        if isinstance(command, OpenDownloads):
            return DownloadsOpened(error=error)
        return Cancelled(command=command, error=error)

    def execute(self, command: Command) -> Message:
        """Run a single command synchronously and return its message.

        Failures are reported in the message's ``error`` field rather than
        raised.
        """
        handler = self._handlers.get(type(command))
        if handler is None:
            logger.error(f"No handler for command {type(command).__name__}")
            return Cancelled(command=command, error=f"Unsupported command {command!r}")

        try:
            return handler(command)
        except YtrssError as err:
            logger.warning(
                "Command failed",
                extra={"extra_context": {"command": type(command).__name__, "error": str(err)}},
            )
            return self._error_message(command, str(err))
        except Exception as err:
            logger.error(f"Unexpected error running {type(command).__name__}: {err}", exc_info=True)
            return self._error_message(command, str(err))

    # Thread control

    def submit(self, commands: Iterable[Command]) -> None:
        for command in commands:
            self._commands.put(command)

    def _run(self) -> None:
        """Main loop running in the background thread."""
        logger.info("CommandExecutor started")

        while not self._stop_event.is_set():
            try:
                command = self._commands.get(timeout=0.1)
            except queue.Empty:
                continue

            message = self.execute(command)
            if self._stop_event.is_set():
                break
            self.update_queue.put(message)

        logger.info("CommandExecutor stopped")

    def start(self) -> None:
        """Start the background worker thread."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("CommandExecutor already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="CommandExecutor")
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the background worker thread gracefully."""
        if self._thread is None:
            return

        logger.info("Stopping CommandExecutor...")
        self._stop_event.set()
        self._thread.join(timeout=timeout)

        if self._thread.is_alive():
            logger.warning("CommandExecutor thread did not stop within timeout")
        else:
            logger.info("CommandExecutor stopped successfully")

        self._thread = None


def run_until_idle(
    machine_handle: Callable[[Message], list[Command]],
    executor: CommandExecutor,
    commands: Iterable[Command],
    on_message: Callable[[Message], None] | None = None,
) -> None:
    """Execute commands and their follow-ups synchronously until none remain.

    Used by the one-shot CLI commands so they share the TUI's transition rules
    without a worker thread.

    Args:
        machine_handle: Callable applying a message and returning follow-up commands
        executor: Executor whose ``execute`` runs each command
        commands: Initial commands
        on_message: Optional callback invoked with each message before it is applied
    """
    pending = list(commands)
    while pending:
        command = pending.pop(0)
        message = executor.execute(command)
        if on_message is not None:
            on_message(message)
        pending.extend(machine_handle(message))
