"""Main TUI application loop and layout.

This module orchestrates the TUI application: it feeds key presses and
executor results through the StateMachine on the main thread, hands the
resulting commands to the CommandExecutor, and renders the current view with
Rich Live.
"""

from __future__ import annotations

import logging
import os
import queue
import select
import sys
import termios
import tty
from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console, RenderableType
from rich.layout import Layout
from rich.live import Live
from rich.spinner import Spinner

from ..client import APIClient
from ..config import Config
from ..credentials import CredentialStore
from .executor import CommandExecutor
from .keybindings import (
    KEY_BACKSPACE,
    KEY_CTRL_C,
    KEY_DOWN,
    KEY_ENTER,
    KEY_ESC,
    KEY_UP,
    KeybindingHandler,
)
from .messages import Command, Message
from .models import MAIN_MENU_ITEMS, POST_POLLING_MENU_ITEMS, AppState, ViewState
from .transitions import StateMachine
from .tui_utils import get_terminal_size
from .views.footer_bar import render_footer_bar
from .views.help_panel import render_help_panel
from .views.jobs_table import render_jobs_table
from .views.menu_view import ACCENT, render_menu
from .views.podcast_list import render_podcast_list
from .views.polling_view import render_polling, render_post_polling
from .views.prompt_view import render_prompt

logger = logging.getLogger(__name__)

# Escape sequences for the keys the TUI understands.
_ESCAPE_SEQUENCES = {
    "[A": KEY_UP,
    "[B": KEY_DOWN,
    "OA": KEY_UP,
    "OB": KEY_DOWN,
}

_CONTROL_KEYS = {
    "\r": KEY_ENTER,
    "\n": KEY_ENTER,
    "\x7f": KEY_BACKSPACE,
    "\x08": KEY_BACKSPACE,
    "\x03": KEY_CTRL_C,
}


def decode_keys(raw: str) -> list[str]:
    """Split raw terminal input into key names.

    Printable characters map to themselves; arrow escape sequences map to
    "up"/"down"; a lone ESC maps to "esc". Unknown escape sequences and other
    control characters are dropped.
    """
    keys: list[str] = []
    i = 0
    while i < len(raw):
        char = raw[i]
        if char == "\x1b":
            sequence = raw[i + 1 : i + 3]
            if sequence in _ESCAPE_SEQUENCES:
                keys.append(_ESCAPE_SEQUENCES[sequence])
                i += 3
                continue
            if sequence[:1] in ("[", "O"):
                # Skip an unsupported CSI/SS3 sequence up to its final byte.
                j = i + 2
                while j < len(raw) and not raw[j].isalpha() and raw[j] != "~":
                    j += 1
                i = j + 1
                continue
            keys.append(KEY_ESC)
            i += 1
            continue
        if char in _CONTROL_KEYS:
            keys.append(_CONTROL_KEYS[char])
        elif char.isprintable():
            keys.append(char)
        i += 1
    return keys


@contextmanager
def _cbreak_stdin() -> Iterator[None]:
    """Put stdin in cbreak mode so keys arrive unbuffered and unechoed."""
    if not sys.stdin.isatty():
        yield
        return

    fd = sys.stdin.fileno()
    saved = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


class TUIApp:
    """Main TUI application orchestrating all components."""

    def __init__(self, config: Config, client: APIClient, credentials: CredentialStore):
        """Initialize TUI application.

        Args:
            config: Runtime configuration
            client: API client shared with the executor
            credentials: Store holding the API key
        """
        self.config = config
        self.client = client
        self.console = Console()

        # Initialize state
        self.app_state = AppState()
        self.machine = StateMachine(
            self.app_state, credentials, poll_interval=config.poll_interval_seconds
        )
        self.keybinding_handler = KeybindingHandler(self.app_state, self.machine)

        # Initialize executor
        self.update_queue: queue.Queue[Message] = queue.Queue()
        self.executor = CommandExecutor(client, config.downloads_dir, self.update_queue)

        # One spinner for the whole session so Live refreshes animate it.
        self.spinner = Spinner("dots", style=ACCENT)

        self.terminal_width, self.terminal_height = get_terminal_size()

    def _dispatch(self, commands: list[Command]) -> None:
        if commands:
            logger.debug(f"Dispatching {[type(c).__name__ for c in commands]}")
            self.executor.submit(commands)

    def _process_messages(self) -> None:
        """Apply all pending result messages from the executor."""
        try:
            while True:
                message = self.update_queue.get_nowait()
                self._dispatch(self.machine.handle_message(message))
        except queue.Empty:
            pass

    def _handle_keys(self, keys: list[str]) -> None:
        for key in keys:
            self._dispatch(self.keybinding_handler.handle_key(key))
            if self.app_state.should_quit:
                return

    def _poll_keyboard(self, timeout: float = 0.1) -> list[str]:
        """Poll for keyboard input with timeout.

        Everything already buffered is read at once so pasted text arrives in
        a single pass.

        Args:
            timeout: Timeout in seconds

        Returns:
            Decoded key names, empty if nothing was pressed
        """
        fd = sys.stdin.fileno()
        ready, _, _ = select.select([fd], [], [], timeout)
        if not ready:
            return []

        chunks: list[bytes] = []
        while ready:
            try:
                data = os.read(fd, 1024)
            except OSError as err:
                logger.warning(f"Error reading keyboard input: {err}")
                break
            if not data:
                break
            chunks.append(data)
            ready, _, _ = select.select([fd], [], [], 0)

        return decode_keys(b"".join(chunks).decode("utf-8", errors="ignore"))

    def _render_body(self) -> RenderableType:
        """Render the panel for the current view."""
        state = self.app_state

        if state.help_visible:
            return render_help_panel()

        if state.view is ViewState.AUTH:
            return render_prompt(
                "Please enter your API key:",
                state.auth_input,
                title="Set API Key",
                hint="(esc to quit)" if not state.has_api_key else "(esc to cancel)",
                message=state.message,
                error=state.error,
                mask=True,
            )
        if state.view is ViewState.SELECT_PODCAST:
            return render_podcast_list(
                state.podcasts, state.podcast_index, message=state.message, error=state.error
            )
        if state.view is ViewState.ENTER_URL:
            podcast = state.selected_podcast
            name = podcast.name if podcast else ""
            return render_prompt(
                "Enter the YouTube URL",
                state.url_input,
                title=f"Add URL to: {name}",
                error=state.error,
                busy_label=state.busy_label,
                spinner=self.spinner,
            )
        if state.view is ViewState.CONVERT_URL:
            return render_prompt(
                "Enter the URL to convert",
                state.url_input,
                title="Convert URL",
                error=state.error,
                busy_label=state.busy_label,
                spinner=self.spinner,
            )
        if state.view is ViewState.POLLING and state.polling is not None:
            return render_polling(state.polling, state.selected_podcast, spinner=self.spinner)
        if state.view is ViewState.POST_POLLING and state.polling is not None:
            return render_post_polling(
                state.polling,
                POST_POLLING_MENU_ITEMS,
                state.post_polling_index,
                state.selected_podcast,
            )
        if state.view is ViewState.JOBS:
            return render_jobs_table(
                state.jobs,
                state.job_index,
                message=state.message,
                error=state.error,
                busy_label=state.busy_label,
                spinner=self.spinner,
                max_rows=max(self.terminal_height - 12, 5),
            )

        return render_menu(
            MAIN_MENU_ITEMS,
            state.menu_index,
            usage=state.usage,
            message=state.message,
            error=state.error,
            busy_label=state.busy_label,
            spinner=self.spinner,
        )

    def _build_layout(self) -> Layout:
        """Build the body/footer layout.

        Returns:
            Rich Layout with both regions rendered
        """
        self.terminal_width, self.terminal_height = get_terminal_size()

        layout = Layout()
        layout.split_column(
            Layout(name="body", ratio=1),
            Layout(name="footer", size=1),
        )
        layout["body"].update(self._render_body())
        layout["footer"].update(
            render_footer_bar(
                view=self.app_state.view,
                busy_label=self.app_state.busy_label,
                error_message=self.app_state.error,
                terminal_width=self.terminal_width,
            )
        )
        return layout

    def run(self) -> int:
        """Run the main TUI event loop.

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        try:
            self.executor.start()
            self._dispatch(self.machine.start())

            with _cbreak_stdin(), Live(
                self._build_layout(),
                console=self.console,
                refresh_per_second=self.config.tui_refresh_per_second,
                screen=True,
            ) as live:
                logger.info("TUI main loop started")

                while not self.app_state.should_quit:
                    self._process_messages()
                    self._handle_keys(self._poll_keyboard(timeout=0.1))
                    live.update(self._build_layout())

            logger.info("TUI main loop exited")
            return 0

        except KeyboardInterrupt:
            logger.info("TUI interrupted by user")
            return 130

        except Exception as err:
            logger.error(f"TUI crashed: {err}", exc_info=True)
            self.console.print(f"[red]Error: {err}[/red]")
            return 1

        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Stop the executor; any in-flight poll is abandoned."""
        self.machine.quit()
        self.executor.stop()
        logger.info("TUI shutdown complete")
