"""Keyboard input handling for TUI application.

This module maps key presses to state machine actions. Which keys do what
depends on the current view; text input views pass printable characters to
their input buffer, so only control keys act there.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .models import MAIN_MENU_ITEMS, POST_POLLING_MENU_ITEMS, TextInput, ViewState

if TYPE_CHECKING:
    from .messages import Command
    from .models import AppState
    from .transitions import StateMachine

logger = logging.getLogger(__name__)

# Key names produced by TUIApp's keyboard reader.
KEY_UP = "up"
KEY_DOWN = "down"
KEY_ENTER = "enter"
KEY_ESC = "esc"
KEY_BACKSPACE = "backspace"
KEY_CTRL_C = "ctrl+c"

_UP_KEYS = (KEY_UP, "k")
_DOWN_KEYS = (KEY_DOWN, "j")


def _move(index: int, count: int, key: str) -> int:
    """Return the cursor index after an up/down key, clamped to the list."""
    if count == 0:
        return 0
    if key in _UP_KEYS:
        return max(index - 1, 0)
    return min(index + 1, count - 1)


class KeybindingHandler:
    """Handles keyboard input and dispatches state machine actions."""

    def __init__(self, app_state: AppState, machine: StateMachine) -> None:
        """Initialize keybinding handler.

        Args:
            app_state: Application state for view and cursor tracking
            machine: State machine that performs the transitions
        """
        self.app_state = app_state
        self.machine = machine

        self._view_handlers = {
            ViewState.AUTH: self._handle_auth,
            ViewState.MENU: self._handle_menu,
            ViewState.SELECT_PODCAST: self._handle_select_podcast,
            ViewState.ENTER_URL: self._handle_enter_url,
            ViewState.CONVERT_URL: self._handle_convert_url,
            ViewState.POLLING: self._handle_polling,
            ViewState.POST_POLLING: self._handle_post_polling,
            ViewState.JOBS: self._handle_jobs,
        }

    def handle_key(self, key: str) -> list[Command]:
        """Process keyboard input and return commands to execute.

        Args:
            key: Key identifier (e.g., "up", "enter", "q", "ctrl+c")

        Returns:
            Commands produced by the resulting transition, possibly empty
        """
        if key == KEY_CTRL_C:
            return self.machine.quit()

        if self.app_state.help_visible:
            if key in ("?", KEY_ESC):
                self.app_state.help_visible = False
            return []

        handler = self._view_handlers[self.app_state.view]
        return handler(key)

    # Shared helpers

    def _toggle_help(self) -> list[Command]:
        self.app_state.help_visible = not self.app_state.help_visible
        return []

    @staticmethod
    def _edit_text(text_input: TextInput, key: str) -> None:
        if key == KEY_BACKSPACE:
            text_input.backspace()
        elif len(key) == 1 and key.isprintable():
            text_input.insert(key)

    # View handlers

    def _handle_auth(self, key: str) -> list[Command]:
        if key == KEY_ENTER:
            return self.machine.submit_api_key()
        if key == KEY_ESC:
            return self.machine.cancel_auth()
        self._edit_text(self.app_state.auth_input, key)
        return []

    def _handle_menu(self, key: str) -> list[Command]:
        state = self.app_state
        if key in _UP_KEYS + _DOWN_KEYS:
            state.menu_index = _move(state.menu_index, len(MAIN_MENU_ITEMS), key)
            return []
        if key.isdigit() and 1 <= int(key) <= len(MAIN_MENU_ITEMS):
            state.menu_index = int(key) - 1
            return []
        if key == KEY_ENTER:
            return self.machine.select_menu_item(state.selected_menu_item)
        if key == "q":
            return self.machine.quit()
        if key == "?":
            return self._toggle_help()
        return []

    def _handle_select_podcast(self, key: str) -> list[Command]:
        state = self.app_state
        if key in _UP_KEYS + _DOWN_KEYS:
            state.podcast_index = _move(state.podcast_index, len(state.podcasts), key)
            return []
        if key == KEY_ENTER:
            return self.machine.choose_podcast()
        if key == KEY_ESC:
            state.clear_feedback()
            return self.machine.go_to_menu()
        if key == "q":
            return self.machine.quit()
        if key == "?":
            return self._toggle_help()
        return []

    def _handle_enter_url(self, key: str) -> list[Command]:
        state = self.app_state
        if key == KEY_ENTER:
            return self.machine.submit_url()
        if key == KEY_ESC:
            if state.busy:
                return []
            state.url_input.clear()
            state.error = None
            state.view = ViewState.SELECT_PODCAST
            return []
        self._edit_text(state.url_input, key)
        return []

    def _handle_convert_url(self, key: str) -> list[Command]:
        state = self.app_state
        if key == KEY_ENTER:
            return self.machine.submit_url()
        if key == KEY_ESC:
            if state.busy:
                return []
            state.error = None
            return self.machine.go_to_menu()
        self._edit_text(state.url_input, key)
        return []

    def _handle_polling(self, key: str) -> list[Command]:
        # Polling runs until a terminal status; the only way out early is quitting.
        if key == "q":
            return self.machine.quit()
        if key == "?":
            return self._toggle_help()
        return []

    def _handle_post_polling(self, key: str) -> list[Command]:
        state = self.app_state
        if key in _UP_KEYS + _DOWN_KEYS:
            state.post_polling_index = _move(
                state.post_polling_index, len(POST_POLLING_MENU_ITEMS), key
            )
            return []
        if key == KEY_ENTER:
            return self.machine.select_post_polling_item(state.selected_post_polling_item)
        if key == "a":
            return self.machine.select_post_polling_item(POST_POLLING_MENU_ITEMS[0])
        if key in ("m", KEY_ESC):
            return self.machine.select_post_polling_item(POST_POLLING_MENU_ITEMS[1])
        if key == "q":
            return self.machine.quit()
        if key == "?":
            return self._toggle_help()
        return []

    def _handle_jobs(self, key: str) -> list[Command]:
        state = self.app_state
        if key in _UP_KEYS + _DOWN_KEYS:
            state.job_index = _move(state.job_index, len(state.jobs), key)
            return []
        if key == "r":
            return self.machine.refresh_jobs()
        if key == "d":
            return self.machine.download_selected_job()
        if key in ("m", KEY_ESC):
            if state.busy:
                return []
            state.clear_feedback()
            return self.machine.go_to_menu()
        if key == "q":
            return self.machine.quit()
        if key == "?":
            return self._toggle_help()
        return []
