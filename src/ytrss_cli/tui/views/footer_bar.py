"""Footer bar renderer for status indicators.

This module provides the render_footer_bar function that displays
a status bar with the in-flight action, error messages, and key hints.
"""

from __future__ import annotations

from rich.text import Text

from ..models import ViewState
from ..tui_utils import truncate_text

# Key hints shown for each view.
_VIEW_HINTS = {
    ViewState.AUTH: "Enter: save • Esc: cancel",
    ViewState.MENU: "↑/↓: navigate • Enter: select • ?: help • q: quit",
    ViewState.SELECT_PODCAST: "↑/↓: navigate • Enter: select • Esc: back • q: quit",
    ViewState.ENTER_URL: "Enter: add URL • Esc: back • Ctrl+C: quit",
    ViewState.CONVERT_URL: "Enter: convert • Esc: back • Ctrl+C: quit",
    ViewState.POLLING: "Polling for updates... • q: quit",
    ViewState.POST_POLLING: "a: add another URL • m: main menu • q: quit",
    ViewState.JOBS: "↑/↓: navigate • d: download • r: refresh • m: main menu • q: quit",
}


def render_footer_bar(
    view: ViewState,
    busy_label: str | None = None,
    error_message: str | None = None,
    terminal_width: int = 80,
) -> Text:
    """Build Rich Text displaying footer status bar.

    Args:
        view: Current view, selects the key hints
        busy_label: Label of the action in flight, if any
        error_message: Current error message to display, if any
        terminal_width: Terminal width for truncation calculations

    Returns:
        Rich Text component ready for rendering
    """
    parts = []

    if busy_label:
        parts.append((busy_label, "yellow"))
    else:
        parts.append(("Ready", "dim"))

    hint = _VIEW_HINTS.get(view, "")

    # Error message (truncated if needed)
    if error_message:
        # Format: "[status] | [error] | [hint]"
        status_part = parts[0][0] + " | "
        available_width = terminal_width - len(status_part) - len(hint) - 3

        if available_width > 10:  # Minimum space for meaningful error
            parts.append((" | ", "dim"))
            parts.append((truncate_text(error_message, available_width), "red"))

    if hint:
        parts.append((" | ", "dim"))
        parts.append((hint, "cyan"))

    # Build the Rich Text object
    footer = Text()
    for text, style in parts:
        footer.append(text, style=style)

    return footer
