"""Renderers for the polling screen and the menu shown once polling ends."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.spinner import Spinner
from rich.text import Text

from ...models import Podcast
from ..models import PollingSession, PollOutcome
from ..tui_utils import get_status_badge
from .menu_view import ACCENT, busy_spinner, render_menu_items

_OUTCOME_STYLES = {
    PollOutcome.SUCCEEDED: "bold green",
    PollOutcome.JOB_FAILED: "bold red",
    PollOutcome.FETCH_FAILED: "bold red",
}


def _podcast_line(podcast: Podcast | None) -> list[RenderableType]:
    if podcast is None:
        return []
    return [Text(f"Podcast: {podcast.name or podcast.id}", style="dim")]


def render_polling(
    session: PollingSession,
    podcast: Podcast | None = None,
    spinner: Spinner | None = None,
) -> Panel:
    """Build Rich Panel for an active polling session.

    Args:
        session: Polling session in progress
        podcast: Podcast the item was added to, if known
        spinner: Spinner to reuse across renders

    Returns:
        Rich Panel component ready for rendering
    """
    symbol, label, color = get_status_badge(session.status)
    status = Text.assemble(
        f"Polling item {session.item_id}... Status: ",
        (f"{symbol} {label}", color),
    )

    parts: list[RenderableType] = _podcast_line(podcast)
    parts.append(busy_spinner(status, spinner))
    parts.append(Text(f"Checks so far: {session.poll_count}", style="dim"))

    return Panel(
        Group(*parts),
        title=f"[bold {ACCENT}]Converting[/bold {ACCENT}]",
        border_style=ACCENT,
        padding=(1, 2),
    )


def render_post_polling(
    session: PollingSession,
    items: Sequence[str],
    selected_index: int,
    podcast: Podcast | None = None,
) -> Panel:
    """Build Rich Panel showing a finished polling session and next actions.

    Args:
        session: Finished polling session
        items: Post-polling menu labels
        selected_index: Index of the highlighted entry
        podcast: Podcast the item was added to, if known

    Returns:
        Rich Panel component ready for rendering
    """
    style = _OUTCOME_STYLES.get(session.outcome, "bold")

    parts: list[RenderableType] = _podcast_line(podcast)
    parts.append(Text(session.done_message, style=style))
    if session.error:
        parts.append(Text(f"Error polling: {session.error}", style="red"))
    parts.append(Text(""))
    parts.append(Text("What would you like to do?", style="bold"))
    parts.append(render_menu_items(items, selected_index))

    border = "green" if session.outcome is PollOutcome.SUCCEEDED else "red"
    return Panel(
        Group(*parts),
        title=f"[bold]Item {session.item_id}[/bold]",
        border_style=border,
        padding=(1, 2),
    )
