"""Podcast selection renderer."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ...models import Podcast
from ..tui_utils import truncate_text
from .menu_view import ACCENT


def render_podcast_list(
    podcasts: Sequence[Podcast],
    selected_index: int,
    message: str | None = None,
    error: str | None = None,
) -> Panel:
    """Build Rich Panel listing podcasts with the cursor row highlighted.

    Args:
        podcasts: Podcasts returned by the service
        selected_index: Index of the highlighted podcast
        message: Info message (e.g., no podcasts found)
        error: Error message to display

    Returns:
        Rich Panel component ready for rendering
    """
    parts: list[RenderableType] = []

    if not podcasts:
        parts.append(Text(message or "No podcasts found.", style="yellow"))
    else:
        table = Table(show_header=True, header_style=f"bold {ACCENT}", expand=True)
        table.add_column("#", justify="right", style="dim", width=3)
        table.add_column("Title")
        for index, podcast in enumerate(podcasts):
            style = f"bold white on {ACCENT}" if index == selected_index else None
            table.add_row(str(index + 1), truncate_text(podcast.name or podcast.id, 60), style=style)
        parts.append(table)

    if error:
        parts.append(Text(""))
        parts.append(Text(f"Error: {error}", style="bold red"))

    return Panel(
        Group(*parts),
        title=f"[bold {ACCENT}]Select a podcast to add the URL to[/bold {ACCENT}]",
        border_style=ACCENT,
        padding=(1, 2),
    )
