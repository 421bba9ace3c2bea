"""Jobs table renderer.

Jobs arrive already sorted newest first; this module only formats them.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from ...models import ItemStatus, Job
from ..tui_utils import format_created, get_status_badge, truncate_text
from .menu_view import ACCENT, busy_spinner


def _job_title(job: Job) -> str:
    if job.title:
        return job.title
    if job.status is ItemStatus.CREATED:
        return "Processing..."
    return job.url or "(No title)"


def render_jobs_table(
    jobs: Sequence[Job],
    selected_index: int,
    message: str | None = None,
    error: str | None = None,
    busy_label: str | None = None,
    max_rows: int = 20,
    spinner: Spinner | None = None,
) -> Panel:
    """Build Rich Panel with a table of conversion jobs.

    Args:
        jobs: Jobs to display, newest first
        selected_index: Index of the highlighted job
        message: Info message (e.g., download path)
        error: Error message to display
        busy_label: Label of the action in flight, shown with a spinner
        max_rows: Maximum rows shown; the window follows the cursor
        spinner: Spinner to reuse for busy_label across renders

    Returns:
        Rich Panel component ready for rendering
    """
    parts: list[RenderableType] = []

    if message:
        parts.append(Text(message, style="bold #04B575"))
    if error:
        parts.append(Text(f"Error: {error}", style="bold red"))

    if jobs:
        # Keep the cursor inside the visible window.
        start = max(0, min(selected_index - max_rows + 1, len(jobs) - max_rows))
        start = max(start, 0)
        window = list(enumerate(jobs))[start : start + max_rows]

        table = Table(show_header=True, header_style=f"bold {ACCENT}", expand=True)
        table.add_column("Title", ratio=5)
        table.add_column("Status", ratio=2, no_wrap=True)
        table.add_column("Created", ratio=3, no_wrap=True)
        table.add_column("ID", style="dim", ratio=2, no_wrap=True)

        for index, job in window:
            symbol, label, color = get_status_badge(job.status)
            row_style = f"bold white on {ACCENT}" if index == selected_index else None
            table.add_row(
                truncate_text(_job_title(job), 60),
                Text(f"{symbol} {label}", style=color),
                format_created(job.created),
                job.id,
                style=row_style,
            )
        parts.append(table)
        if len(jobs) > max_rows:
            parts.append(Text(f"{selected_index + 1}/{len(jobs)}", style="dim"))
    elif not message:
        parts.append(Text("No jobs found.", style="yellow"))

    if busy_label:
        parts.append(busy_spinner(Text(busy_label, style="yellow"), spinner))

    return Panel(
        Group(*parts),
        title=f"[bold {ACCENT}]Jobs[/bold {ACCENT}]",
        border_style=ACCENT,
        padding=(0, 1),
    )
