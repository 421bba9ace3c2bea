"""Main menu renderer.

Shows the action list, any feedback message, and the storage usage bar.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.spinner import Spinner
from rich.text import Text

from ...models import Usage
from ..tui_utils import format_bytes

ACCENT = "#7D56F4"


def busy_spinner(text: Text, spinner: Spinner | None = None) -> Spinner:
    """Return a spinner showing text, reusing spinner when one is given.

    A spinner kept across renders keeps its start time, so the animation
    advances instead of restarting on every Live refresh.
    """
    if spinner is None:
        return Spinner("dots", text=text, style=ACCENT)
    spinner.update(text=text)
    return spinner


def render_menu_items(items: Sequence[str], selected_index: int) -> Text:
    """Render a numbered menu with the selected entry highlighted."""
    text = Text()
    for index, label in enumerate(items):
        line = f"{index + 1}. {label}"
        if index == selected_index:
            text.append(f"> {line}", style=f"bold {ACCENT}")
        else:
            text.append(f"  {line}")
        if index < len(items) - 1:
            text.append("\n")
    return text


def render_usage(usage: Usage | None) -> RenderableType:
    """Render usage figures and a bar, or a placeholder while unknown."""
    if usage is None:
        return Text("Usage: unknown", style="dim")

    label = Text(
        f"Usage: {format_bytes(usage.used)} / {format_bytes(usage.limit)}",
        style="#626262",
    )
    if usage.fraction >= 0.9:
        complete_style = "red"
    elif usage.fraction >= 0.7:
        complete_style = "yellow"
    else:
        complete_style = "green"
    bar = ProgressBar(
        total=100,
        completed=round(usage.fraction * 100),
        width=40,
        complete_style=complete_style,
    )
    return Group(label, bar)


def render_menu(
    items: Sequence[str],
    selected_index: int,
    usage: Usage | None = None,
    message: str | None = None,
    error: str | None = None,
    busy_label: str | None = None,
    title: str = "What would you like to do?",
    spinner: Spinner | None = None,
) -> Panel:
    """Build Rich Panel for a menu screen.

    Args:
        items: Menu labels in display order
        selected_index: Index of the highlighted entry
        usage: Storage usage to show under the menu, if known
        message: Success/info message shown above the menu
        error: Error message shown above the menu
        busy_label: Label of the action in flight, shown with a spinner
        spinner: Spinner to reuse for busy_label across renders

    Returns:
        Rich Panel component ready for rendering
    """
    parts: list[RenderableType] = []

    if message:
        parts.append(Text(message, style="bold #04B575"))
        parts.append(Text(""))
    if error:
        parts.append(Text(f"Error: {error}", style="bold red"))
        parts.append(Text(""))

    parts.append(render_menu_items(items, selected_index))
    parts.append(Text(""))
    parts.append(render_usage(usage))

    if busy_label:
        parts.append(Text(""))
        parts.append(busy_spinner(Text(busy_label, style="yellow"), spinner))

    return Panel(
        Group(*parts),
        title=f"[bold {ACCENT}]{title}[/bold {ACCENT}]",
        border_style=ACCENT,
        padding=(1, 2),
    )
