"""Text prompt renderer used for the API key and URL inputs."""

from __future__ import annotations

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.spinner import Spinner
from rich.text import Text

from ..models import TextInput
from .menu_view import ACCENT, busy_spinner


def render_input(text_input: TextInput, mask: bool = False) -> Text:
    """Render an input line with a block cursor, or its placeholder when empty."""
    text = Text("> ", style=ACCENT)
    if text_input.value:
        shown = "•" * len(text_input.value) if mask else text_input.value
        text.append(shown)
    else:
        text.append(text_input.placeholder, style="dim")
    text.append("█", style="blink")
    return text


def render_prompt(
    label: str,
    text_input: TextInput,
    title: str,
    hint: str = "(esc to cancel)",
    message: str | None = None,
    error: str | None = None,
    busy_label: str | None = None,
    mask: bool = False,
    spinner: Spinner | None = None,
) -> Panel:
    """Build Rich Panel for a single-line text prompt.

    Args:
        label: Question shown above the input
        text_input: Input buffer to display
        title: Panel title
        hint: Key hint under the input
        message: Info message shown above the label
        error: Error message shown under the input
        busy_label: Label of the action in flight, shown with a spinner
        mask: Hide typed characters (API keys)
        spinner: Spinner to reuse for busy_label across renders

    Returns:
        Rich Panel component ready for rendering
    """
    parts: list[RenderableType] = []
    if message:
        parts.append(Text(message, style="yellow"))
        parts.append(Text(""))

    parts.append(Text(label, style="bold"))
    parts.append(Text(""))
    parts.append(render_input(text_input, mask=mask))
    parts.append(Text(""))

    if error:
        parts.append(Text(f"Error: {error}", style="bold red"))
    if busy_label:
        parts.append(busy_spinner(Text(busy_label, style="yellow"), spinner))

    parts.append(Text(hint, style="#626262"))

    return Panel(
        Group(*parts),
        title=f"[bold {ACCENT}]{title}[/bold {ACCENT}]",
        border_style=ACCENT,
        padding=(1, 2),
    )
