"""Help panel renderer for keybinding reference.

This module provides the render_help_panel function that displays
a table of all available keybindings organized by view.
"""

from __future__ import annotations

from rich.panel import Panel
from rich.table import Table


def render_help_panel() -> Panel:
    """Build Rich Panel displaying keybinding reference table.

    Returns:
        Rich Panel component with categorized keybindings
    """
    table = Table(
        show_header=True,
        header_style="bold magenta",
        border_style="blue",
        padding=(0, 1),
    )
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Action", style="yellow")
    table.add_column("Description", style="white")

    # Navigation keybindings
    table.add_row("", "", "")
    table.add_row("", "[bold cyan]Navigation[/bold cyan]", "", style="bold")
    table.add_row("↑/↓ or k/j", "Navigate", "Move the cursor in menus and tables")
    table.add_row("1-7", "Jump", "Jump to a main menu entry")
    table.add_row("Enter", "Select", "Run the highlighted entry or submit input")
    table.add_row("Esc", "Back", "Return to the previous screen")

    # Polling keybindings
    table.add_row("", "", "")
    table.add_row("", "[bold green]After Polling[/bold green]", "", style="bold")
    table.add_row("a", "Add another", "Add another URL to a podcast")
    table.add_row("m", "Main menu", "Return to the main menu")

    # Jobs keybindings
    table.add_row("", "", "")
    table.add_row("", "[bold yellow]Jobs[/bold yellow]", "", style="bold")
    table.add_row("d", "Download", "Download audio for the highlighted job")
    table.add_row("r", "Refresh", "Reload the jobs list")

    # Meta keybindings
    table.add_row("", "", "")
    table.add_row("", "[bold magenta]Meta[/bold magenta]", "", style="bold")
    table.add_row("?", "Help", "Toggle this help panel")
    table.add_row("q", "Quit", "Exit (outside text input)")
    table.add_row("Ctrl+C", "Quit", "Exit from any screen")

    return Panel(
        table,
        title="[bold white]Keybindings[/bold white]",
        border_style="blue",
        padding=(1, 2),
    )
