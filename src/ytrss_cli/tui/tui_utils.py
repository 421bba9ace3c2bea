"""TUI utility functions for formatting and display helpers."""

import shutil

from ..models import ItemStatus, parse_created_time

_KB = 1024
_MB = 1024 * _KB
_GB = 1024 * _MB


def format_bytes(size: int) -> str:
    """
    Format a byte count using binary units.

    Args:
        size: Number of bytes

    Returns:
        Human readable size with two decimals above 1 KB

    Examples:
        >>> format_bytes(512)
        '512 B'
        >>> format_bytes(1536)
        '1.50 KB'
        >>> format_bytes(3 * 1024 * 1024 * 1024)
        '3.00 GB'
    """
    if size >= _GB:
        return f"{size / _GB:.2f} GB"
    if size >= _MB:
        return f"{size / _MB:.2f} MB"
    if size >= _KB:
        return f"{size / _KB:.2f} KB"
    return f"{size} B"


def format_created(created: str) -> str:
    """
    Format a "created" timestamp for display in local time.

    Args:
        created: Raw timestamp from the API

    Returns:
        "Jan 2, 2006 3:04 PM" style text, the raw value if it cannot be
        parsed, or "-" if empty

    Examples:
        >>> format_created("")
        '-'
        >>> format_created("not a date")
        'not a date'
    """
    if not created:
        return "-"

    parsed = parse_created_time(created)
    if parsed is None:
        return created

    local = parsed.astimezone()
    hour = local.hour % 12 or 12
    return f"{local:%b} {local.day}, {local.year} {hour}:{local:%M %p}"


def truncate_text(text: str, max_len: int) -> str:
    """
    Truncate text to max length, adding ellipsis if needed.

    Args:
        text: Text to truncate
        max_len: Maximum length including ellipsis

    Returns:
        Truncated text with "..." suffix if text exceeds max_len

    Examples:
        >>> truncate_text("short", 10)
        'short'
        >>> truncate_text("this is a long text", 10)
        'this is...'
    """
    if len(text) <= max_len:
        return text

    if max_len <= 3:
        return "..."[:max_len]

    return text[: max_len - 3] + "..."


def get_terminal_size() -> tuple[int, int]:
    """
    Get terminal size as (columns, rows) tuple.

    Returns:
        Tuple of (columns, rows), defaults to (80, 24) if unavailable
    """
    try:
        size = shutil.get_terminal_size(fallback=(80, 24))
        return (size.columns, size.lines)
    except OSError:
        return (80, 24)


def get_status_badge(status: ItemStatus) -> tuple[str, str, str]:
    """
    Get symbol, label and color for an item status.

    Args:
        status: ItemStatus enum value

    Returns:
        Tuple of (symbol, label, color) for the given status

    Examples:
        >>> get_status_badge(ItemStatus.SUCCESS)
        ('✓', 'SUCCESS', 'green')
        >>> get_status_badge(ItemStatus.CREATED)
        ('…', 'PROCESSING', 'yellow')
    """
    badge_map = {
        ItemStatus.CREATED: ("…", "PROCESSING", "yellow"),
        ItemStatus.SUCCESS: ("✓", "SUCCESS", "green"),
        ItemStatus.ERROR: ("✗", "ERROR", "red"),
    }

    return badge_map.get(status, ("?", status.value, "white"))
