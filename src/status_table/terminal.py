"""Terminal output sink helpers.

Only relative cursor movement is used: the table never addresses absolute
screen positions and never switches to the alternate screen.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import IO, Any

from rich.console import Console

ESC = "\x1b["
RESET = f"{ESC}0m"
INVERT = f"{ESC}7m"
CLEAR_LINE = f"{ESC}K"
CLEAR_DOWN = f"{ESC}J"
CARRIAGE_RETURN = "\r"

TerminalWidth = Callable[[], int]


def cursor_up(lines: int) -> str:
    return f"{ESC}{lines}A"


def cursor_down(lines: int) -> str:
    return f"{ESC}{lines}B"


def is_interactive(stream: Any) -> bool:
    """Check that a stream is an open, interactive character device."""
    if stream is None or getattr(stream, "closed", False):
        return False
    isatty = getattr(stream, "isatty", None)
    if not callable(isatty) or not callable(getattr(stream, "write", None)):
        return False
    try:
        return bool(isatty())
    except (OSError, ValueError):
        return False


def console_width(stream: IO[str]) -> TerminalWidth:
    """Build a width query that asks rich for the current size of ``stream``.

    The size is read again on every call, so terminal resizes are honoured.
    """
    console = Console(file=stream)

    def query() -> int:
        return console.width

    return query
