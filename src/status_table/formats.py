"""Named value formatters.

Columns may reference these by name (``format="duration"``). Custom
formatters are added with :func:`register_format`.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

Formatter = Callable[[Any], str]

PERCENT_BAR_WIDTH = 10
PERCENT_BAR_FULL = "█"
PERCENT_BAR_EMPTY = "░"


def duration(value: Any) -> str:
    """Format a number of seconds as a compact duration.

    Examples: ``7s``, ``2m05s``, ``1h02m05s``, ``3d04h:02m05s``. Zero and
    ``None`` render as an empty string.
    """
    if not value:
        return ""
    seconds = int(value)
    minutes, seconds = divmod(seconds, 60)
    if minutes == 0:
        return f"{seconds}s"
    hours, minutes = divmod(minutes, 60)
    if hours == 0:
        return f"{minutes}m{seconds:02d}s"
    days, hours = divmod(hours, 24)
    if days == 0:
        return f"{hours}h{minutes:02d}m{seconds:02d}s"
    return f"{days}d{hours:02d}h:{minutes:02d}m{seconds:02d}s"


def percent_bar(value: Any) -> str:
    """Render a 0..100 percentage as a fixed-width bar."""
    if value is None:
        return ""
    percent = max(0, min(100, int(value)))
    filled = percent * PERCENT_BAR_WIDTH // 100
    return PERCENT_BAR_FULL * filled + PERCENT_BAR_EMPTY * (PERCENT_BAR_WIDTH - filled)


_REGISTRY: dict[str, Formatter] = {
    "duration": duration,
    "time": duration,
    "percent_bar": percent_bar,
}


def register_format(name: str, formatter: Formatter) -> None:
    """Register a named formatter for use in column definitions."""
    _REGISTRY[name] = formatter


def get_format(name: str) -> Formatter | None:
    """Look up a named formatter, returning None if unknown."""
    return _REGISTRY.get(name)
