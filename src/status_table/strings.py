"""Terminal string metrics.

Display width calculation, truncation, ellipsis and alignment that account
for Unicode grapheme clusters and ANSI escape sequences:

* ANSI escape sequences: width 0
* Emoji presentation clusters: width 2
* East Asian wide scripts (Han, Hiragana, Katakana, Hangul): width 2
* Everything else: width 1

Usage:
    from status_table.strings import width, ellipsis

    width("中👨‍⚕️A")       # 5
    ellipsis("中ABC", 3)   # "中…"
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import StrEnum

import regex

from status_table.exceptions import InvalidArgumentError

ESC_CODES = regex.compile(r"\x1b\[[0-9;]*[a-zA-Z]")
EMOJI = regex.compile(r"\p{Emoji_Presentation}")
EAST_ASIA = regex.compile(r"\p{Han}|\p{Hiragana}|\p{Katakana}|\p{Hangul}")

_TOKENS = regex.compile(rf"{ESC_CODES.pattern}|\X")

DEFAULT_ELLIPSIS_MARKER = "…"


class Align(StrEnum):
    """Horizontal alignment modes."""

    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"


def _token_width(token: str) -> int:
    if ESC_CODES.fullmatch(token):
        return 0
    if EMOJI.search(token) or EAST_ASIA.search(token):
        return 2
    return 1


def _tokens(text: str) -> Iterator[tuple[str, int]]:
    """Yield each escape sequence or grapheme cluster with its display width."""
    for match in _TOKENS.finditer(text):
        token = match.group()
        yield token, _token_width(token)


def width(text: str) -> int:
    """Calculate the display width of a string in a terminal.

    Args:
        text: Input string, may contain ANSI escape sequences.

    Returns:
        Display width in columns.
    """
    return sum(w for _, w in _tokens(text))


def truncate(text: str, max_width: int) -> str:
    """Cut a string down to a display width.

    Escape sequences before the cut point are kept even though they take no
    columns. A cluster that would cross ``max_width`` is dropped entirely.

    Args:
        text: Input string.
        max_width: Maximum display width.

    Returns:
        The original string if it already fits, otherwise its longest prefix
        that fits (empty for non-positive widths).
    """
    if width(text) <= max_width:
        return text
    if max_width <= 0:
        return ""
    current = 0
    position = 0
    for token, w in _tokens(text):
        current += w
        if current > max_width:
            break
        position += len(token)
    return text[:position]


def ellipsis(text: str, max_width: int, marker: str = DEFAULT_ELLIPSIS_MARKER) -> str:
    """Fit a string into a display width, appending a marker when it is cut.

    Args:
        text: Input string.
        max_width: Target display width.
        marker: Marker appended to truncated strings.

    Returns:
        The original string if it fits, otherwise the truncated string plus marker.

    Raises:
        InvalidArgumentError: If the marker alone is wider than ``max_width``.
    """
    marker_width = width(marker)
    if marker_width > max_width:
        raise InvalidArgumentError(
            f"Marker too long: {marker!r}",
            details=f"marker width {marker_width} exceeds {max_width}",
        )
    if width(text) <= max_width:
        return text
    return truncate(text, max_width - marker_width) + marker


def align(text: str, target_width: int, mode: Align | str = Align.LEFT) -> str:
    """Pad a string with spaces to a display width.

    Never truncates: a string already as wide as ``target_width`` is returned
    unchanged.

    Args:
        text: Input string.
        target_width: Target display width.
        mode: ``left``, ``right`` or ``center``. Center puts the smaller half
            of an odd padding on the left.

    Returns:
        The padded string.

    Raises:
        InvalidArgumentError: If ``mode`` is not a valid alignment.
    """
    try:
        mode = Align(mode)
    except ValueError as e:
        raise InvalidArgumentError(f"Invalid align value: {mode!r}") from e
    padding = target_width - width(text)
    if padding <= 0:
        return text
    if mode is Align.LEFT:
        return text + " " * padding
    if mode is Align.RIGHT:
        return " " * padding + text
    left = padding // 2
    return " " * left + text + " " * (padding - left)
