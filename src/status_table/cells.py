"""Cell value kinds understood by the render pipeline."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Verbatim:
    """Free-form text that fills the rest of a line.

    A column value of this type is printed as-is: it is not formatted,
    truncated or aligned, it is excluded from column width accounting, and
    no further columns are rendered on that line.

    Example:
        >>> table.update({"id": "a", "status": Verbatim("failed: connection reset")})
    """

    text: str

    def __str__(self) -> str:
        return self.text
