"""Shared pytest fixtures for status_table tests."""

from __future__ import annotations

import io
import os
import re
from collections.abc import Generator
from pathlib import Path

import pytest

from status_table import StatusTable

TERMINAL_WIDTH = 80

_SEQUENCE = re.compile(r"\x1b\[(\d*)([A-Za-z])|\r|\n|[^\x1b\r\n]+")


class FakeTerminal(io.StringIO):
    """In-memory stream that reports itself as an interactive terminal."""

    def isatty(self) -> bool:
        return True


class VirtualScreen:
    """Replays the ANSI subset used by the table onto a grid of lines.

    Supports text, ``\\r``, ``\\n``, cursor up/down, clear-to-end-of-line and
    ignores style sequences. Lines grow as the cursor moves past them.
    """

    def __init__(self, output: str) -> None:
        self.lines: list[str] = [""]
        self.row = 0
        self.col = 0
        for match in _SEQUENCE.finditer(output):
            self._apply(match)

    def _ensure_row(self) -> None:
        while len(self.lines) <= self.row:
            self.lines.append("")

    def _apply(self, match: re.Match[str]) -> None:
        token = match.group(0)
        if token == "\r":
            self.col = 0
        elif token == "\n":
            self.row += 1
            self.col = 0
            self._ensure_row()
        elif match.group(2):
            count = int(match.group(1) or 1)
            command = match.group(2)
            if command == "A":
                self.row = max(0, self.row - count)
            elif command == "B":
                self.row += count
                self._ensure_row()
            elif command == "K":
                self.lines[self.row] = self.lines[self.row][: self.col]
        else:
            line = self.lines[self.row].ljust(self.col)
            self.lines[self.row] = line[: self.col] + token + line[self.col + len(token) :]
            self.col += len(token)

    @property
    def text_lines(self) -> list[str]:
        """Screen lines without trailing blanks or the empty resting line."""
        lines = [line.rstrip() for line in self.lines]
        while lines and not lines[-1]:
            lines.pop()
        return lines


@pytest.fixture
def terminal() -> FakeTerminal:
    """Provide an interactive in-memory output stream."""
    return FakeTerminal()


@pytest.fixture
def make_table(terminal: FakeTerminal):
    """Factory for tables writing to the fake terminal with a fixed width."""

    def factory(width: int = TERMINAL_WIDTH) -> StatusTable:
        return StatusTable(terminal, terminal_width=lambda: width)

    return factory


@pytest.fixture
def table(make_table) -> StatusTable:
    """A table with an id column, a separator and a progress column."""
    table = make_table()
    with table.configure() as cfg:
        cfg.column("id", is_id=True)
        cfg.separator(" | ")
        cfg.column("current", align="right")
        cfg.inactivate_if(lambda row: row["current"] >= row.get("total", 100))
    return table


@pytest.fixture
def read_screen(terminal: FakeTerminal):
    """Return a callable giving the visible lines of the terminal so far."""

    def read() -> list[str]:
        return VirtualScreen(terminal.getvalue()).text_lines

    return read


@pytest.fixture
def temp_dir(tmp_path: Path) -> Generator[Path]:
    """Provide a temporary directory for settings files."""
    yield tmp_path


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables for each test."""
    for key in list(os.environ.keys()):
        if key.startswith("STATUS_TABLE_"):
            monkeypatch.delenv(key, raising=False)
