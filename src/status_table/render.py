"""Render pipeline for status tables.

Rows are turned into text cells (prerender) and then into ANSI output
(render) in two modes:

* full-table render, under the table-wide lock: re-sorts rows, recomputes
  each row's ``shift`` and each column's established width, and repaints
  every line;
* incremental render, under a single row's lock: repaints one row line (and
  the summary line) in place, escalating to a full render when a cell no
  longer fits its column.

The cursor rests one line below the last table line between renders.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import IO, TYPE_CHECKING, Any, NamedTuple

from status_table import terminal
from status_table.cells import Verbatim
from status_table.columns import (
    AggregateSummary,
    CallableSummary,
    Column,
    ColumnDefinition,
    ColumnModel,
    Separator,
    TableSummary,
    ValueSummary,
)
from status_table.logging import get_logger
from status_table.strings import align, ellipsis, truncate, width

if TYPE_CHECKING:
    from status_table.functions import TableFunctions
    from status_table.rows import Row

logger = get_logger(__name__)


class Cell(NamedTuple):
    """Prerendered cell text.

    ``measured`` cells take part in column width accounting and alignment;
    separators and verbatim tails do not.
    """

    definition: ColumnDefinition
    text: str
    measured: bool


Line = list[Cell]


class RenderPipeline(ABC):
    """Prerender and render steps shared by :class:`~status_table.table.StatusTable`.

    Subclasses provide the row list, the column model, the summary settings
    and the output sink.
    """

    _lock: threading.RLock
    _rows: list[Row]
    columns: ColumnModel
    functions: TableFunctions
    stream: IO[str]
    show_summary: bool
    summary_prefix: str
    summary_values: dict[str, Any]
    ellipsis_marker: str

    def __init__(self) -> None:
        self._sink_lock = threading.Lock()
        self._local = threading.local()

    @abstractmethod
    def terminal_width(self) -> int:
        """Current printable width of the output terminal."""

    # Prerender

    def _fit(self, text: str, max_width: int) -> str:
        if max_width < width(self.ellipsis_marker):
            return truncate(text, max_width)
        return ellipsis(text, max_width, self.ellipsis_marker)

    def _cell(self, column: Column, value: Any, text: str, full: bool) -> Cell | None:
        if isinstance(value, Verbatim):
            return Cell(column, value.text, measured=False)
        if column.width is not None:
            text = align(self._fit(text, column.width), column.width, column.align)
        if not full and width(text) > self.columns.established_width(column):
            return None
        return Cell(column, text, measured=True)

    def _prerender(
        self, value_of: Callable[[Column], Any], text_of: Callable[[Column, Any], str], full: bool
    ) -> Line | None:
        line: Line = []
        for definition in self.columns.definitions:
            if isinstance(definition, Separator):
                line.append(Cell(definition, definition.text, measured=False))
                continue
            value = value_of(definition)
            text = "" if isinstance(value, Verbatim) else text_of(definition, value)
            cell = self._cell(definition, value, text, full)
            if cell is None:
                return None
            line.append(cell)
            if not cell.measured:
                break
        return line

    def _prerender_line(self, row: Row, *, full: bool) -> Line | None:
        """Prerender a row line; None means it needs a full redraw."""
        snapshot = row.snapshot()
        return self._prerender(
            lambda column: column.compute(snapshot),
            lambda column, value: column.render(value),
            full,
        )

    def _summary_value(self, column: Column) -> Any:
        summary = column.summary
        if summary is None:
            return None
        if isinstance(summary, AggregateSummary):
            return self.functions.aggregate_func(summary.function, column.name)()
        if isinstance(summary, TableSummary):
            value = self.functions.table_func(summary.function)()
            if summary.function == "speed" and value is not None:
                return f"{value:.2f}"
            return value
        if isinstance(summary, ValueSummary):
            return self.summary_values.get(column.name)
        if isinstance(summary, CallableSummary):
            return summary.func()
        raise TypeError(f"Unknown summary kind: {summary!r}")

    @staticmethod
    def _summary_text(column: Column, value: Any) -> str:
        if value is None or value == "":
            return ""
        return column.render(value)

    def _prerender_summary(self, *, full: bool) -> Line | None:
        """Prerender the summary line; None means it needs a full redraw."""
        return self._prerender(self._summary_value, self._summary_text, full)

    # Render

    def _compose(self, line: Line) -> str:
        parts = []
        for cell in line:
            if cell.measured and isinstance(cell.definition, Column):
                column = cell.definition
                parts.append(align(cell.text, self.columns.established_width(column), column.align))
            else:
                parts.append(cell.text)
        return self._fit("".join(parts), self.terminal_width())

    def _write(self, text: str) -> None:
        with self._sink_lock:
            self.stream.write(text)
            self.stream.flush()

    def _establish_widths(self, lines: list[Line]) -> None:
        for definition in self.columns.definitions:
            if not isinstance(definition, Column):
                continue
            measured = [
                width(cell.text)
                for line in lines
                for cell in line
                if cell.measured and cell.definition is definition
            ]
            self.columns.set_established_width(
                definition, max(measured, default=definition.width or 0)
            )

    def _render_table(self, reserve: int = 0) -> None:
        """Repaint the whole table under the table-wide lock.

        Args:
            reserve: Blank lines to emit first, growing the table area.
        """
        with self._lock:
            nested = getattr(self._local, "in_table_render", False)
            self._local.in_table_render = True
            try:
                # Unlocked readers must always see a complete row list.
                self._rows = sorted(self._rows, key=lambda r: (not r.active, r.started))
                lines: list[Line] = [
                    self._prerender_line(row, full=True) or [] for row in self._rows
                ]
                if self.show_summary:
                    lines.append(self._prerender_summary(full=True) or [])
                self._establish_widths(lines)

                output = ["\n" * reserve]
                if lines:
                    last = len(lines) - 1
                    output += [terminal.CARRIAGE_RETURN, terminal.cursor_up(len(lines))]
                    for idx, line in enumerate(lines):
                        prefix = self.summary_prefix if self.show_summary and idx == last else ""
                        output.append(
                            f"{terminal.RESET}{terminal.CLEAR_LINE}{prefix}{self._compose(line)}"
                            f"{terminal.RESET}{terminal.CLEAR_LINE}\n"
                        )
                    output.append(terminal.CLEAR_DOWN)
                # Shifts must match the cursor position the terminal is left in.
                with self._sink_lock:
                    for idx, row in enumerate(self._rows):
                        row.shift = len(lines) - idx
                    self.stream.write("".join(output))
                    self.stream.flush()
            finally:
                self._local.in_table_render = nested

    def _repaint(self, text: str, shift: int, prefix: str = "") -> str:
        return (
            f"{terminal.CARRIAGE_RETURN}{terminal.cursor_up(shift)}"
            f"{terminal.RESET}{terminal.CLEAR_LINE}{prefix}{text}"
            f"{terminal.RESET}{terminal.CLEAR_LINE}"
            f"{terminal.CARRIAGE_RETURN}{terminal.cursor_down(shift)}"
        )

    def _render_line(self, row: Row) -> None:
        """Repaint one row line in place, or escalate to a full render."""
        line = self._prerender_line(row, full=False)
        summary = self._prerender_summary(full=False) if self.show_summary else []
        if line is None or summary is None or row.shift <= 0:
            if getattr(self._local, "in_table_render", False):
                return
            logger.debug("Escalating to full render", row_shift=row.shift)
            self._render_table()
            return

        text = self._compose(line)
        summary_text = self._compose(summary) if self.show_summary else ""
        with self._sink_lock:
            output = self._repaint(text, row.shift)
            if self.show_summary:
                output += self._repaint(summary_text, 1, self.summary_prefix)
            self.stream.write(output)
            self.stream.flush()
