"""Live status table.

A :class:`StatusTable` draws one terminal line per unit of work and repaints
lines in place as worker threads report progress.

Usage:
    table = StatusTable()
    with table.configure() as cfg:
        cfg.column("file", is_id=True)
        cfg.separator(" ")
        cfg.column("pct", func="percent", format="{}%", width=4, align="right")
        cfg.inactivate_if(lambda row: row["current"] >= row["total"])

    table.append(file="a.tar", current=0, total=100)
    table.update(file="a.tar", current=40)
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager
from datetime import datetime
from typing import IO, TYPE_CHECKING, Any, overload

from status_table import terminal
from status_table.columns import Column, ColumnModel, Separator
from status_table.exceptions import InvalidArgumentError, NotReadyError
from status_table.functions import TableFunctions
from status_table.logging import get_logger
from status_table.render import RenderPipeline
from status_table.rows import Row, RowSnapshot, now
from status_table.strings import DEFAULT_ELLIPSIS_MARKER, Align

if TYPE_CHECKING:
    from status_table.config import TableSettings

logger = get_logger(__name__)

Adjust = Callable[[dict[str, Any]], Mapping[str, Any] | None]
Predicate = Callable[[RowSnapshot], bool]

DEFAULT_SUMMARY_PREFIX = terminal.INVERT


class TableConfigurator:
    """Configuration DSL handed out by :meth:`StatusTable.configure`.

    Every method returns the configurator so calls can be chained.
    """

    def __init__(self, table: StatusTable) -> None:
        self._table = table
        self._summary_declared = False

    def column(
        self,
        name: str,
        *,
        is_id: bool = False,
        func: Callable[[Any], Any] | str | None = None,
        format: Callable[[Any], str] | str | None = None,
        width: int | None = None,
        align: Align | str | None = None,
        summary: Callable[[], Any] | str | bool | None = None,
    ) -> TableConfigurator:
        """Declare a data column. See :meth:`ColumnModel.declare_column`."""
        self._table.columns.declare_column(
            name,
            is_id=is_id,
            func=func,
            format=format,
            width=width,
            align=align,
            summary=summary,
        )
        return self

    def separator(self, text: str = " ") -> TableConfigurator:
        """Declare a literal separator between columns."""
        self._table.columns.declare_separator(text)
        return self

    def inactivate_if(self, predicate: Predicate) -> TableConfigurator:
        """Set the condition that turns an updated row inactive."""
        if not callable(predicate):
            raise InvalidArgumentError("Inactivation condition must be callable")
        self._table.inactivate_if = predicate
        return self

    def terminal(self, stream: IO[str]) -> TableConfigurator:
        """Set the output stream; it must be an interactive terminal."""
        if not terminal.is_interactive(stream):
            raise InvalidArgumentError(f"Invalid terminal value: {stream!r}")
        self._table.stream = stream
        return self

    def terminal_width(self, query: Callable[[], int]) -> TableConfigurator:
        """Override how the current terminal width is obtained."""
        if not callable(query):
            raise InvalidArgumentError(f"Invalid terminal width query: {query!r}")
        self._table._width_query = query
        return self

    def summary(
        self, show: bool | None = None, *, prefix: str | None = None, **values: Any
    ) -> TableConfigurator:
        """Enable the summary line.

        Args:
            show: Show or hide the summary line. Calling ``summary()`` without
                it enables the line unless it was explicitly disabled before.
            prefix: Text printed before the summary line, reverse video by default.
            **values: Values for columns declared with ``summary="value"``.
        """
        if show is not None:
            self._table.show_summary = bool(show)
            self._summary_declared = True
        elif not self._summary_declared:
            self._table.show_summary = True
            self._summary_declared = True
        if prefix is not None:
            if not isinstance(prefix, str):
                raise InvalidArgumentError(f"Invalid summary prefix: {prefix!r}")
            self._table.summary_prefix = prefix
        self._table.summary_values.update(values)
        return self


class StatusTable(RenderPipeline):
    """Multi-row live status table.

    The table is passive: it runs on whichever thread calls it. Structural
    changes (append, reset, full renders) are serialized by a table-wide
    lock; updates of different rows only take their own row lock.

    Args:
        stream: Output stream, ``sys.stdout`` by default.
        terminal_width: Callable returning the terminal width in columns.
            By default rich is asked for the size of ``stream``.
        ellipsis_marker: Marker used when cells or lines are cut.
    """

    def __init__(
        self,
        stream: IO[str] | None = None,
        *,
        terminal_width: Callable[[], int] | None = None,
        ellipsis_marker: str = DEFAULT_ELLIPSIS_MARKER,
    ) -> None:
        super().__init__()
        self._lock = threading.RLock()
        self._rows: list[Row] = []
        self._index: dict[Any, Row] = {}
        self._started = now()
        self._width_query = terminal_width
        self._console_query: tuple[IO[str], Callable[[], int]] | None = None

        self.functions = TableFunctions(self)
        self.columns = ColumnModel(self.functions)
        self.stream: IO[str] = stream if stream is not None else sys.stdout
        self.show_summary = False
        self.summary_prefix = DEFAULT_SUMMARY_PREFIX
        self.summary_values: dict[str, Any] = {}
        self.inactivate_if: Predicate | None = None
        self.ellipsis_marker = ellipsis_marker

    @classmethod
    def from_settings(
        cls,
        settings: TableSettings,
        stream: IO[str] | None = None,
        *,
        terminal_width: Callable[[], int] | None = None,
        inactivate_if: Predicate | None = None,
    ) -> StatusTable:
        """Build a configured table from declarative settings."""
        table = cls(stream, terminal_width=terminal_width, ellipsis_marker=settings.ellipsis_marker)
        with table.configure() as cfg:
            settings.apply(cfg)
            if inactivate_if is not None:
                cfg.inactivate_if(inactivate_if)
        return table

    # Configuration

    @overload
    def configure(self) -> AbstractContextManager[TableConfigurator]: ...

    @overload
    def configure(self, callback: Callable[[TableConfigurator], Any]) -> StatusTable: ...

    def configure(
        self, callback: Callable[[TableConfigurator], Any] | None = None
    ) -> AbstractContextManager[TableConfigurator] | StatusTable:
        """Open the configuration phase.

        Used as ``with table.configure() as cfg:``, or called with a callback
        that receives the configurator. Leaving the block (or returning from
        the callback) freezes the column model. If the summary line is
        enabled, one output line is reserved for it.

        Raises:
            NotReadyError: If the table was already configured, or if the
                configuration ends without an id column.
        """
        if callback is None:
            return self._configuration()
        with self._configuration() as cfg:
            callback(cfg)
        return self

    @contextmanager
    def _configuration(self) -> Iterator[TableConfigurator]:
        with self._lock:
            if self.columns.frozen:
                raise NotReadyError("StatusTable is already configured")
            yield TableConfigurator(self)
            if not self.columns.configured():
                raise NotReadyError(
                    "StatusTable configuration is incomplete",
                    details="an id column and at least one column definition are required",
                )
            self.columns.freeze()
            if self.show_summary:
                self._write("\n")
        logger.debug(
            "Table configured",
            id_field=self.columns.id_field,
            columns=len(self.columns.definitions),
            show_summary=self.show_summary,
        )

    def terminal_width(self) -> int:
        """Current printable width of the output terminal."""
        if self._width_query is not None:
            return self._width_query()
        if self._console_query is None or self._console_query[0] is not self.stream:
            self._console_query = (self.stream, terminal.console_width(self.stream))
        return self._console_query[1]()

    @property
    def definitions(self) -> tuple[Column | Separator, ...]:
        return self.columns.definitions

    @property
    def id_field(self) -> str | None:
        return self.columns.id_field

    # State

    def configured(self) -> bool:
        return self.columns.configured()

    def available(self) -> bool:
        """Whether the output stream is an interactive terminal."""
        return terminal.is_interactive(self.stream)

    def _ensure_ready(self) -> None:
        if not (self.available() and self.configured()):
            raise NotReadyError(
                "StatusTable is not ready for work",
                details=f"configured={self.configured()}, available={self.available()}",
            )

    def reset(self) -> StatusTable:
        """Remove all rows and restart the table clock. Columns are kept."""
        with self._lock:
            self._rows = []
            self._index = {}
            self._started = now()
        logger.debug("Table reset")
        return self

    def set_summary_values(self, **values: Any) -> None:
        """Set values shown by columns declared with ``summary="value"``.

        They appear on the next render.
        """
        with self._lock:
            self.summary_values.update(values)

    # Data manipulation

    def _row_id(self, fields: Mapping[str, Any]) -> Any:
        row_id = fields.get(self.columns.id_field or "")
        if row_id is None:
            raise InvalidArgumentError("Row id must be specified", details=f"field: {self.id_field}")
        try:
            hash(row_id)
        except TypeError as e:
            raise InvalidArgumentError(f"Row id must be hashable: {row_id!r}") from e
        return row_id

    def _adjusted(self, fields: dict[str, Any], adjust: Adjust | None, row_id: Any) -> dict[str, Any]:
        if adjust is None:
            return fields
        result = adjust(fields)
        if result is not None:
            fields = dict(result)
        if fields.get(self.columns.id_field or "") != row_id:
            raise InvalidArgumentError(f"Row id can not be changed: {row_id!r}")
        return fields

    def append(
        self,
        fields: Mapping[str, Any] | None = None,
        /,
        *,
        adjust: Adjust | None = None,
        **values: Any,
    ) -> RowSnapshot:
        """Add a row and repaint the table.

        Args:
            fields: Row fields; keyword arguments are merged over them.
            adjust: Callback receiving the new row's field dict before it is
                inserted. It may edit the dict in place or return a new mapping.

        Returns:
            Snapshot of the new row.

        Raises:
            NotReadyError: If the table is not configured or has no terminal.
            InvalidArgumentError: If the id is missing or already used.
        """
        self._ensure_ready()
        data = {**(fields or {}), **values}
        row_id = self._row_id(data)
        row = Row(self._adjusted(data, adjust, row_id))
        with self._lock:
            if row_id in self._index:
                raise InvalidArgumentError(f"Row with id {row_id!r} already exists")
            self._rows.append(row)
            self._index[row_id] = row
            self._render_table(reserve=1)
            snapshot = row.snapshot()
        logger.debug("Row appended", row_id=row_id, rows=len(self._rows))
        return snapshot

    def update(
        self,
        fields: Mapping[str, Any] | None = None,
        /,
        *,
        adjust: Adjust | None = None,
        **values: Any,
    ) -> RowSnapshot:
        """Merge fields into an existing row and repaint it.

        When the row is active and the inactivation condition now holds, the
        row is marked finished and the whole table is repainted; otherwise
        only the row's own line (and the summary line) is.

        Args:
            fields: Fields to merge, must include the row id; keyword
                arguments are merged over them.
            adjust: Callback receiving the merged field dict before it is stored.

        Returns:
            Snapshot of the updated row.

        Raises:
            NotReadyError: If the table is not configured or has no terminal.
            InvalidArgumentError: If the id is missing or unknown.
        """
        self._ensure_ready()
        data = {**(fields or {}), **values}
        row_id = self._row_id(data)
        row = self._index.get(row_id)
        if row is None:
            raise InvalidArgumentError(f"Row with id {row_id!r} does not exist")
        with row.lock:
            if self._index.get(row_id) is not row:
                raise InvalidArgumentError(f"Row with id {row_id!r} does not exist")
            row.fields = self._adjusted({**row.fields, **data}, adjust, row_id)
            if row.active and self.inactivate_if is not None and self.inactivate_if(row.snapshot()):
                row.deactivate()
                logger.debug("Row finished", row_id=row_id)
                self._render_table()
            else:
                self._render_line(row)
            return row.snapshot()

    # Data access

    def _find(self, row_id: Any) -> Row | None:
        if self.columns.id_field is None:
            return None
        try:
            return self._index.get(row_id)
        except TypeError:
            return None

    def rows(self) -> list[RowSnapshot]:
        """Snapshots of all rows, in display order as of the last full render."""
        return [row.snapshot() for row in list(self._rows)]

    def row(self, row_id: Any) -> RowSnapshot | None:
        found = self._find(row_id)
        return None if found is None else found.snapshot()

    def count(self) -> int:
        return len(self._rows)

    def empty(self) -> bool:
        return not self._rows

    # Status

    def started(self, row_id: Any = None) -> datetime | None:
        """When the row was appended; without an id, when the table was started or reset."""
        if row_id is None:
            return self._started
        return self.functions.started(row_id)

    def finished(self, row_id: Any = None) -> datetime | None:
        return self.functions.finished(row_id)

    def active(self, row_id: Any = None) -> bool | None:
        """Whether the row is active; without an id, whether any row is."""
        return self.functions.is_active(row_id)

    def done(self, row_id: Any = None) -> bool | None:
        return self.functions.is_done(row_id)

    def elapsed(self, row_id: Any = None) -> float | None:
        return self.functions.elapsed(row_id)

    def estimated(self, row_id: Any = None) -> float | None:
        return self.functions.estimated(row_id)

    def speed(self, row_id: Any = None) -> float | None:
        return self.functions.speed(row_id)

    def percent(self, row_id: Any = None) -> int | None:
        return self.functions.percent(row_id)

    def current(self, row_id: Any = None) -> Any:
        return self.functions.current(row_id)

    def total(self, row_id: Any = None) -> Any:
        return self.functions.total(row_id)

    def active_count(self) -> int:
        return self.functions.active()

    def done_count(self) -> int:
        return self.functions.done()
