"""Row, table and aggregate functions for status tables.

Every row/table function takes an optional argument that selects what it is
computed for:

* a row (any mapping, usually a :class:`RowSnapshot`): that row;
* any other value: the row with that id;
* ``None``: the whole table.

Functions return ``None`` when the value cannot be computed (unknown row,
missing ``current``/``total`` fields, zero division).

Usage:
    functions = TableFunctions(table)
    functions.percent(row)        # 45
    functions.elapsed()           # seconds since the table started
    functions.sum("size")         # sum of "size" over all rows

    column("pct", func=functions.row_func("percent"))
    column("size", summary=functions.aggregate_func("sum", "size"))
"""

from __future__ import annotations

import builtins
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

from status_table.exceptions import InvalidArgumentError
from status_table.rows import RowSnapshot, now

if TYPE_CHECKING:
    from status_table.table import StatusTable

CURRENT_FIELD = "current"
TOTAL_FIELD = "total"

ROW_FUNCTIONS = frozenset(
    {
        "started",
        "finished",
        "percent",
        "estimated",
        "elapsed",
        "speed",
        "current",
        "total",
        "is_active",
        "is_done",
    }
)
TABLE_FUNCTIONS = ROW_FUNCTIONS | {"active", "done", "count", "empty"}
AGGREGATE_FUNCTIONS = frozenset({"sum", "avg", "min", "max", "count"})


class TableFunctions:
    """Functions bound to one status table."""

    def __init__(self, table: StatusTable) -> None:
        self._table = table

    def _resolve(self, row: Any) -> RowSnapshot | Mapping[str, Any] | None:
        if isinstance(row, Mapping):
            return row
        return self._table.row(row)

    def _values(self, name: str) -> list[Any]:
        return [r[name] for r in self._table.rows() if r.get(name) is not None]

    # Row or table functions

    def started(self, row: Any = None) -> datetime | None:
        """When the row, or the table, was started."""
        if row is None:
            return self._table.started()
        found = self._resolve(row)
        return getattr(found, "started", None)

    def finished(self, row: Any = None) -> datetime | None:
        """When the row finished; for the table, the last finish once every row is done."""
        if row is None:
            rows = self._table.rows()
            if not rows or any(r.finished is None for r in rows):
                return None
            return builtins.max(r.finished for r in rows if r.finished is not None)
        found = self._resolve(row)
        return getattr(found, "finished", None)

    def elapsed(self, row: Any = None) -> float | None:
        """Seconds from start to finish, or to now while still running."""
        started = self.started(row)
        if started is None:
            return None
        finished = self.finished(row)
        return ((finished or now()) - started).total_seconds()

    def current(self, row: Any = None) -> Any:
        """Current step of the row; for the table, the sum over rows that have a total."""
        if row is None:
            return builtins.sum(
                r[CURRENT_FIELD]
                for r in self._table.rows()
                if r.get(TOTAL_FIELD) is not None and r.get(CURRENT_FIELD) is not None
            )
        found = self._resolve(row)
        return None if found is None else found.get(CURRENT_FIELD)

    def total(self, row: Any = None) -> Any:
        """Total steps of the row or of the whole table."""
        if row is None:
            return builtins.sum(self._values(TOTAL_FIELD))
        found = self._resolve(row)
        return None if found is None else found.get(TOTAL_FIELD)

    def percent(self, row: Any = None) -> int | None:
        """Completion percentage, 0..100."""
        current = self.current(row)
        total = self.total(row)
        if current is None or not total:
            return None
        return int(current * 100 // total)

    def estimated(self, row: Any = None) -> float | None:
        """Estimated remaining seconds, extrapolated from the average speed so far."""
        elapsed = self.elapsed(row)
        current = self.current(row)
        total = self.total(row)
        if elapsed is None or not current or total is None:
            return None
        return (elapsed / current) * (total - current)

    def speed(self, row: Any = None) -> float | None:
        """Average steps per second."""
        elapsed = self.elapsed(row)
        current = self.current(row)
        if not elapsed or current is None:
            return None
        total = self.total(row)
        if self.finished(row) is not None and total is not None:
            return total / elapsed
        return current / elapsed

    def is_active(self, row: Any = None) -> bool | None:
        """Whether the row is active, or whether any row of the table is."""
        if row is None:
            return any(r.active for r in self._table.rows())
        found = self._resolve(row)
        return getattr(found, "active", None)

    def is_done(self, row: Any = None) -> bool | None:
        """Negation of :meth:`is_active`, None for unknown rows."""
        active = self.is_active(row)
        return None if active is None else not active

    # Table-only functions

    def active(self) -> int:
        """Number of active rows."""
        return builtins.sum(1 for r in self._table.rows() if r.active)

    def done(self) -> int:
        """Number of inactive rows."""
        return builtins.sum(1 for r in self._table.rows() if not r.active)

    def empty(self) -> bool:
        return self.count() == 0

    # Aggregate functions

    def count(self, name: str | None = None) -> int:
        """Number of rows, or of distinct non-None values of a field."""
        if name is None:
            return len(self._table.rows())
        return len({repr(v) for v in self._values(name)})

    def sum(self, name: str) -> Any:
        return builtins.sum(self._values(name))

    def avg(self, name: str) -> Any:
        """Average of the non-None values of a field, None when there are none."""
        values = self._values(name)
        if not values:
            return None
        return builtins.sum(values) / len(values)

    def min(self, name: str) -> Any:
        return builtins.min(self._values(name), default=None)

    def max(self, name: str) -> Any:
        return builtins.max(self._values(name), default=None)

    # Function access

    def row_func(self, name: str) -> Callable[[Any], Any]:
        """Return a row function by name, usable as a column ``func``."""
        if name not in ROW_FUNCTIONS:
            raise InvalidArgumentError(f"Invalid row function name: {name!r}")
        method: Callable[[Any], Any] = getattr(self, name)
        return method

    def table_func(self, name: str) -> Callable[[], Any]:
        """Return a table-wide function by name, usable as a column ``summary``."""
        if name not in TABLE_FUNCTIONS:
            raise InvalidArgumentError(f"Invalid table function name: {name!r}")
        method = getattr(self, name)
        return lambda: method()

    def aggregate_func(self, name: str, field: str) -> Callable[[], Any]:
        """Return an aggregate over ``field`` by name, usable as a column ``summary``."""
        if name not in AGGREGATE_FUNCTIONS:
            raise InvalidArgumentError(f"Invalid aggregate function name: {name!r}")
        method = getattr(self, name)
        return lambda: method(field)
