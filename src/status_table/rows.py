"""Row records and immutable row snapshots."""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterator, Mapping
from datetime import UTC, datetime
from typing import Any


def now() -> datetime:
    """Current UTC time; the single clock used for row and table timestamps."""
    return datetime.now(UTC)


class RowSnapshot(Mapping[str, Any]):
    """Read-only, disconnected copy of a row.

    Behaves as a mapping over the row's fields. Engine-managed state is
    exposed as attributes.

    Attributes:
        active: Whether the row is still running.
        started: When the row was appended.
        finished: When the row became inactive, or None.
    """

    __slots__ = ("_fields", "active", "finished", "started")

    def __init__(
        self,
        fields: Mapping[str, Any],
        *,
        active: bool,
        started: datetime,
        finished: datetime | None,
    ) -> None:
        self._fields = copy.deepcopy(dict(fields))
        self.active = active
        self.started = started
        self.finished = finished

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(self, "finished"):
            raise AttributeError("RowSnapshot is immutable")
        object.__setattr__(self, name, value)

    def __repr__(self) -> str:
        state = "active" if self.active else "done"
        return f"RowSnapshot({self._fields!r}, {state})"


class Row:
    """Engine-side row record.

    Owned by a single table. The lock serializes updates of this row and is
    never handed to callers; callers and collaborators only see snapshots.
    """

    def __init__(self, fields: Mapping[str, Any]) -> None:
        self.fields: dict[str, Any] = dict(fields)
        self.active = True
        self.started = now()
        self.finished: datetime | None = None
        self.shift = 0
        self.lock = threading.Lock()

    def deactivate(self) -> None:
        self.active = False
        self.finished = now()

    def snapshot(self) -> RowSnapshot:
        return RowSnapshot(
            self.fields,
            active=self.active,
            started=self.started,
            finished=self.finished,
        )
