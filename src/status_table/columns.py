"""Column model and configuration validation.

Column definitions are declared once while a table is being configured and
are immutable afterwards. Callback references (``func``, ``format``,
``summary``) are resolved at declaration time into tagged variants so the
render pipeline never has to inspect what kind of reference it was given.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from status_table import formats
from status_table.exceptions import InvalidArgumentError, NotReadyError
from status_table.logging import get_logger
from status_table.strings import Align

if TYPE_CHECKING:
    from status_table.functions import TableFunctions

logger = get_logger(__name__)

AggregateKind = Literal["sum", "avg", "min", "max", "count"]
TableKind = Literal["elapsed", "estimated", "percent", "speed", "current", "total", "active", "done"]

AGGREGATE_SUMMARIES: frozenset[str] = frozenset({"sum", "avg", "min", "max", "count"})
TABLE_SUMMARIES: frozenset[str] = frozenset(
    {"elapsed", "estimated", "percent", "speed", "current", "total", "active", "done"}
)
VALUE_SUMMARY = "value"
NO_SUMMARY = "none"

_FROZEN = ConfigDict(frozen=True, arbitrary_types_allowed=True)


# Value sources


class FieldValue(BaseModel):
    """Read the cell value from a row field."""

    model_config = _FROZEN

    kind: Literal["field"] = "field"
    field: str


class CallableValue(BaseModel):
    """Compute the cell value from the row."""

    model_config = _FROZEN

    kind: Literal["callable"] = "callable"
    func: Callable[[Any], Any]


ValueSource = Annotated[FieldValue | CallableValue, Field(discriminator="kind")]


# Formatters


class TemplateFormat(BaseModel):
    """``str.format`` template applied to the value, e.g. ``"{:>5.1f}%"``."""

    model_config = _FROZEN

    kind: Literal["template"] = "template"
    template: str

    def apply(self, value: Any) -> str:
        return self.template.format(value)


class CallableFormat(BaseModel):
    """Formatter callback, either given directly or resolved from a registered name."""

    model_config = _FROZEN

    kind: Literal["callable"] = "callable"
    func: Callable[[Any], str]
    name: str | None = None

    def apply(self, value: Any) -> str:
        return str(self.func(value))


ValueFormat = Annotated[TemplateFormat | CallableFormat, Field(discriminator="kind")]


# Summaries


class AggregateSummary(BaseModel):
    """Aggregate of the column's own field over all rows."""

    model_config = _FROZEN

    kind: Literal["aggregate"] = "aggregate"
    function: AggregateKind


class TableSummary(BaseModel):
    """Table-wide function value."""

    model_config = _FROZEN

    kind: Literal["table"] = "table"
    function: TableKind


class ValueSummary(BaseModel):
    """Summary override value set through ``summary(**values)``."""

    model_config = _FROZEN

    kind: Literal["value"] = "value"


class CallableSummary(BaseModel):
    """Callback invoked with no arguments."""

    model_config = _FROZEN

    kind: Literal["callable"] = "callable"
    func: Callable[[], Any]


SummarySource = Annotated[
    AggregateSummary | TableSummary | ValueSummary | CallableSummary,
    Field(discriminator="kind"),
]


class Separator(BaseModel):
    """Literal text placed between data columns."""

    model_config = _FROZEN

    text: str = Field(strict=True)


class Column(BaseModel):
    """Data column definition.

    Attributes:
        name: Unique column name, also the default row field.
        is_id: Whether this column holds the row id.
        value: Where the cell value comes from.
        format: How the value becomes text; ``str()`` when absent.
        width: Fixed display width; values are cut with an ellipsis.
        align: Alignment within the column's established width.
        summary: How the summary line value is computed.
    """

    model_config = _FROZEN

    name: str = Field(min_length=1)
    is_id: bool = False
    value: ValueSource
    format: ValueFormat | None = None
    width: int | None = Field(default=None, ge=0, strict=True)
    align: Align = Align.LEFT
    summary: SummarySource | None = None

    def compute(self, row: Any) -> Any:
        if isinstance(self.value, CallableValue):
            return self.value.func(row)
        return row.get(self.value.field)

    def render(self, value: Any) -> str:
        """Turn a raw value into cell text."""
        if value is None:
            return ""
        if self.format is None:
            return str(value)
        return self.format.apply(value)


ColumnDefinition = Column | Separator


class ColumnModel:
    """Ordered, validated column and separator definitions of one table.

    Holds the established (observed) width of each data column, which the
    render pipeline grows on full renders.
    """

    def __init__(self, functions: TableFunctions) -> None:
        self._functions = functions
        self._definitions: list[ColumnDefinition] = []
        self._widths: dict[str, int] = {}
        self._id_field: str | None = None
        self._frozen = False

    @property
    def definitions(self) -> tuple[ColumnDefinition, ...]:
        return tuple(self._definitions)

    @property
    def id_field(self) -> str | None:
        return self._id_field

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def configured(self) -> bool:
        """True once an id column and at least one definition exist."""
        return self._id_field is not None and bool(self._definitions)

    def established_width(self, column: Column) -> int:
        return self._widths[column.name]

    def set_established_width(self, column: Column, value: int) -> None:
        self._widths[column.name] = value

    def _ensure_open(self) -> None:
        if self._frozen:
            raise NotReadyError("Column configuration is closed")

    def declare_column(
        self,
        name: str,
        *,
        is_id: bool = False,
        func: Callable[[Any], Any] | str | None = None,
        format: Callable[[Any], str] | str | None = None,
        width: int | None = None,
        align: Align | str | None = None,
        summary: Callable[[], Any] | str | bool | None = None,
    ) -> Column:
        """Validate and append a data column.

        Args:
            name: Unique, non-empty column name.
            is_id: Mark this column as the row id. Only one column may.
            func: Callable taking the row, or the name of a row function.
                When absent the value is read from the row field ``name``.
            format: Callable, registered formatter name, or ``str.format``
                template.
            width: Fixed non-negative display width.
            align: ``left`` (default), ``right`` or ``center``.
            summary: Summary kind name, callable, or None/False/"none".

        Returns:
            The frozen column definition.

        Raises:
            InvalidArgumentError: If any argument is invalid.
            NotReadyError: If configuration has already ended.
        """
        self._ensure_open()
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(f"Invalid column name: {name!r}")
        if any(isinstance(d, Column) and d.name == name for d in self._definitions):
            raise InvalidArgumentError(f"Column name already exists: {name}")
        if not isinstance(is_id, bool):
            raise InvalidArgumentError(f"Invalid id value: {is_id!r}")
        if is_id and self._id_field is not None:
            raise InvalidArgumentError(f"Id field already exists ({self._id_field})")
        if width is not None and (
            not isinstance(width, int) or isinstance(width, bool) or width < 0
        ):
            raise InvalidArgumentError(f"Invalid width value: {width!r}")
        try:
            align_mode = Align(align) if align is not None else Align.LEFT
        except ValueError as e:
            raise InvalidArgumentError(f"Invalid align value: {align!r}") from e

        try:
            column = Column(
                name=name,
                is_id=is_id,
                value=self._resolve_value(name, func),
                format=self._resolve_format(format),
                width=width,
                align=align_mode,
                summary=self._resolve_summary(summary),
            )
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid column definition: {name}", details=str(e)) from e

        self._definitions.append(column)
        self._widths[name] = width or 0
        if is_id:
            self._id_field = name
        logger.debug("Column declared", column=name, is_id=is_id, width=width)
        return column

    def declare_separator(self, text: str = " ") -> Separator:
        """Append a literal separator.

        Raises:
            InvalidArgumentError: If ``text`` is not a string.
            NotReadyError: If configuration has already ended.
        """
        self._ensure_open()
        if not isinstance(text, str):
            raise InvalidArgumentError(f"Invalid separator: {text!r}")
        separator = Separator(text=text)
        self._definitions.append(separator)
        return separator

    def _resolve_value(self, name: str, func: Any) -> FieldValue | CallableValue:
        if func is None:
            return FieldValue(field=name)
        if isinstance(func, str):
            return CallableValue(func=self._functions.row_func(func))
        if callable(func):
            return CallableValue(func=func)
        raise InvalidArgumentError(f"Invalid func value: {func!r}")

    @staticmethod
    def _resolve_format(value: Any) -> TemplateFormat | CallableFormat | None:
        if value is None:
            return None
        if isinstance(value, str):
            named = formats.get_format(value)
            if named is not None:
                return CallableFormat(func=named, name=value)
            if "{" in value:
                return TemplateFormat(template=value)
            raise InvalidArgumentError(f"Invalid format value: {value!r}")
        if callable(value):
            return CallableFormat(func=value)
        raise InvalidArgumentError(f"Invalid format value: {value!r}")

    @staticmethod
    def _resolve_summary(value: Any) -> SummarySource | None:
        if value is None or value is False or value == NO_SUMMARY:
            return None
        if isinstance(value, str):
            if value in AGGREGATE_SUMMARIES:
                return AggregateSummary(function=value)  # type: ignore[arg-type]
            if value in TABLE_SUMMARIES:
                return TableSummary(function=value)  # type: ignore[arg-type]
            if value == VALUE_SUMMARY:
                return ValueSummary()
        elif callable(value):
            return CallableSummary(func=value)
        raise InvalidArgumentError(f"Invalid summary value: {value!r}")
