"""Declarative table settings.

A table layout can be described in YAML instead of code. Only named
references are available there: row function names for ``func``,
registered formatter names or ``str.format`` templates for ``format``, and
summary kind names for ``summary``.

Config location: ~/.config/status-table/table.yaml

Example:
    show_summary: true
    columns:
      - kind: column
        name: file
        is_id: true
      - kind: separator
        text: " | "
      - kind: column
        name: pct
        func: percent
        format: "{}%"
        width: 4
        align: right
        summary: percent
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from status_table.exceptions import InvalidArgumentError
from status_table.strings import DEFAULT_ELLIPSIS_MARKER, Align
from status_table.terminal import INVERT

if TYPE_CHECKING:
    from status_table.table import TableConfigurator

ENV_PREFIX = "STATUS_TABLE_"
_TRUE_VALUES = {"1", "true", "yes", "on"}


class ColumnSettings(BaseModel):
    """Declarative data column."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    kind: Literal["column"] = "column"
    name: str = Field(min_length=1, description="Column name and default row field")
    is_id: bool = Field(default=False, description="Whether this column holds the row id")
    func: str | None = Field(default=None, description="Row function name")
    format: str | None = Field(default=None, description="Formatter name or template")
    width: int | None = Field(default=None, ge=0, description="Fixed display width")
    align: Align = Field(default=Align.LEFT, description="Alignment")
    summary: str | None = Field(default=None, description="Summary kind name")


class SeparatorSettings(BaseModel):
    """Declarative separator."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["separator"] = "separator"
    text: str = " "


ColumnEntry = Annotated[ColumnSettings | SeparatorSettings, Field(discriminator="kind")]


class TableSettings(BaseModel):
    """Settings for a :class:`~status_table.table.StatusTable`.

    Attributes:
        show_summary: Whether to print the summary line.
        summary_prefix: Text printed before the summary line.
        summary_values: Values for columns with ``summary: value``.
        ellipsis_marker: Marker used when text is cut.
        columns: Column and separator definitions in display order.
    """

    model_config = ConfigDict(extra="forbid")

    show_summary: bool = False
    summary_prefix: str = INVERT
    summary_values: dict[str, Any] = Field(default_factory=dict)
    ellipsis_marker: str = DEFAULT_ELLIPSIS_MARKER
    columns: list[ColumnEntry] = Field(default_factory=list)

    @field_validator("ellipsis_marker")
    @classmethod
    def validate_ellipsis_marker(cls, v: str) -> str:
        """Reject empty markers."""
        if not v:
            raise ValueError("ellipsis_marker can not be empty")
        return v

    def apply(self, configurator: TableConfigurator) -> None:
        """Declare these settings through a table configurator."""
        for entry in self.columns:
            if isinstance(entry, SeparatorSettings):
                configurator.separator(entry.text)
            else:
                configurator.column(
                    entry.name,
                    is_id=entry.is_id,
                    func=entry.func,
                    format=entry.format,
                    width=entry.width,
                    align=entry.align,
                    summary=entry.summary,
                )
        configurator.summary(self.show_summary, prefix=self.summary_prefix, **self.summary_values)


def get_config_path() -> Path:
    """Get the default settings file path."""
    return Path.home() / ".config" / "status-table" / "table.yaml"


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    show = os.environ.get(f"{ENV_PREFIX}SHOW_SUMMARY")
    if show is not None:
        overrides["show_summary"] = show.strip().lower() in _TRUE_VALUES
    prefix = os.environ.get(f"{ENV_PREFIX}SUMMARY_PREFIX")
    if prefix is not None:
        overrides["summary_prefix"] = prefix
    return overrides


def load_settings(path: Path | None = None) -> TableSettings:
    """Load table settings from YAML and environment.

    Priority:
    1. Environment variables (STATUS_TABLE_SHOW_SUMMARY, STATUS_TABLE_SUMMARY_PREFIX)
    2. Settings file (``path`` or ~/.config/status-table/table.yaml)
    3. Defaults

    A missing default file is not an error; a missing explicit path is.

    Raises:
        InvalidArgumentError: If the file cannot be read or is invalid.
    """
    config_path = path or get_config_path()
    data: dict[str, Any] = {}
    if config_path.exists():
        try:
            with config_path.open() as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidArgumentError("Invalid settings file format", details=str(e)) from e
        if loaded is not None and not isinstance(loaded, dict):
            raise InvalidArgumentError(
                "Invalid settings file", details=f"{config_path}: expected a mapping"
            )
        data = loaded or {}
    elif path is not None:
        raise InvalidArgumentError("Settings file not found", details=str(config_path))

    data.update(_env_overrides())
    try:
        return TableSettings(**data)
    except ValidationError as e:
        raise InvalidArgumentError("Invalid table settings", details=str(e)) from e
