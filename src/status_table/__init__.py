"""status-table: live, multi-row status tables for terminals."""

from status_table.__version__ import __version__
from status_table.cells import Verbatim
from status_table.config import TableSettings, load_settings
from status_table.exceptions import InvalidArgumentError, NotReadyError, StatusTableError
from status_table.formats import register_format
from status_table.functions import TableFunctions
from status_table.rows import RowSnapshot
from status_table.strings import Align, align, ellipsis, truncate, width
from status_table.table import StatusTable, TableConfigurator

__all__ = [
    "Align",
    "InvalidArgumentError",
    "NotReadyError",
    "RowSnapshot",
    "StatusTable",
    "StatusTableError",
    "TableConfigurator",
    "TableFunctions",
    "TableSettings",
    "Verbatim",
    "__version__",
    "align",
    "ellipsis",
    "load_settings",
    "register_format",
    "truncate",
    "width",
]
