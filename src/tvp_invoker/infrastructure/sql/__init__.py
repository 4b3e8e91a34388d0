"""
SQL module for stored procedure call generation.

This module provides the building blocks for calling SQL Server stored
procedures with table-valued parameters: column discovery, the scalar type
map, tabular conversion, positional parameter binding and the EXEC
statement syntax. The call composer lives in ``.operations`` because it
depends on the procedure registry, which in turn depends on this package.
"""

from .core import (
    BoundParameter,
    ColumnDescriptor,
    DbKind,
    ParameterDirection,
    TabularPayload,
    lookup_db_kind,
    records_to_tabular,
    resolve_columns,
    to_tabular,
)
from .dialects.mssql import SqlServerDialect

__all__ = [
    "BoundParameter",
    "ColumnDescriptor",
    "DbKind",
    "ParameterDirection",
    "SqlServerDialect",
    "TabularPayload",
    "lookup_db_kind",
    "records_to_tabular",
    "resolve_columns",
    "to_tabular",
]
