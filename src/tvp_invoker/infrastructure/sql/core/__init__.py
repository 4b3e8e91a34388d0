"""Core SQL utilities package."""

from .columns import resolve_columns
from .models import (
    ColumnDescriptor,
    DbKind,
    ParameterDirection,
    TabularColumn,
    TabularPayload,
)
from .naming import (
    default_procedure_name,
    qualified_type_name,
    registration_key,
    tabular_type_name,
)
from .parameters import BoundParameter, build_positional_placeholders
from .scalar_types import SCALAR_TYPE_MAP, db_kind_for_value, lookup_db_kind
from .tabular import records_to_tabular, to_tabular

__all__ = [
    "BoundParameter",
    "ColumnDescriptor",
    "DbKind",
    "ParameterDirection",
    "SCALAR_TYPE_MAP",
    "TabularColumn",
    "TabularPayload",
    "build_positional_placeholders",
    "db_kind_for_value",
    "default_procedure_name",
    "lookup_db_kind",
    "qualified_type_name",
    "records_to_tabular",
    "registration_key",
    "resolve_columns",
    "tabular_type_name",
    "to_tabular",
]
