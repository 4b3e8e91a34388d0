from dataclasses import dataclass
from typing import List, Tuple

from tvp_invoker.infrastructure.sql.core.models import ColumnDescriptor


@dataclass(frozen=True)
class TabularSchema:
    """Table type name and column layout for one positional record type."""

    type_name: str
    record_type: type
    columns: Tuple[ColumnDescriptor, ...]

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]


@dataclass(frozen=True)
class ProcedureDescriptor:
    """Registered invocation target: procedure name plus per-position schemas."""

    procedure_name: str
    schemas: Tuple[TabularSchema, ...]

    @property
    def record_types(self) -> Tuple[type, ...]:
        return tuple(schema.record_type for schema in self.schemas)
