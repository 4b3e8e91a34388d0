"""
Data structures shared by the SQL core.

These are plain value objects: column descriptors derived from record
types, the tabular payload sent as a table-valued parameter, and the
database parameter kinds used when binding.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Tuple


class DbKind(str, Enum):
    """SQL Server parameter kinds."""

    NVARCHAR = "NVARCHAR"
    VARCHAR = "VARCHAR"
    UNIQUEIDENTIFIER = "UNIQUEIDENTIFIER"
    BIGINT = "BIGINT"
    BINARY = "BINARY"
    BIT = "BIT"
    DATETIME = "DATETIME"
    DECIMAL = "DECIMAL"
    FLOAT = "FLOAT"
    INT = "INT"
    REAL = "REAL"
    SMALLINT = "SMALLINT"
    TINYINT = "TINYINT"
    UDT = "UDT"
    STRUCTURED = "STRUCTURED"
    DATETIMEOFFSET = "DATETIMEOFFSET"


class ParameterDirection(str, Enum):
    """Direction of a bound parameter."""

    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class ColumnDescriptor:
    """
    One column of a record type's tabular layout.

    Attributes:
        name: Member name, used verbatim as the table type column name
        kind: Database kind of the column (enums are recorded as INT)
        python_type: Unwrapped Python type of the member
        accessor: Read-only projection from a record to the column value
    """

    name: str
    kind: DbKind
    python_type: type
    accessor: Callable[[Any], Any] = field(compare=False, repr=False)


@dataclass(frozen=True)
class TabularColumn:
    """Schema entry of a tabular payload."""

    name: str
    kind: DbKind


@dataclass
class TabularPayload:
    """
    Rows for a single table-valued parameter.

    Attributes:
        type_name: Fully qualified table type name, e.g. ``dbo.Contact``
        columns: Ordered column schema
        rows: One tuple per record, values in column order
    """

    type_name: str
    columns: Tuple[TabularColumn, ...]
    rows: List[Tuple[Any, ...]] = field(default_factory=list)

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def __len__(self) -> int:
        return len(self.rows)

    def to_frame(self) -> "Any":
        """
        Return the payload as a pandas DataFrame.

        The frame keeps the declared column order even when there are no rows.
        """
        import pandas as pd

        return pd.DataFrame.from_records(self.rows, columns=self.column_names)
