"""
Mapping between Python scalar types and SQL Server parameter kinds.

The table is fixed: a type that is not listed raises
UnsupportedScalarTypeError instead of falling back to a guessed kind.
Lookup is by exact type, so ``bool`` maps to BIT even though it subclasses
``int``. Enum members are sent as their integer value.
"""

import datetime
import decimal
import enum
import uuid
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from tvp_invoker.exceptions import UnsupportedScalarTypeError

from .models import DbKind, TabularPayload

SCALAR_TYPE_MAP: Dict[type, DbKind] = {
    str: DbKind.NVARCHAR,
    uuid.UUID: DbKind.UNIQUEIDENTIFIER,
    np.int64: DbKind.BIGINT,
    bytes: DbKind.BINARY,
    bool: DbKind.BIT,
    datetime.datetime: DbKind.DATETIME,
    decimal.Decimal: DbKind.DECIMAL,
    float: DbKind.FLOAT,
    int: DbKind.INT,
    np.float32: DbKind.REAL,
    np.int16: DbKind.SMALLINT,
    np.uint8: DbKind.TINYINT,
    object: DbKind.UDT,
    TabularPayload: DbKind.STRUCTURED,
    # pandas.Timestamp carries its UTC offset, unlike a naive datetime
    pd.Timestamp: DbKind.DATETIMEOFFSET,
}


def is_enum_type(python_type: Any) -> bool:
    return isinstance(python_type, type) and issubclass(python_type, enum.Enum)


def is_int_enum(python_type: type) -> bool:
    """True when every member value of an enum type is an int."""
    return all(
        isinstance(member.value, int) and not isinstance(member.value, bool)
        for member in python_type
    )


def lookup_db_kind(python_type: type, member: Optional[str] = None) -> DbKind:
    """
    Map a Python type to its SQL Server parameter kind.

    Args:
        python_type: The type to look up
        member: Optional member name, included in the error message

    Returns:
        The mapped DbKind

    Raises:
        UnsupportedScalarTypeError: If the type is not in the fixed table

    Examples:
        >>> lookup_db_kind(str)
        <DbKind.NVARCHAR: 'NVARCHAR'>
        >>> lookup_db_kind(bool)
        <DbKind.BIT: 'BIT'>
    """
    if is_enum_type(python_type):
        # Enums travel as their integer value; other member values have no kind
        if not is_int_enum(python_type):
            raise UnsupportedScalarTypeError(python_type, member)
        return DbKind.INT
    try:
        return SCALAR_TYPE_MAP[python_type]
    except (KeyError, TypeError):
        # TypeError covers unhashable typing constructs
        raise UnsupportedScalarTypeError(python_type, member) from None


def db_kind_for_value(value: Any) -> DbKind:
    """Resolve the kind of a scalar argument from its runtime type."""
    return lookup_db_kind(type(value))


def coerce_enum(value: Any) -> Any:
    """Replace an enum member by its integer value; other values pass through."""
    if isinstance(value, enum.Enum):
        return int(value.value)
    return value
