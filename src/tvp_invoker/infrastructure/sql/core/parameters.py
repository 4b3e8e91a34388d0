"""
Positional parameter binding for stored procedure calls.

Parameters are named by position (``@P0``, ``@P1``, ...) regardless of the
names declared by the procedure. The return value is captured through a
trailing ``@Result`` output parameter.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from .models import DbKind, ParameterDirection, TabularPayload
from .scalar_types import coerce_enum, db_kind_for_value

RESULT_PARAMETER = "@Result"

# A NULL argument has no observable type; bind it as the smallest VARCHAR
NULL_PARAMETER_KIND = DbKind.VARCHAR
NULL_PARAMETER_SIZE = 1


@dataclass
class BoundParameter:
    """A single parameter bound to a composed statement."""

    name: str
    kind: DbKind
    value: Any = None
    direction: ParameterDirection = ParameterDirection.INPUT
    type_name: Optional[str] = None
    size: Optional[int] = None

    @property
    def is_tabular(self) -> bool:
        return self.kind is DbKind.STRUCTURED


def positional_name(index: int) -> str:
    """
    Examples:
        >>> positional_name(0)
        '@P0'
    """
    return f"@P{index}"


def build_positional_placeholders(count: int) -> List[str]:
    """
    Examples:
        >>> build_positional_placeholders(3)
        ['@P0', '@P1', '@P2']
    """
    return [positional_name(i) for i in range(count)]


def bind_tabular(index: int, payload: TabularPayload) -> BoundParameter:
    return BoundParameter(
        name=positional_name(index),
        kind=DbKind.STRUCTURED,
        value=payload,
        type_name=payload.type_name,
    )


def bind_scalar(index: int, value: Any) -> BoundParameter:
    """
    Bind a scalar argument, typed by its runtime value.

    Raises:
        UnsupportedScalarTypeError: If the value's type is not mapped
    """
    if value is None:
        return BoundParameter(
            name=positional_name(index),
            kind=NULL_PARAMETER_KIND,
            value=None,
            size=NULL_PARAMETER_SIZE,
        )
    return BoundParameter(
        name=positional_name(index),
        kind=db_kind_for_value(value),
        value=coerce_enum(value),
    )


def result_parameter() -> BoundParameter:
    return BoundParameter(
        name=RESULT_PARAMETER,
        kind=DbKind.INT,
        direction=ParameterDirection.OUTPUT,
    )
