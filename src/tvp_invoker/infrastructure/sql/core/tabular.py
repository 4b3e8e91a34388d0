"""
Conversion of record collections into table-valued parameter payloads.

Rows keep the iteration order of the input exactly: no sorting, no
deduplication, no row limit.
"""

from typing import Any, Iterable, Optional, Sequence

from tvp_invoker.exceptions import InvalidArgumentError

from .columns import resolve_columns
from .models import ColumnDescriptor, TabularColumn, TabularPayload
from .naming import tabular_type_name
from .scalar_types import coerce_enum


def to_tabular(
    record_type: type,
    records: Iterable[Any],
    columns: Sequence[ColumnDescriptor],
    type_name: Optional[str] = None,
) -> TabularPayload:
    """
    Build a tabular payload from records and a resolved column set.

    Args:
        record_type: Declared record type, used for the default type name
        records: Records in the order they should be sent
        columns: Column set previously resolved for record_type
        type_name: Table type name; defaults to the naming convention

    Returns:
        TabularPayload with one row per record
    """
    if records is None:
        raise InvalidArgumentError("Records cannot be None", parameter="records")

    schema = tuple(TabularColumn(name=c.name, kind=c.kind) for c in columns)
    accessors = [c.accessor for c in columns]

    rows = [tuple(coerce_enum(get(record)) for get in accessors) for record in records]

    return TabularPayload(
        type_name=type_name or tabular_type_name(record_type),
        columns=schema,
        rows=rows,
    )


def records_to_tabular(
    records: Iterable[Any], record_type: type, type_name: Optional[str] = None
) -> TabularPayload:
    """
    Convert records of a single type, resolving the columns on the fly.

    Example:
        >>> payload = records_to_tabular(contacts, Contact)
        >>> payload.type_name
        'dbo.Contact'
    """
    if records is None:
        raise InvalidArgumentError("Records cannot be None", parameter="records")
    return to_tabular(record_type, records, resolve_columns(record_type), type_name)
