"""
Column discovery for record types.

Turns a record class into the ordered list of ColumnDescriptor entries used
both for the table type schema and for reading row values. Supported record
shapes:

- dataclasses (field order)
- pydantic models (model_fields order)
- plain classes with annotated attributes (annotation order, base classes first)

Annotated read-only properties are appended after the data members.
Collection-valued members have no flat tabular form and are skipped;
``str``, ``bytes`` and ``bytearray`` are kept as scalars.
"""

import collections.abc
import dataclasses
import functools
import inspect
import types
from operator import attrgetter
from typing import Any, ClassVar, Dict, List, Tuple, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from tvp_invoker.exceptions import InvalidStateError

from .models import ColumnDescriptor
from .scalar_types import is_enum_type, lookup_db_kind

_SCALAR_SEQUENCES = (str, bytes, bytearray)


def _type_hints(obj: Any) -> Dict[str, Any]:
    # get_type_hints resolves forward refs and includes parent annotations
    try:
        return get_type_hints(obj)
    except (NameError, TypeError):
        # Unresolvable forward references; fall back to the raw annotations
        return dict(getattr(obj, "__annotations__", {}))


def unwrap_optional(annotation: Any) -> Any:
    """Unwrap Optional[X] / X | None to X."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        non_none = [a for a in get_args(annotation) if a is not type(None)]
        if non_none:
            return non_none[0]
    return annotation


def is_collection_type(annotation: Any) -> bool:
    """True for list/dict/set/tuple-like types, False for text and bytes."""
    origin = get_origin(annotation) or annotation
    if not isinstance(origin, type):
        return False
    if issubclass(origin, _SCALAR_SEQUENCES):
        return False
    return issubclass(origin, collections.abc.Iterable)


def _is_callable_type(annotation: Any) -> bool:
    origin = get_origin(annotation) or annotation
    return origin is collections.abc.Callable


def _data_members(record_type: type) -> List[Tuple[str, Any]]:
    hints = _type_hints(record_type)

    if dataclasses.is_dataclass(record_type):
        return [
            (f.name, hints.get(f.name, f.type)) for f in dataclasses.fields(record_type)
        ]

    if issubclass(record_type, BaseModel):
        return [
            (name, info.annotation)
            for name, info in record_type.model_fields.items()
        ]

    members: List[Tuple[str, Any]] = []
    seen = set()
    for klass in reversed(record_type.__mro__):
        if klass is object:
            continue
        for name in inspect.get_annotations(klass):
            if name in seen:
                continue
            seen.add(name)
            annotation = hints.get(name, Any)
            if get_origin(annotation) is ClassVar:
                continue
            members.append((name, annotation))
    return members


def _property_members(record_type: type, known: set) -> List[Tuple[str, Any]]:
    members: List[Tuple[str, Any]] = []
    for klass in reversed(record_type.__mro__):
        # BaseModel internals are not record members
        if klass is object or klass.__module__.startswith("pydantic"):
            continue
        for name, attr in vars(klass).items():
            if name in known or name.startswith("_"):
                continue
            if isinstance(attr, property):
                getter = attr.fget
            elif isinstance(attr, functools.cached_property):
                getter = attr.func
            else:
                continue
            known.add(name)
            members.append((name, _type_hints(getter).get("return", object)))
    return members


def resolve_columns(record_type: type) -> List[ColumnDescriptor]:
    """
    Resolve the ordered column set of a record type.

    Args:
        record_type: The record class to describe

    Returns:
        ColumnDescriptor list in declaration order

    Raises:
        InvalidStateError: If record_type is None
        UnsupportedScalarTypeError: If a member type has no database kind

    Examples:
        >>> @dataclasses.dataclass
        ... class Company:
        ...     CompanyKey: int
        ...     CompanyName: str
        >>> [c.name for c in resolve_columns(Company)]
        ['CompanyKey', 'CompanyName']
    """
    if record_type is None:
        raise InvalidStateError("Cannot resolve columns: record type is None")

    members = [m for m in _data_members(record_type) if not m[0].startswith("_")]
    members.extend(_property_members(record_type, {name for name, _ in members}))

    columns: List[ColumnDescriptor] = []
    for name, annotation in members:
        python_type = unwrap_optional(annotation)
        if _is_callable_type(python_type) or is_collection_type(python_type):
            continue

        kind = lookup_db_kind(python_type, member=f"{record_type.__name__}.{name}")
        if is_enum_type(python_type):
            python_type = int

        columns.append(
            ColumnDescriptor(
                name=name,
                kind=kind,
                python_type=python_type,
                accessor=attrgetter(name),
            )
        )

    return columns
