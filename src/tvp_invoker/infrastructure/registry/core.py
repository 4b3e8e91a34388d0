"""
Procedure registry: maps ordered record-type sequences to stored procedures.

Each registration is stored under a key built from the fully qualified type
names and the procedure name. The first registration for a type sequence is
also stored under the same sequence with an empty procedure name; that
"default" entry is what calls without an explicit procedure name resolve to.

Insertion uses ``dict.setdefault`` as an atomic compare-and-insert, so reads
never lock and two writers racing on the same key cannot both win. The
loser gets AlreadyRegisteredError, which the lazy registration path turns
into a re-read of the registry.
"""

from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from tvp_invoker.config import get_settings
from tvp_invoker.exceptions import AlreadyRegisteredError, InvalidArgumentError
from tvp_invoker.infrastructure.sql.core.columns import resolve_columns
from tvp_invoker.infrastructure.sql.core.naming import (
    default_procedure_name,
    registration_key,
    tabular_type_name,
)
from tvp_invoker.utils.logging import get_logger

from .models import ProcedureDescriptor, TabularSchema

logger = get_logger(__name__)

RecordTypes = Union[type, Sequence[type]]


def normalize_record_types(record_types: RecordTypes) -> Tuple[type, ...]:
    """Accept a single record class or an ordered sequence of them."""
    if record_types is None:
        raise InvalidArgumentError("Record types cannot be None", parameter="record_types")
    if isinstance(record_types, type):
        return (record_types,)

    types = tuple(record_types)
    if not types:
        raise InvalidArgumentError(
            "At least one record type is required", parameter="record_types"
        )
    for position, record_type in enumerate(types):
        if not isinstance(record_type, type):
            raise InvalidArgumentError(
                f"Record type at position {position} is not a class: {record_type!r}",
                parameter="record_types",
            )
    return types


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class ProcedureRegistry:
    """
    Thread-safe registry of TVP stored procedure registrations.

    Table type naming reads ``tabular_type_schema`` and ``tabular_type_prefix``
    at registration time. Set them before the registry is shared between
    threads; they are plain attributes with no locking.

    Example:
        >>> registry = ProcedureRegistry()
        >>> descriptor = registry.register(
        ...     [Contact, EmployeeContact],
        ...     "dbo.ProcessEmployeeContacts",
        ...     [None, "hr.uddtEmployeeContact"],
        ... )
        >>> [schema.type_name for schema in descriptor.schemas]
        ['dbo.Contact', 'hr.uddtEmployeeContact']
        >>> registry.resolve([Contact]) is None
        True
    """

    def __init__(
        self,
        tabular_type_schema: Optional[str] = None,
        tabular_type_prefix: Optional[str] = None,
        procedure_schema: Optional[str] = None,
    ) -> None:
        settings = get_settings()
        self.tabular_type_schema = tabular_type_schema or settings.tabular_type_schema
        self.tabular_type_prefix = (
            tabular_type_prefix
            if tabular_type_prefix is not None
            else settings.tabular_type_prefix
        )
        self.procedure_schema = procedure_schema or settings.procedure_schema
        self._entries: Dict[str, ProcedureDescriptor] = {}

    # ── Registration ──────────────────────────────────────────────

    def register(
        self,
        record_types: RecordTypes,
        procedure_name: Optional[str] = None,
        tabular_type_names: Optional[Sequence[Optional[str]]] = None,
    ) -> ProcedureDescriptor:
        """
        Register a stored procedure for an ordered record-type sequence.

        Args:
            record_types: Record class or ordered sequence of record classes
            procedure_name: Stored procedure to call; derived from the type
                name (``dbo.Save<Plural>``) when omitted, single type only
            tabular_type_names: Table type names aligned with record_types;
                None or blank entries use the naming convention

        Returns:
            The registered ProcedureDescriptor

        Raises:
            InvalidArgumentError: If no procedure name is given for more than
                one record type
            AlreadyRegisteredError: If the (types, procedure name) key exists
            UnsupportedScalarTypeError: If a record member type is not mapped
        """
        types = normalize_record_types(record_types)

        if _is_blank(procedure_name):
            if len(types) != 1:
                raise InvalidArgumentError(
                    "The procedure name cannot be empty when more than a single "
                    "type is being registered",
                    parameter="procedure_name",
                )
            procedure_name = default_procedure_name(types[0], self.procedure_schema)

        key = registration_key(types, procedure_name)
        default_key = registration_key(types)

        found = self._entries.get(key)
        if found is not None:
            self._entries.setdefault(default_key, found)
            raise AlreadyRegisteredError(found.procedure_name, key)

        default = self._entries.get(default_key)
        if default is not None:
            # Same type set: keep the column layout of the first registration
            if tabular_type_names and any(not _is_blank(n) for n in tabular_type_names):
                logger.warning(
                    "registry.tabular_type_names.ignored",
                    key=key,
                    default_procedure=default.procedure_name,
                )
            descriptor = ProcedureDescriptor(procedure_name, default.schemas)
        else:
            descriptor = ProcedureDescriptor(
                procedure_name, self._build_schemas(types, tabular_type_names)
            )

        existing = self._entries.setdefault(key, descriptor)
        if existing is not descriptor:
            # The winner may not have stored its default entry yet
            self._entries.setdefault(default_key, existing)
            raise AlreadyRegisteredError(existing.procedure_name, key)

        # First writer wins; a later default attempt is a no-op
        self._entries.setdefault(default_key, descriptor)

        logger.info(
            "registry.procedure.registered",
            key=key,
            procedure=procedure_name,
            tabular_types=[schema.type_name for schema in descriptor.schemas],
        )
        return descriptor

    def _build_schemas(
        self,
        types: Tuple[type, ...],
        tabular_type_names: Optional[Sequence[Optional[str]]],
    ) -> Tuple[TabularSchema, ...]:
        overrides: List[Optional[str]] = list(tabular_type_names or [])
        schemas = []
        for position, record_type in enumerate(types):
            override = overrides[position] if position < len(overrides) else None
            schemas.append(
                TabularSchema(
                    type_name=tabular_type_name(
                        record_type,
                        schema=self.tabular_type_schema,
                        prefix=self.tabular_type_prefix,
                        override=override,
                    ),
                    record_type=record_type,
                    columns=tuple(resolve_columns(record_type)),
                )
            )
        return tuple(schemas)

    # ── Lookup ────────────────────────────────────────────────────

    def resolve(
        self, record_types: RecordTypes, procedure_name: Optional[str] = None
    ) -> Optional[ProcedureDescriptor]:
        """
        Look up a registration.

        Resolution order:
        1. Exact (types, procedure_name) key
        2. Default (types, empty name) key

        Returns:
            The descriptor, or None if neither key is registered
        """
        types = normalize_record_types(record_types)
        descriptor = self._entries.get(registration_key(types, procedure_name))
        if descriptor is None:
            descriptor = self._entries.get(registration_key(types))
        return descriptor

    def resolve_or_register(
        self, record_types: RecordTypes, procedure_name: Optional[str] = None
    ) -> ProcedureDescriptor:
        """
        Resolve a registration, auto-registering by convention if absent.

        Auto-registration only works for a single record type. When another
        caller registers the same key concurrently, the AlreadyRegisteredError
        from the losing insert is absorbed and the registry is read again.
        """
        types = normalize_record_types(record_types)
        descriptor = self.resolve(types, procedure_name)
        if descriptor is not None:
            return descriptor

        try:
            return self.register(types)
        except AlreadyRegisteredError as exc:
            logger.debug("registry.auto_registration.race_lost", key=exc.key)
            descriptor = self.resolve(types, procedure_name)
            if descriptor is None:
                raise
            return descriptor

    # ── Introspection ─────────────────────────────────────────────

    def registration_key(
        self, record_types: RecordTypes, procedure_name: Optional[str] = None
    ) -> str:
        return registration_key(normalize_record_types(record_types), procedure_name)

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def items(self) -> Iterable[Tuple[str, ProcedureDescriptor]]:
        return list(self._entries.items())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        """Drop all registrations. Intended for test isolation only."""
        self._entries.clear()


@lru_cache()
def get_default_registry() -> ProcedureRegistry:
    """Return the process-wide registry, created on first use."""
    return ProcedureRegistry()
