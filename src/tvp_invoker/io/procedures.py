"""
Invocation of stored procedures with table-valued parameters.

The simplest usage follows convention over configuration:

1. Table types and procedures live in the ``dbo`` schema.
2. The table type is named after the record class (``Contact`` ->
   ``dbo.Contact``).
3. The procedure is ``dbo.Save<Plural>`` (``Contact`` -> ``dbo.SaveContacts``,
   ``Company`` -> ``dbo.SaveCompanies``).
4. Convention-only calls take a single record type.

    >>> invoker = TvpProcedureInvoker()
    >>> invoker.execute(engine, Contact, contacts)
    10

Anything else is registered first:

    >>> invoker.register([Contact, EmployeeContact],
    ...                  "dbo.ProcessEmployeeContacts",
    ...                  [None, "hr.uddtEmployeeContact"])
    >>> invoker.execute(engine, [Contact, EmployeeContact], contacts, employees)

Once a type set is registered, other procedures taking the same table
types are called by name; trailing scalar arguments follow the record
collections:

    >>> invoker.execute(engine, Contact, contacts, False, 12,
    ...                 procedure_name="dbo.SaveContactPreferences")

Arguments are bound by position, never by name, and the procedure's integer
RETURN value is the result; other result sets are ignored.
"""

from functools import lru_cache
from typing import Any, Optional, Sequence

from tvp_invoker.exceptions import ExecutionError
from tvp_invoker.infrastructure.registry import (
    ProcedureDescriptor,
    ProcedureRegistry,
    get_default_registry,
)
from tvp_invoker.infrastructure.registry.core import RecordTypes
from tvp_invoker.infrastructure.sql.core.parameters import RESULT_PARAMETER
from tvp_invoker.infrastructure.sql.operations.procedure_call import (
    ProcedureCall,
    ProcedureCallBuilder,
)
from tvp_invoker.io.executor import CommandExecutor, SqlServerCommandExecutor


class TvpProcedureInvoker:
    """Registers and executes TVP stored procedures."""

    def __init__(
        self,
        registry: Optional[ProcedureRegistry] = None,
        executor: Optional[CommandExecutor] = None,
    ):
        self.registry = registry if registry is not None else get_default_registry()
        self.executor = executor or SqlServerCommandExecutor()
        self.builder = ProcedureCallBuilder(self.registry)

    def register(
        self,
        record_types: RecordTypes,
        procedure_name: Optional[str] = None,
        tabular_type_names: Optional[Sequence[Optional[str]]] = None,
    ) -> ProcedureDescriptor:
        return self.registry.register(record_types, procedure_name, tabular_type_names)

    def prepare(
        self,
        connection: Any,
        record_types: RecordTypes,
        *args: Any,
        procedure_name: Optional[str] = None,
    ) -> ProcedureCall:
        """Compose a call without executing it."""
        return self.builder.compose(connection, record_types, args, procedure_name)

    @staticmethod
    def _result(call: ProcedureCall, outputs: dict) -> int:
        value = outputs.get(RESULT_PARAMETER)
        if value is None:
            raise ExecutionError(
                "Stored procedure returned no value", procedure_name=call.procedure_name
            )
        call.result_parameter.value = int(value)
        return call.result_parameter.value

    def execute(
        self,
        connection: Any,
        record_types: RecordTypes,
        *args: Any,
        procedure_name: Optional[str] = None,
    ) -> int:
        """
        Execute a TVP stored procedure and return its RETURN value.

        Args:
            connection: SQLAlchemy Engine or database URL
            record_types: Record class, or ordered record classes, one per
                leading collection argument
            *args: Record collections followed by scalar arguments
            procedure_name: Procedure to call; the registered (or
                convention-derived) procedure when omitted

        Returns:
            The procedure's integer return value
        """
        call = self.prepare(connection, record_types, *args, procedure_name=procedure_name)
        outputs = self.executor.execute(
            connection, call.statement, call.parameters, call.procedure_name
        )
        return self._result(call, outputs)

    async def execute_async(
        self,
        connection: Any,
        record_types: RecordTypes,
        *args: Any,
        procedure_name: Optional[str] = None,
    ) -> int:
        """Asynchronous form of execute(); composes the identical call."""
        call = self.prepare(connection, record_types, *args, procedure_name=procedure_name)
        outputs = await self.executor.execute_async(
            connection, call.statement, call.parameters, call.procedure_name
        )
        return self._result(call, outputs)


@lru_cache()
def get_default_invoker() -> TvpProcedureInvoker:
    """Return the invoker bound to the process-wide registry."""
    return TvpProcedureInvoker(get_default_registry())


def register_procedure(
    record_types: RecordTypes,
    procedure_name: Optional[str] = None,
    tabular_type_names: Optional[Sequence[Optional[str]]] = None,
) -> ProcedureDescriptor:
    """Register a procedure in the process-wide registry."""
    return get_default_registry().register(record_types, procedure_name, tabular_type_names)


def execute_tvp_procedure(
    connection: Any,
    record_types: RecordTypes,
    *args: Any,
    procedure_name: Optional[str] = None,
) -> int:
    return get_default_invoker().execute(
        connection, record_types, *args, procedure_name=procedure_name
    )


async def execute_tvp_procedure_async(
    connection: Any,
    record_types: RecordTypes,
    *args: Any,
    procedure_name: Optional[str] = None,
) -> int:
    return await get_default_invoker().execute_async(
        connection, record_types, *args, procedure_name=procedure_name
    )
