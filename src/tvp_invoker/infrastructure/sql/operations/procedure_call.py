"""
Stored procedure call composition.

Builds the EXEC statement text and the ordered parameter list for a call
whose leading arguments are record collections (sent as table-valued
parameters) followed by optional scalar arguments.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Sequence

from tvp_invoker.exceptions import (
    InvalidArgumentError,
    TabularArgumentCountError,
    TypeMismatchError,
)
from tvp_invoker.infrastructure.registry import (
    ProcedureRegistry,
    get_default_registry,
    normalize_record_types,
)
from tvp_invoker.infrastructure.registry.core import RecordTypes
from tvp_invoker.utils.logging import get_logger

from ..core.parameters import (
    BoundParameter,
    bind_scalar,
    bind_tabular,
    build_positional_placeholders,
    positional_name,
    result_parameter,
)
from ..core.tabular import to_tabular
from ..dialects.mssql import SqlServerDialect

logger = get_logger(__name__)


class Dialect(Protocol):
    """Protocol for SQL dialects able to build procedure calls."""

    name: str

    def build_exec(self, procedure_name: str, placeholders: List[str]) -> str: ...


@dataclass
class ProcedureCall:
    """A composed stored procedure call, ready for the command executor."""

    procedure_name: str
    statement: str
    parameters: List[BoundParameter]

    @property
    def result_parameter(self) -> BoundParameter:
        return self.parameters[-1]

    @property
    def input_parameters(self) -> List[BoundParameter]:
        return self.parameters[:-1]


def _describe(argument: Any) -> str:
    return type(argument).__qualname__


def _materialize_records(
    argument: Any, record_type: type, parameter: str
) -> List[Any]:
    """Check that argument is a collection of record_type and list it once."""
    expected = f"Iterable[{record_type.__qualname__}]"
    if (
        argument is None
        or isinstance(argument, (str, bytes, bytearray, Mapping))
        or not isinstance(argument, Iterable)
    ):
        raise TypeMismatchError(_describe(argument), expected, parameter)

    records = list(argument)
    for record in records:
        if not isinstance(record, record_type):
            raise TypeMismatchError(
                f"{_describe(argument)}[{_describe(record)}]", expected, parameter
            )
    return records


class ProcedureCallBuilder:
    """
    Composer for TVP stored procedure calls.

    All parameters are bound strictly by position: ``@P0`` is the first
    declared procedure parameter, ``@P1`` the second, and so on, with the
    table-valued parameters first. Nothing checks the procedure's actual
    signature. If a procedure is ALTERed so that its parameters are
    reordered or a new one is inserted, calls keep succeeding with values
    bound to the wrong parameters. Keep procedure signatures and call sites
    in step, and give trailing scalar parameters defaults on the SQL side.

    Example:
        >>> builder = ProcedureCallBuilder(ProcedureRegistry())
        >>> call = builder.compose(engine, [Contact], [contacts])
        >>> call.statement
        'EXEC @Result = dbo.SaveContacts @P0'
    """

    def __init__(
        self,
        registry: Optional[ProcedureRegistry] = None,
        dialect: Optional[Dialect] = None,
    ):
        """
        Initialize the builder.

        Args:
            registry: Registry used to resolve procedures; the process-wide
                default registry when omitted
            dialect: SQL dialect for statement generation
        """
        self.registry = registry if registry is not None else get_default_registry()
        self.dialect = dialect or SqlServerDialect()

    def compose(
        self,
        connection: Any,
        record_types: RecordTypes,
        args: Sequence[Any],
        procedure_name: Optional[str] = None,
    ) -> ProcedureCall:
        """
        Compose the statement and bound parameters for one call.

        Args:
            connection: Connection context the call will run on
            record_types: Declared record type(s), one per leading argument
            args: Positional arguments; the first len(record_types) are record
                collections, the rest are scalars
            procedure_name: Procedure to call; the registered name when omitted

        Returns:
            ProcedureCall whose last parameter is the @Result output

        Raises:
            InvalidArgumentError: If connection or args are missing
            TabularArgumentCountError: If there are fewer args than types
            TypeMismatchError: If a leading argument is not a collection of
                its declared type
            UnsupportedScalarTypeError: If a scalar argument type is not mapped
        """
        if connection is None:
            raise InvalidArgumentError("Connection cannot be None", parameter="connection")
        if args is None or len(args) == 0:
            raise InvalidArgumentError("At least one argument is required", parameter="args")

        types = normalize_record_types(record_types)
        if len(types) > len(args):
            raise TabularArgumentCountError(len(types), len(args))

        descriptor = self.registry.resolve_or_register(types, procedure_name)

        parameters: List[BoundParameter] = []
        for index, record_type in enumerate(types):
            name = positional_name(index)
            records = _materialize_records(args[index], record_type, name)
            schema = descriptor.schemas[index]
            payload = to_tabular(record_type, records, schema.columns, schema.type_name)
            parameters.append(bind_tabular(index, payload))

        for index in range(len(types), len(args)):
            parameters.append(bind_scalar(index, args[index]))

        parameters.append(result_parameter())

        target = procedure_name if procedure_name and procedure_name.strip() else descriptor.procedure_name
        statement = self.dialect.build_exec(target, build_positional_placeholders(len(args)))

        logger.debug(
            "procedure.call.composed",
            procedure=target,
            tabular_count=len(types),
            parameter_count=len(parameters),
        )
        return ProcedureCall(procedure_name=target, statement=statement, parameters=parameters)
