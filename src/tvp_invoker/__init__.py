"""
tvp_invoker - call SQL Server stored procedures with table-valued parameters.

Pass collections of plain Python records (dataclasses, pydantic models or
annotated classes); table type names, procedure names and column layouts
are derived by convention or registered explicitly.
"""

__version__ = "0.1.0"

from tvp_invoker.exceptions import (
    AlreadyRegisteredError,
    ExecutionError,
    InvalidArgumentError,
    InvalidStateError,
    RegistrationConfigError,
    TabularArgumentCountError,
    TvpInvokerError,
    TypeMismatchError,
    UnsupportedScalarTypeError,
)
from tvp_invoker.infrastructure.registry import (
    ProcedureDescriptor,
    ProcedureRegistry,
    get_default_registry,
)
from tvp_invoker.infrastructure.sql.core import records_to_tabular
from tvp_invoker.io.procedures import (
    TvpProcedureInvoker,
    execute_tvp_procedure,
    execute_tvp_procedure_async,
    register_procedure,
)

__all__ = [
    "AlreadyRegisteredError",
    "ExecutionError",
    "InvalidArgumentError",
    "InvalidStateError",
    "ProcedureDescriptor",
    "ProcedureRegistry",
    "RegistrationConfigError",
    "TabularArgumentCountError",
    "TvpInvokerError",
    "TvpProcedureInvoker",
    "TypeMismatchError",
    "UnsupportedScalarTypeError",
    "execute_tvp_procedure",
    "execute_tvp_procedure_async",
    "get_default_registry",
    "records_to_tabular",
    "register_procedure",
]
