"""
Exception hierarchy for TVP procedure registration and invocation.

Each error carries the offending identifier (type name, parameter name or
procedure name) both as an attribute and inside its message, so callers can
log or assert on either.
"""

from typing import Optional


class TvpInvokerError(Exception):
    """Base exception for all tvp_invoker errors."""

    pass


def _with_context(message: str, **context: Optional[str]) -> str:
    context_parts = [f"{key}='{value}'" for key, value in context.items() if value]
    if context_parts:
        return f"{message} ({', '.join(context_parts)})"
    return message


class InvalidArgumentError(TvpInvokerError, ValueError):
    """
    Raised for a missing or empty required input.

    Also raised when auto-registration is attempted for more than one
    record type without an explicit procedure name.

    Args:
        message: Error description
        parameter: Name of the offending parameter (optional)
    """

    def __init__(self, message: str, parameter: Optional[str] = None):
        self.parameter = parameter
        super().__init__(_with_context(message, parameter=parameter))


class InvalidStateError(TvpInvokerError, RuntimeError):
    """Raised when column resolution is asked to describe no type at all."""

    pass


class TabularArgumentCountError(TvpInvokerError, IndexError):
    """Raised when more tabular types are declared than arguments supplied."""

    def __init__(self, type_count: int, argument_count: int):
        self.type_count = type_count
        self.argument_count = argument_count
        super().__init__(
            f"The number of referenced types ({type_count}) must not exceed "
            f"the number of passed arguments ({argument_count})"
        )


class TypeMismatchError(TvpInvokerError, TypeError):
    """
    Raised when a positional argument is not a collection of the declared type.

    Args:
        actual: Description of the argument that was passed
        expected: Description of the collection type that was required
        parameter: Positional parameter name, e.g. ``@P0``
    """

    def __init__(self, actual: str, expected: str, parameter: Optional[str] = None):
        self.actual = actual
        self.expected = expected
        self.parameter = parameter
        super().__init__(
            _with_context(
                f"Input parameter type [{actual}] is not of the expected type "
                f"'{expected}'",
                parameter=parameter,
            )
        )


class AlreadyRegisteredError(TvpInvokerError):
    """
    Raised only by the registry's exactly-once insertion guard.

    Lazy registration paths catch this to mean "another caller just finished
    registering the same key" and re-read the registry instead of failing.
    """

    def __init__(self, procedure_name: str, key: str):
        self.procedure_name = procedure_name
        self.key = key
        super().__init__(
            f"A stored procedure named '{procedure_name}' has already been "
            f"registered for the type set [{key}]"
        )


class UnsupportedScalarTypeError(TvpInvokerError, KeyError):
    """Raised when a Python type has no entry in the scalar type map."""

    def __init__(self, python_type: object, member: Optional[str] = None):
        self.python_type = python_type
        self.member = member
        self.type_name = getattr(python_type, "__qualname__", repr(python_type))
        super().__init__(
            _with_context(
                f"No database type is mapped for Python type '{self.type_name}'",
                member=member,
            )
        )

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class ExecutionError(TvpInvokerError):
    """
    Raised when the command executor fails.

    The original driver or SQLAlchemy exception is chained as ``__cause__``.

    Args:
        message: Error description, prefixed with the failure category
        procedure_name: Stored procedure being executed (optional)
    """

    def __init__(self, message: str, procedure_name: Optional[str] = None):
        self.procedure_name = procedure_name
        super().__init__(_with_context(message, procedure=procedure_name))


class RegistrationConfigError(TvpInvokerError):
    """Raised when a declarative registrations file cannot be loaded."""

    def __init__(self, message: str, config_path: Optional[str] = None):
        self.config_path = config_path
        super().__init__(_with_context(message, config=config_path))
