"""Registry of TVP stored procedure registrations."""

from .core import ProcedureRegistry, get_default_registry, normalize_record_types
from .models import ProcedureDescriptor, TabularSchema

__all__ = [
    "ProcedureDescriptor",
    "ProcedureRegistry",
    "TabularSchema",
    "get_default_registry",
    "normalize_record_types",
]
