"""SQL statement builders."""

from .procedure_call import ProcedureCall, ProcedureCallBuilder

__all__ = ["ProcedureCall", "ProcedureCallBuilder"]
