"""SQL dialects."""

from .mssql import SqlServerDialect

__all__ = ["SqlServerDialect"]
