"""
Command executor boundary.

Runs composed stored procedure calls against SQL Server and returns output
parameter values. Connection handling and the wire protocol are delegated to
SQLAlchemy and pyodbc.
"""

from .core import CommandExecutor, SqlServerCommandExecutor

__all__ = ["CommandExecutor", "SqlServerCommandExecutor"]
