"""
Command executor for SQL Server through SQLAlchemy and pyodbc.

The executor receives a composed EXEC statement and its positional
parameters, runs it on a raw DBAPI connection checked out from a SQLAlchemy
engine, and returns the values of the output parameters. Table-valued
parameters are handed to pyodbc as ``[type_name, schema, *rows]`` lists. numpy
scalars and pandas Timestamps are converted to driver types first.
"""

import asyncio
import re
import time
from typing import Any, Dict, List, Optional, Protocol, Sequence

import numpy as np
import pandas as pd
from sqlalchemy.exc import DBAPIError

from tvp_invoker.config import get_settings
from tvp_invoker.exceptions import ExecutionError, InvalidArgumentError
from tvp_invoker.infrastructure.sql.core.naming import split_type_name
from tvp_invoker.infrastructure.sql.core.parameters import BoundParameter
from tvp_invoker.infrastructure.sql.core.models import ParameterDirection
from tvp_invoker.infrastructure.sql.dialects.mssql import SqlServerDialect
from tvp_invoker.utils.logging import get_logger

logger = get_logger(__name__)

_PLACEHOLDER_PATTERN = re.compile(r"@P\d+\b")
_PROCEDURE_PATTERN = re.compile(r"^EXEC\s+@\w+\s*=\s*(\S+)")

# ODBC type codes
_SQL_VARCHAR = 12
_SQL_SS_TIMESTAMPOFFSET = -155

# datetimeoffset(7): column size 34, 7 fractional digits
_TIMESTAMPOFFSET_SIZE = (_SQL_SS_TIMESTAMPOFFSET, 34, 7)


def _is_aware_timestamp(value: Any) -> bool:
    return isinstance(value, pd.Timestamp) and value.tzinfo is not None


def to_driver_scalar(value: Any, in_row: bool = False) -> Any:
    """
    Convert a bound value into a type pyodbc can send.

    numpy scalars become their Python equivalent. A pandas Timestamp becomes
    a datetime; inside a table-valued row an offset-aware Timestamp is sent
    as ISO text, which SQL Server converts to the DATETIMEOFFSET column
    without losing the offset.

    Examples:
        >>> to_driver_scalar(np.int16(3))
        3
        >>> to_driver_scalar(pd.Timestamp("2024-01-01T10:00:00+02:00"), in_row=True)
        '2024-01-01 10:00:00+02:00'
    """
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, pd.Timestamp):
        converted = value.to_pydatetime()
        if in_row and converted.tzinfo is not None:
            return converted.isoformat(sep=" ")
        return converted
    return value


class CommandExecutor(Protocol):
    """Protocol for executors that run composed procedure calls."""

    def execute(
        self,
        connection: Any,
        statement: str,
        parameters: Sequence[BoundParameter],
        procedure_name: Optional[str] = None,
    ) -> Dict[str, Any]: ...

    async def execute_async(
        self,
        connection: Any,
        statement: str,
        parameters: Sequence[BoundParameter],
        procedure_name: Optional[str] = None,
    ) -> Dict[str, Any]: ...


class SqlServerCommandExecutor:
    """
    Runs EXEC statements on SQL Server and collects output parameters.

    ``connection`` is a SQLAlchemy Engine (typically ``mssql+pyodbc``) or a
    URL string, for which an engine is created once and reused. Each call
    checks out a connection, executes, commits and closes it. Failures are
    wrapped in ExecutionError and never retried.

    Example:
        >>> from sqlalchemy import create_engine
        >>> engine = create_engine("mssql+pyodbc://app:***@db/Sales?driver=...")
        >>> executor = SqlServerCommandExecutor()
        >>> executor.execute(engine, call.statement, call.parameters)
        {'@Result': 10}
    """

    def __init__(
        self,
        dialect: Optional[SqlServerDialect] = None,
        connect_timeout: Optional[int] = None,
    ):
        """
        Initialize the executor.

        Args:
            dialect: SQL dialect used to wrap statements for the driver
            connect_timeout: Login timeout in seconds for engines created
                from URL strings; TVP_CONNECT_TIMEOUT when omitted
        """
        self.dialect = dialect or SqlServerDialect()
        self.connect_timeout = (
            connect_timeout if connect_timeout is not None else get_settings().connect_timeout
        )
        self._engines: Dict[str, Any] = {}

    def _resolve_engine(self, connection: Any) -> Any:
        if connection is None:
            raise InvalidArgumentError("Connection cannot be None", parameter="connection")
        if isinstance(connection, str):
            engine = self._engines.get(connection)
            if engine is None:
                from sqlalchemy import create_engine

                engine = self._engines.setdefault(
                    connection,
                    create_engine(
                        connection, connect_args={"timeout": self.connect_timeout}
                    ),
                )
            return engine
        return connection

    def _driver_statement(
        self, statement: str, outputs: List[BoundParameter]
    ) -> str:
        qmark_statement = _PLACEHOLDER_PATTERN.sub("?", statement)
        if len(outputs) != 1:
            raise InvalidArgumentError(
                f"Expected exactly one output parameter, got {len(outputs)}",
                parameter="parameters",
            )
        return self.dialect.wrap_for_driver(qmark_statement, outputs[0].name)

    @staticmethod
    def _driver_value(parameter: BoundParameter) -> Any:
        if not parameter.is_tabular:
            return to_driver_scalar(parameter.value)
        payload = parameter.value
        schema, name = split_type_name(parameter.type_name or payload.type_name)
        header: List[Any] = [name] if schema is None else [name, schema]
        rows = [
            tuple(to_driver_scalar(value, in_row=True) for value in row)
            for row in payload.rows
        ]
        return header + rows

    @staticmethod
    def _input_size(parameter: BoundParameter) -> Any:
        if parameter.value is None and parameter.size:
            return (_SQL_VARCHAR, parameter.size, 0)
        if _is_aware_timestamp(parameter.value):
            return _TIMESTAMPOFFSET_SIZE
        return None

    def dispose(self) -> None:
        """Dispose the engines created from URL strings and forget them."""
        engines = list(self._engines.values())
        self._engines.clear()
        for engine in engines:
            engine.dispose()
        if engines:
            logger.debug("executor.engines.disposed", engine_count=len(engines))

    @staticmethod
    def _last_row(cursor: Any) -> Optional[Sequence[Any]]:
        # Skip any result sets the procedure emits; @Result is selected last
        row = None
        while True:
            if cursor.description is not None:
                fetched = cursor.fetchall()
                if fetched:
                    row = fetched[-1]
            if not cursor.nextset():
                break
        return row

    @staticmethod
    def _wrap_failure(
        exc: Exception, engine: Any, procedure_name: Optional[str]
    ) -> ExecutionError:
        dialect = getattr(engine, "dialect", None)
        dbapi = getattr(dialect, "loaded_dbapi", None) or getattr(dialect, "dbapi", None)
        dbapi_error = getattr(dbapi, "Error", None)

        if isinstance(exc, DBAPIError) or (
            isinstance(dbapi_error, type) and isinstance(exc, dbapi_error)
        ):
            category = "SQL Exception detected"
        else:
            category = "Exception detected"
        return ExecutionError(f"{category}: [{exc}]", procedure_name=procedure_name)

    def execute(
        self,
        connection: Any,
        statement: str,
        parameters: Sequence[BoundParameter],
        procedure_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Execute a composed statement and return output parameter values.

        Args:
            connection: SQLAlchemy Engine or database URL
            statement: EXEC statement using ``@P{n}`` placeholders
            parameters: Bound parameters; the output parameter comes last
            procedure_name: Procedure name for log and error context

        Returns:
            Mapping of output parameter name to value

        Raises:
            InvalidArgumentError: If connection or statement is missing
            ExecutionError: If the database call fails
        """
        if not statement or not statement.strip():
            raise InvalidArgumentError("Statement cannot be empty", parameter="statement")
        engine = self._resolve_engine(connection)
        if procedure_name is None:
            match = _PROCEDURE_PATTERN.match(statement)
            procedure_name = match.group(1) if match else None

        by_name = {
            p.name: p for p in parameters if p.direction is ParameterDirection.INPUT
        }
        outputs = [p for p in parameters if p.direction is ParameterDirection.OUTPUT]
        ordered = [by_name[name] for name in _PLACEHOLDER_PATTERN.findall(statement)]

        sql = self._driver_statement(statement, outputs)
        values = [self._driver_value(p) for p in ordered]
        input_sizes = [self._input_size(p) for p in ordered]

        start = time.perf_counter()
        raw_connection = None
        try:
            raw_connection = engine.raw_connection()
            cursor = raw_connection.cursor()
            if any(size is not None for size in input_sizes):
                cursor.setinputsizes(input_sizes)
            cursor.execute(sql, values)
            row = self._last_row(cursor)
            raw_connection.commit()
        except Exception as exc:
            logger.error(
                "procedure.execute.failed",
                procedure=procedure_name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise self._wrap_failure(exc, engine, procedure_name) from exc
        finally:
            if raw_connection is not None:
                raw_connection.close()

        result = {
            parameter.name: (row[index] if row is not None and index < len(row) else None)
            for index, parameter in enumerate(outputs)
        }
        logger.info(
            "procedure.execute.completed",
            procedure=procedure_name,
            parameter_count=len(values),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return result

    async def execute_async(
        self,
        connection: Any,
        statement: str,
        parameters: Sequence[BoundParameter],
        procedure_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Run execute() on a worker thread so the event loop is never blocked."""
        return await asyncio.to_thread(
            self.execute, connection, statement, parameters, procedure_name
        )
