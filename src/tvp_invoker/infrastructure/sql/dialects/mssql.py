"""
SQL Server-specific SQL dialect implementation.

Provides the EXEC syntax used to call a stored procedure positionally and
capture its RETURN value.
"""

from typing import List

from ..core.parameters import RESULT_PARAMETER


class SqlServerDialect:
    """SQL Server (T-SQL) dialect implementation."""

    name = "mssql"

    def build_exec(self, procedure_name: str, placeholders: List[str]) -> str:
        """
        Build an EXEC statement that assigns the return value to @Result.

        Args:
            procedure_name: Stored procedure name, used as given
            placeholders: Positional placeholders in argument order

        Returns:
            EXEC statement text without a trailing separator

        Examples:
            >>> SqlServerDialect().build_exec("dbo.SaveContacts", ["@P0", "@P1"])
            'EXEC @Result = dbo.SaveContacts @P0, @P1'
        """
        statement = f"EXEC {RESULT_PARAMETER} = {procedure_name}"
        if placeholders:
            statement = f"{statement} {', '.join(placeholders)}"
        return statement

    def wrap_for_driver(self, statement: str, result_parameter: str) -> str:
        """
        Wrap an EXEC statement so the return value comes back as a result set.

        ODBC drivers do not expose T-SQL output variables directly, so the
        variable is declared locally and selected after the call.

        Examples:
            >>> SqlServerDialect().wrap_for_driver("EXEC @Result = p ?", "@Result")
            'SET NOCOUNT ON; DECLARE @Result int; EXEC @Result = p ?; SELECT @Result;'
        """
        return (
            f"SET NOCOUNT ON; DECLARE {result_parameter} int; "
            f"{statement}; SELECT {result_parameter};"
        )
