"""
Describe procedure registrations without touching a database.

Loads a registrations file into a fresh registry and prints, for each key,
the procedure name, table types and columns. With ``--statement`` the EXEC
template for a call passing only the table-valued parameters is printed too.
"""

import argparse
from typing import List, Optional

from tvp_invoker.config import get_settings, load_registrations
from tvp_invoker.exceptions import TvpInvokerError
from tvp_invoker.infrastructure.registry import ProcedureRegistry
from tvp_invoker.infrastructure.sql.core.parameters import build_positional_placeholders
from tvp_invoker.infrastructure.sql.dialects.mssql import SqlServerDialect


def format_registry(registry: ProcedureRegistry, with_statement: bool = False) -> List[str]:
    dialect = SqlServerDialect()
    lines: List[str] = []
    for key, descriptor in sorted(registry.items()):
        lines.append(f"{key}")
        lines.append(f"  procedure: {descriptor.procedure_name}")
        if with_statement:
            placeholders = build_positional_placeholders(len(descriptor.schemas))
            lines.append(
                f"  statement: {dialect.build_exec(descriptor.procedure_name, placeholders)}"
            )
        for position, schema in enumerate(descriptor.schemas):
            lines.append(f"  @P{position} {schema.type_name}")
            for column in schema.columns:
                lines.append(f"    {column.name} {column.kind.value}")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="tvp_invoker.cli describe",
        description="Print procedure registrations loaded from a YAML file",
    )
    parser.add_argument(
        "--config",
        help="Registrations YAML (defaults to TVP_REGISTRATIONS_CONFIG)",
    )
    parser.add_argument(
        "--statement",
        action="store_true",
        help="Also print the EXEC statement template",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    config_path = args.config or settings.registrations_config
    if not config_path:
        parser.error("--config is required when TVP_REGISTRATIONS_CONFIG is not set")

    registry = ProcedureRegistry(
        tabular_type_schema=settings.tabular_type_schema,
        tabular_type_prefix=settings.tabular_type_prefix,
        procedure_schema=settings.procedure_schema,
    )
    try:
        load_registrations(config_path, registry)
    except TvpInvokerError as e:
        print(f"Error: {e}")
        return 1

    for line in format_registry(registry, with_statement=args.statement):
        print(line)
    return 0
