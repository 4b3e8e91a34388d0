"""Shared pytest fixtures: isolated settings, registries and a fake SQL Server driver."""

from __future__ import annotations

from typing import Any, List, Optional

import pytest

from tvp_invoker.config import get_settings
from tvp_invoker.infrastructure.registry import ProcedureRegistry, get_default_registry
from tvp_invoker.io.procedures import get_default_invoker


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Drop TVP_ variables from the environment and rebuild cached singletons."""
    for name in (
        "TVP_TABULAR_TYPE_SCHEMA",
        "TVP_TABULAR_TYPE_PREFIX",
        "TVP_PROCEDURE_SCHEMA",
        "TVP_CONNECT_TIMEOUT",
        "TVP_REGISTRATIONS_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    get_default_registry.cache_clear()
    get_default_invoker.cache_clear()
    yield
    get_settings.cache_clear()
    get_default_registry.cache_clear()
    get_default_invoker.cache_clear()


@pytest.fixture
def registry() -> ProcedureRegistry:
    return ProcedureRegistry()


class FakeCursor:
    """Records driver calls and replays scripted result sets."""

    def __init__(self, result_sets: List[Optional[List[tuple]]], error: Exception | None = None):
        self._result_sets = list(result_sets) or [None]
        self._index = 0
        self.error = error
        self.executed: List[tuple] = []
        self.input_sizes: Optional[list] = None

    @property
    def description(self) -> Any:
        if self._result_sets[self._index] is None:
            return None
        return [("column", None, None, None, None, None, None)]

    def setinputsizes(self, sizes: list) -> None:
        self.input_sizes = sizes

    def execute(self, sql: str, params: list) -> "FakeCursor":
        self.executed.append((sql, params))
        if self.error is not None:
            raise self.error
        return self

    def fetchall(self) -> List[tuple]:
        return list(self._result_sets[self._index] or [])

    def nextset(self) -> bool:
        if self._index + 1 < len(self._result_sets):
            self._index += 1
            return True
        return False


class FakeRawConnection:
    def __init__(self, cursor: FakeCursor):
        self._cursor = cursor
        self.committed = False
        self.closed = False

    def cursor(self) -> FakeCursor:
        return self._cursor

    def commit(self) -> None:
        self.committed = True

    def close(self) -> None:
        self.closed = True


class FakeEngine:
    """Stands in for a SQLAlchemy Engine exposing raw_connection()."""

    def __init__(self, result_sets: List[Optional[List[tuple]]] | None = None, error: Exception | None = None):
        self.cursor = FakeCursor(result_sets if result_sets is not None else [[(0,)]], error)
        self.connections: List[FakeRawConnection] = []

    def raw_connection(self) -> FakeRawConnection:
        connection = FakeRawConnection(self.cursor)
        self.connections.append(connection)
        return connection


@pytest.fixture
def fake_engine_factory():
    return FakeEngine
