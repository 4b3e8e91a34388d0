"""
Unit tests for positional parameter binding.
"""

import pytest

from fixtures.records import AccountStatus, ContactKind
from tvp_invoker.exceptions import UnsupportedScalarTypeError
from tvp_invoker.infrastructure.sql.core.models import DbKind, ParameterDirection
from tvp_invoker.infrastructure.sql.core.parameters import (
    NULL_PARAMETER_SIZE,
    RESULT_PARAMETER,
    bind_scalar,
    build_positional_placeholders,
    positional_name,
    result_parameter,
)


@pytest.mark.unit
class TestPositionalNames:
    def test_positional_name(self):
        assert positional_name(0) == "@P0"
        assert positional_name(11) == "@P11"

    def test_placeholders(self):
        assert build_positional_placeholders(3) == ["@P0", "@P1", "@P2"]
        assert build_positional_placeholders(0) == []


@pytest.mark.unit
class TestBindScalar:
    """Tests for bind_scalar."""

    def test_null_binds_as_smallest_varchar(self):
        parameter = bind_scalar(2, None)
        assert parameter.name == "@P2"
        assert parameter.kind is DbKind.VARCHAR
        assert parameter.size == NULL_PARAMETER_SIZE == 1
        assert parameter.value is None

    def test_kind_from_value(self):
        assert bind_scalar(1, False).kind is DbKind.BIT
        assert bind_scalar(1, 12).kind is DbKind.INT

    def test_enum_value(self):
        parameter = bind_scalar(1, ContactKind.PERSON)
        assert parameter.kind is DbKind.INT
        assert parameter.value == 1

    def test_string_valued_enum_argument(self):
        with pytest.raises(UnsupportedScalarTypeError):
            bind_scalar(1, AccountStatus.ACTIVE)

    def test_unsupported_value(self):
        with pytest.raises(UnsupportedScalarTypeError):
            bind_scalar(1, 3j)


@pytest.mark.unit
def test_result_parameter_is_int_output():
    parameter = result_parameter()
    assert parameter.name == RESULT_PARAMETER == "@Result"
    assert parameter.kind is DbKind.INT
    assert parameter.direction is ParameterDirection.OUTPUT
    assert not parameter.is_tabular
