"""
Unit tests for record column resolution.
"""

from typing import Dict, List, Optional

import pytest

from fixtures.records import (
    Company,
    Contact,
    Employee,
    FlaggedAccount,
    Invoice,
    Person,
    TaggedContact,
    Unsupported,
)
from tvp_invoker.exceptions import InvalidStateError, UnsupportedScalarTypeError
from tvp_invoker.infrastructure.sql.core.columns import (
    is_collection_type,
    resolve_columns,
    unwrap_optional,
)
from tvp_invoker.infrastructure.sql.core.models import DbKind

def _layout(record_type):
    return [(c.name, c.kind) for c in resolve_columns(record_type)]


@pytest.mark.unit
class TestResolveColumns:
    """Tests for resolve_columns."""

    def test_dataclass_field_order(self):
        """Dataclass fields keep declaration order."""
        assert _layout(Contact) == [
            ("ContactId", DbKind.INT),
            ("FirstName", DbKind.NVARCHAR),
            ("LastName", DbKind.NVARCHAR),
            ("Email", DbKind.NVARCHAR),
        ]

    def test_resolution_is_idempotent(self):
        """Resolving the same type twice yields the same ordered set."""
        assert resolve_columns(Company) == resolve_columns(Company)

    def test_enum_collection_callable_and_private_members(self):
        """Enums become INT; collections, callables and private members are skipped."""
        columns = resolve_columns(TaggedContact)
        assert [(c.name, c.kind) for c in columns] == [
            ("ContactId", DbKind.INT),
            ("Kind", DbKind.INT),
            ("DisplayKind", DbKind.NVARCHAR),
        ]
        assert columns[1].python_type is int

    def test_pydantic_model(self):
        """Pydantic models use model_fields order."""
        assert _layout(Invoice) == [
            ("InvoiceId", DbKind.UNIQUEIDENTIFIER),
            ("Amount", DbKind.DECIMAL),
            ("IssuedAt", DbKind.DATETIME),
            ("Paid", DbKind.BIT),
        ]

    def test_plain_class_skips_classvar_and_reads_cached_property(self):
        assert _layout(Person) == [
            ("PersonId", DbKind.INT),
            ("Name", DbKind.NVARCHAR),
            ("NameLength", DbKind.INT),
        ]

    def test_inherited_members_come_first(self):
        assert [name for name, _ in _layout(Employee)] == [
            "PersonId",
            "Name",
            "Salary",
            "NameLength",
        ]

    def test_accessor_reads_record_values(self):
        contact = Contact(7, "Ada", "Lovelace")
        columns = resolve_columns(Contact)
        assert [c.accessor(contact) for c in columns] == [7, "Ada", "Lovelace", None]

    def test_none_record_type_raises(self):
        with pytest.raises(InvalidStateError):
            resolve_columns(None)

    def test_string_valued_enum_rejected(self):
        """Enums whose values are not ints have no column kind."""
        with pytest.raises(UnsupportedScalarTypeError) as exc_info:
            resolve_columns(FlaggedAccount)
        assert exc_info.value.member == "FlaggedAccount.Status"
        assert "AccountStatus" in str(exc_info.value)

    def test_unsupported_member_type_raises(self):
        with pytest.raises(UnsupportedScalarTypeError) as exc_info:
            resolve_columns(Unsupported)
        assert exc_info.value.member == "Unsupported.Day"


@pytest.mark.unit
class TestTypeHelpers:
    """Tests for annotation helpers."""

    def test_unwrap_optional(self):
        assert unwrap_optional(Optional[int]) is int
        assert unwrap_optional(str) is str

    def test_collections_detected(self):
        assert is_collection_type(List[int])
        assert is_collection_type(Dict[str, int])
        assert is_collection_type(set)

    def test_text_and_bytes_are_scalars(self):
        assert not is_collection_type(str)
        assert not is_collection_type(bytes)
        assert not is_collection_type(int)


class _ForwardRef:
    Known: int
    Missing: "UndefinedType"  # noqa: F821


@pytest.mark.unit
class TestTypeHintResolution:
    """Annotation lookup falls back only for unresolvable references."""

    def test_unresolvable_forward_ref_reports_member(self):
        with pytest.raises(UnsupportedScalarTypeError) as exc_info:
            resolve_columns(_ForwardRef)
        assert exc_info.value.member == "_ForwardRef.Missing"

    def test_unexpected_errors_propagate(self, monkeypatch):
        def broken(obj):
            raise RuntimeError("annotation hook failed")

        monkeypatch.setattr(
            "tvp_invoker.infrastructure.sql.core.columns.get_type_hints", broken
        )
        with pytest.raises(RuntimeError, match="annotation hook failed"):
            resolve_columns(Contact)
