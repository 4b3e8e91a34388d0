"""
Unit tests for the procedure registry.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from fixtures.records import Company, Contact, EmployeeContact
from tvp_invoker.exceptions import AlreadyRegisteredError, InvalidArgumentError
from tvp_invoker.infrastructure.registry import (
    ProcedureRegistry,
    get_default_registry,
    normalize_record_types,
)


@pytest.mark.unit
class TestRegister:
    """Tests for ProcedureRegistry.register."""

    def test_convention_registration(self, registry):
        descriptor = registry.register(Contact)
        assert descriptor.procedure_name == "dbo.SaveContacts"
        assert [s.type_name for s in descriptor.schemas] == ["dbo.Contact"]
        assert descriptor.record_types == (Contact,)

    def test_named_and_default_keys_stored(self, registry):
        registry.register(Contact, "dbo.UpsertContacts")
        assert "fixtures.records.Contact|dbo.UpsertContacts" in registry
        assert "fixtures.records.Contact|" in registry
        assert len(registry) == 2

    def test_duplicate_key_raises(self, registry):
        registry.register(Contact, "dbo.SaveContacts")
        with pytest.raises(AlreadyRegisteredError) as exc_info:
            registry.register(Contact, "dbo.SaveContacts")
        assert exc_info.value.procedure_name == "dbo.SaveContacts"
        assert exc_info.value.key == "fixtures.records.Contact|dbo.SaveContacts"

    def test_multiple_types_require_name(self, registry):
        with pytest.raises(InvalidArgumentError):
            registry.register([Contact, EmployeeContact])
        with pytest.raises(InvalidArgumentError):
            registry.register([Contact, EmployeeContact], "   ")

    def test_tabular_type_overrides(self, registry):
        descriptor = registry.register(
            [Contact, EmployeeContact],
            "dbo.ProcessEmployeeContacts",
            [None, "hr.uddtEmployeeContact"],
        )
        assert [s.type_name for s in descriptor.schemas] == [
            "dbo.Contact",
            "hr.uddtEmployeeContact",
        ]
        assert descriptor.schemas[1].column_names == ["EmployeeId", "ContactId", "Department"]

    def test_same_type_set_shares_columns(self, registry):
        """Two procedures over the same type set see identical table types."""
        first = registry.register(Contact, "dbo.SaveContacts", ["crm.uddtContact"])
        second = registry.register(Contact, "dbo.ArchiveContacts", ["ignored.Contact"])
        assert second.procedure_name == "dbo.ArchiveContacts"
        assert second.schemas == first.schemas
        assert second.schemas[0].type_name == "crm.uddtContact"

    def test_first_registration_is_default(self, registry):
        registry.register(Contact, "dbo.SaveContacts")
        registry.register(Contact, "dbo.ArchiveContacts")
        assert registry.resolve(Contact).procedure_name == "dbo.SaveContacts"

    def test_prefix_and_schema_settings(self):
        registry = ProcedureRegistry(
            tabular_type_schema="crm.", tabular_type_prefix="uddt", procedure_schema="app."
        )
        descriptor = registry.register(Company)
        assert descriptor.procedure_name == "app.SaveCompanies"
        assert descriptor.schemas[0].type_name == "crm.uddtCompany"

    def test_settings_seed_naming(self, monkeypatch):
        monkeypatch.setenv("TVP_TABULAR_TYPE_PREFIX", "uddt")
        from tvp_invoker.config import get_settings

        get_settings.cache_clear()
        descriptor = ProcedureRegistry().register(Contact)
        assert descriptor.schemas[0].type_name == "dbo.uddtContact"


@pytest.mark.unit
class TestResolve:
    """Tests for resolve and resolve_or_register."""

    def test_resolve_unknown_returns_none(self, registry):
        assert registry.resolve(Contact) is None

    def test_resolve_falls_back_to_default(self, registry):
        registry.register(Contact)
        descriptor = registry.resolve(Contact, "dbo.Unregistered")
        assert descriptor.procedure_name == "dbo.SaveContacts"

    def test_resolve_or_register_auto_registers(self, registry):
        descriptor = registry.resolve_or_register(Company)
        assert descriptor.procedure_name == "dbo.SaveCompanies"
        assert registry.resolve_or_register(Company) is descriptor

    def test_lost_race_rereads_registry(self, registry, monkeypatch):
        """A concurrent winner's registration is used instead of failing."""
        real_register = ProcedureRegistry.register

        def racing_register(self, record_types, procedure_name=None, tabular_type_names=None):
            real_register(self, record_types, procedure_name, tabular_type_names)
            raise AlreadyRegisteredError("dbo.SaveContacts", "fixtures.records.Contact|dbo.SaveContacts")

        monkeypatch.setattr(ProcedureRegistry, "register", racing_register)
        descriptor = registry.resolve_or_register(Contact)
        assert descriptor.procedure_name == "dbo.SaveContacts"

    def test_lost_race_without_winner_reraises(self, registry, monkeypatch):
        def failing_register(self, record_types, procedure_name=None, tabular_type_names=None):
            raise AlreadyRegisteredError("dbo.SaveContacts", "fixtures.records.Contact|")

        monkeypatch.setattr(ProcedureRegistry, "register", failing_register)
        with pytest.raises(AlreadyRegisteredError):
            registry.resolve_or_register(Contact)

    def test_concurrent_auto_registration(self, registry):
        """Many threads resolving the same type all see one descriptor."""
        barrier = threading.Barrier(16)

        def resolve():
            barrier.wait()
            return registry.resolve_or_register(Contact)

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: resolve(), range(16)))

        assert len({id(descriptor) for descriptor in results}) == 1
        assert sorted(registry.keys()) == [
            "fixtures.records.Contact|",
            "fixtures.records.Contact|dbo.SaveContacts",
        ]


@pytest.mark.unit
class TestHelpers:
    def test_normalize_single_type(self):
        assert normalize_record_types(Contact) == (Contact,)

    def test_normalize_rejects_empty_and_non_types(self):
        with pytest.raises(InvalidArgumentError):
            normalize_record_types([])
        with pytest.raises(InvalidArgumentError):
            normalize_record_types([Contact, "Company"])
        with pytest.raises(InvalidArgumentError):
            normalize_record_types(None)

    def test_default_registry_is_cached(self):
        assert get_default_registry() is get_default_registry()

    def test_clear(self, registry):
        registry.register(Contact)
        registry.clear()
        assert len(registry) == 0
