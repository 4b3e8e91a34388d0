"""Unit tests for the describe CLI command."""

import pytest

from tvp_invoker.cli.__main__ import main as cli_main
from tvp_invoker.cli.describe import format_registry, main

CONFIG = """
procedures:
  - types: ["fixtures.records:Company"]
  - name: dbo.ProcessEmployeeContacts
    types: ["fixtures.records:Contact", "fixtures.records:EmployeeContact"]
    tabular_types: [null, hr.uddtEmployeeContact]
"""


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "procedures.yml"
    path.write_text(CONFIG, encoding="utf-8")
    return str(path)


@pytest.mark.unit
class TestDescribe:
    """Tests for describe main and format_registry."""

    def test_prints_registrations(self, config_path, capsys):
        assert main(["--config", config_path]) == 0
        out = capsys.readouterr().out

        assert "fixtures.records.Company|dbo.SaveCompanies" in out
        assert "  procedure: dbo.ProcessEmployeeContacts" in out
        assert "  @P1 hr.uddtEmployeeContact" in out
        assert "    CompanyName NVARCHAR" in out
        assert "statement:" not in out

    def test_statement_flag(self, config_path, capsys):
        assert main(["--config", config_path, "--statement"]) == 0
        out = capsys.readouterr().out
        assert "  statement: EXEC @Result = dbo.ProcessEmployeeContacts @P0, @P1" in out

    def test_config_from_environment(self, config_path, monkeypatch, capsys):
        monkeypatch.setenv("TVP_REGISTRATIONS_CONFIG", config_path)
        from tvp_invoker.config import get_settings

        get_settings.cache_clear()
        assert main([]) == 0
        assert "dbo.SaveCompanies" in capsys.readouterr().out

    def test_missing_config_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_invalid_config_returns_error(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "absent.yml")]) == 1
        assert capsys.readouterr().out.startswith("Error: Registrations file not found")

    def test_router_delegates(self, config_path, capsys):
        assert cli_main(["describe", "--config", config_path]) == 0
        assert "dbo.SaveCompanies" in capsys.readouterr().out

    def test_format_sorted_by_key(self, registry):
        from fixtures.records import Company, Contact

        registry.register(Contact)
        registry.register(Company)
        lines = [line for line in format_registry(registry) if not line.startswith(" ")]
        assert lines == sorted(lines)
