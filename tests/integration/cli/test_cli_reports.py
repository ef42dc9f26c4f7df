"""Integration tests for the report CLI commands and exit codes.

Tests verify that:
- weeks resolves the default filter from --now, settings and flags
- aggregate renders tables, JSON and YAML from saved payloads
- compare merges manual yearly values
- Stable exit codes are returned for bad input and configuration
"""

import json
import os
from pathlib import Path

import pytest
import yaml

from salesboard.cli.__main__ import main
from salesboard.cli.cli_common import ExitCode


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch):
    """Run each command without stray configuration."""
    # .env files loaded by commands write straight to os.environ
    original_env = os.environ.copy()
    for var in [k for k in os.environ if k.startswith("SALESBOARD_")]:
        del os.environ[var]
    monkeypatch.chdir(tmp_path)

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def write_payload(tmp_path: Path):
    def _write(name: str, payload) -> str:
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return str(path)

    return _write


class TestWeeksCommand:
    """Test the default week filter command."""

    def test_json_output_across_year(self, capsys):
        """Range crossing the year boundary."""
        exit_code = main(["weeks", "--now", "2025-01-08T15:00:00Z", "--json"])

        assert exit_code == ExitCode.SUCCESS
        data = json.loads(capsys.readouterr().out)
        assert data["start_week"] == 51
        assert data["start_year"] == 2024
        assert data["end_week"] == 2
        assert data["end_year"] == 2025
        assert data["business_day"] == "2025-01-08"
        assert data["weekday"] == 3
        assert data["weeks"] == ["2024-w51", "2024-w52", "2025-w1", "2025-w2"]
        assert data["start_utc"] == "2024-12-16T10:00:00+00:00"
        assert data["end_utc"] == "2025-01-13T10:00:00+00:00"

    def test_epoch_milliseconds(self, capsys):
        """--now accepts epoch milliseconds."""
        exit_code = main(["weeks", "--now", "1736348400000", "--json"])

        assert exit_code == ExitCode.SUCCESS
        assert json.loads(capsys.readouterr().out)["start_week"] == 51

    def test_weeks_back_flag(self, capsys):
        """--weeks-back overrides the configured range."""
        main(["weeks", "--now", "2025-03-05T15:00:00Z", "--weeks-back", "0", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert data["start_week"] == data["end_week"] == 10

    def test_weeks_back_from_environment(self, capsys, monkeypatch):
        """SALESBOARD_WEEKS_BACK sets the default range."""
        monkeypatch.setenv("SALESBOARD_WEEKS_BACK", "1")

        main(["weeks", "--now", "2025-03-05T15:00:00Z", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert (data["start_week"], data["end_week"]) == (9, 10)

    def test_text_output(self, capsys):
        """Human readable output."""
        exit_code = main(["weeks", "--now", "2025-03-10T08:00:00Z"])

        out = capsys.readouterr().out
        assert exit_code == ExitCode.SUCCESS
        assert "2025-03-09 (weekday 7)" in out
        assert "W7/2025 - W10/2025" in out

    def test_invalid_now(self, capsys):
        """Unparseable --now is a validation error."""
        exit_code = main(["weeks", "--now", "yesterday"])

        assert exit_code == ExitCode.VALIDATION_ERROR
        assert "❌" in capsys.readouterr().err

    def test_out_of_range_epoch(self, capsys):
        """Epoch values beyond the datetime range are a validation error."""
        exit_code = main(["weeks", "--now", "99999999999999999999"])

        assert exit_code == ExitCode.VALIDATION_ERROR
        assert "❌" in capsys.readouterr().err

    def test_negative_weeks_back(self):
        """--weeks-back must not be negative."""
        assert main(["weeks", "--weeks-back", "-1"]) == ExitCode.VALIDATION_ERROR


class TestAggregateCommand:
    """Test report aggregation from saved payloads."""

    def test_json_output(self, city_report, write_payload, capsys):
        """JSON output carries keys, totals and rows."""
        path = write_payload("city.json", city_report)

        exit_code = main(["aggregate", path, "--format", "json"])

        assert exit_code == ExitCode.SUCCESS
        data = json.loads(capsys.readouterr().out)
        assert data["period_keys"] == ["w1", "w2"]
        assert data["grand_total"] == {"w1": 6, "w2": 9, "total": 15}
        assert [row["label"] for row in data["rows"]] == ["CityA", "P1", "CityB"]
        assert data["discrepancies"] == []
        assert data["has_categories"] is False

    def test_yaml_output_with_variations(self, city_report, write_payload, capsys):
        """YAML output and week-over-week variations."""
        path = write_payload("city.json", city_report)

        exit_code = main(["aggregate", path, "--format", "yaml", "--variations"])

        assert exit_code == ExitCode.SUCCESS
        data = yaml.safe_load(capsys.readouterr().out)
        assert data["period_keys"] == ["w1", "w2"]
        assert [item["change"] for item in data["variations"]] == [0.0, 50.0]

    def test_table_output(self, region_report, write_payload, capsys):
        """Default table ends with the grand total."""
        path = write_payload("top_skus.json", region_report)

        exit_code = main(["aggregate", path])

        lines = capsys.readouterr().out.splitlines()
        assert exit_code == ExitCode.SUCCESS
        assert lines[0].split() == ["W3", "W12", "W13", "TOTAL"]
        assert lines[-1].startswith("TOTAL GENERAL")
        assert lines[-1].split()[-1] == "362.50"
        assert any(line.startswith("    Club 330ml") for line in lines)

    def test_table_reports_discrepancies(self, write_payload, capsys):
        """Summary mismatches are listed under the table."""
        payload = {"CityA": {"w1": 12, "total": 12, "pocs": {"P1": {"w1": 10, "total": 10}}}}
        path = write_payload("city.json", payload)

        main(["aggregate", path])

        assert "CityA: reported 12 vs 10" in capsys.readouterr().out

    def test_no_verify(self, write_payload, capsys):
        """--no-verify skips the summary check."""
        payload = {"CityA": {"w1": 12, "total": 12, "pocs": {"P1": {"w1": 10, "total": 10}}}}
        path = write_payload("city.json", payload)

        main(["aggregate", path, "--format", "json", "--no-verify"])

        assert json.loads(capsys.readouterr().out)["discrepancies"] == []

    def test_verification_disabled_in_environment(self, write_payload, capsys, monkeypatch):
        """SALESBOARD_VERIFY_SUMMARY_TOTALS=false disables the check."""
        monkeypatch.setenv("SALESBOARD_VERIFY_SUMMARY_TOTALS", "false")
        payload = {"CityA": {"w1": 12, "total": 12, "pocs": {"P1": {"w1": 10, "total": 10}}}}
        path = write_payload("city.json", payload)

        main(["aggregate", path, "--format", "json"])

        assert json.loads(capsys.readouterr().out)["discrepancies"] == []

    def test_category_payload(self, region_report, write_payload, capsys):
        """Category payloads are flagged."""
        path = write_payload("categories.json", {"retornable": region_report, "no_retornable": {}})

        main(["aggregate", path, "--format", "json"])

        data = json.loads(capsys.readouterr().out)
        assert data["has_categories"] is True
        assert data["rows"][0]["label"] == "retornable"

    def test_empty_report(self, write_payload, capsys):
        """An empty report is not an error."""
        path = write_payload("empty.json", {})

        assert main(["aggregate", path]) == ExitCode.SUCCESS
        assert "no weekly data" in capsys.readouterr().out

    def test_invalid_json(self, tmp_path: Path):
        """Unparseable payload is a validation error."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        assert main(["aggregate", str(path)]) == ExitCode.VALIDATION_ERROR

    def test_missing_file(self, tmp_path: Path):
        """Missing payload file is rejected."""
        assert main(["aggregate", str(tmp_path / "missing.json")]) == ExitCode.VALIDATION_ERROR


class TestCompareCommand:
    """Test the yearly comparison command."""

    def test_manual_values(self, write_payload, capsys):
        """Manual values fill years without data."""
        path = write_payload(
            "yearly.json",
            {"totals": {"2024": 100, "2025": 150}, "cities": {"Quito": {"2025": 90}}},
        )

        exit_code = main(["compare", path, "--manual", "2023=80", "--manual-city", "Quito_2024=45"])

        assert exit_code == ExitCode.SUCCESS
        data = json.loads(capsys.readouterr().out)
        assert data["years"] == ["2023", "2024", "2025"]
        assert [item["change"] for item in data["variations"]] == [0.0, 25.0, 50.0]
        assert data["city_series"] == [{"city": "Quito", "2023": 0, "2024": 45.0, "2025": 90}]

    def test_yaml_output(self, write_payload, capsys):
        """YAML output."""
        path = write_payload("yearly.json", {"totals": {"2024": 100}})

        main(["compare", path, "--format", "yaml"])

        assert yaml.safe_load(capsys.readouterr().out)["totals"] == {"2024": 100}

    def test_bad_manual_value(self, write_payload):
        """Manual values must be KEY=VALUE."""
        path = write_payload("yearly.json", {"totals": {}})

        assert main(["compare", path, "--manual", "2023"]) == ExitCode.VALIDATION_ERROR


class TestConfiguration:
    """Test configuration handling at the CLI boundary."""

    def test_invalid_configuration(self, capsys, monkeypatch):
        """Invalid settings return the configuration exit code."""
        monkeypatch.setenv("SALESBOARD_DAY_START_HOUR", "30")

        exit_code = main(["weeks", "--json"])

        assert exit_code == ExitCode.CONFIG_ERROR
        assert "SALESBOARD_DAY_START_HOUR" in capsys.readouterr().err

    def test_env_file_option(self, tmp_path: Path, capsys):
        """--env-file loads settings from a given file."""
        env_file = tmp_path / "dashboard.env"
        env_file.write_text("SALESBOARD_WEEKS_BACK=0\n")

        main(["--env-file", str(env_file), "weeks", "--now", "2025-03-05T15:00:00Z", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert data["start_week"] == data["end_week"] == 10

    def test_log_dir(self, tmp_path: Path, city_report, write_payload, monkeypatch):
        """SALESBOARD_LOG_DIR enables JSONL log files."""
        monkeypatch.setenv("SALESBOARD_LOG_DIR", str(tmp_path / "logs"))
        path = write_payload("city.json", city_report)

        assert main(["-v", "aggregate", path, "--format", "json"]) == ExitCode.SUCCESS
        assert (tmp_path / "logs" / "timing.jsonl").exists()
