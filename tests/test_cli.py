"""Tests for the coverforge CLI."""

from __future__ import annotations

import json
import os
import textwrap

import pytest
import yaml
from click.testing import CliRunner

from coverforge.cli import cli
from coverforge.cli.commands import EXIT_CONFIG_ERROR, EXIT_PARTIAL_COVERAGE

BOOLEAN_MODEL = textwrap.dedent("""\
    factors:
      A: [0, 1]
      B: [0, 1]
      C: [0, 1]
    constraints:
      - name: no_a0_b0
        exclude: {A: 0, B: 0}
""")

GIVE_UP_MODEL = textwrap.dedent("""\
    factors:
      A: [0, 1]
      B: [0, 1]
      C: [0, 1]
    constraints:
      - name: no_a0_b0_rows
        exclude: {A: 0, B: 0}
        factors: [C]
""")

IPO_MODEL = textwrap.dedent("""\
    factors:
      A: [0, 1]
      B: [0, 1]
      C: [0, 1]
    settings:
      engine: ipo
""")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("COVERFORGE_"):
            monkeypatch.delenv(key)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def write_file(tmp_path):
    def _write(name: str, content: str) -> str:
        path = tmp_path / name
        path.write_text(content)
        return str(path)

    return _write


# =========================================================================
# generate
# =========================================================================


class TestGenerateCommand:
    """Tests for `coverforge generate`."""

    def test_table_output(self, runner, write_file):
        model = write_file("model.yaml", BOOLEAN_MODEL)
        result = runner.invoke(cli, ["generate", model])
        assert result.exit_code == 0, result.output
        assert "Coverage complete" in result.output
        assert "11/11 target tuples covered" in result.output
        assert "1 excluded by constraints" in result.output

    def test_json_output(self, runner, write_file):
        model = write_file("model.yaml", BOOLEAN_MODEL)
        result = runner.invoke(cli, ["generate", model, "--format", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["engine"] == "aetg"
        assert data["uncovered_count"] == 0
        assert data["excluded_by_constraints"] == 1
        assert len(data["rows"]) == 5
        assert all(not (r["A"] == 0 and r["B"] == 0) for r in data["rows"])

    def test_yaml_output(self, runner, write_file):
        model = write_file("model.yaml", BOOLEAN_MODEL)
        result = runner.invoke(cli, ["generate", model, "-f", "yaml"])
        assert result.exit_code == 0, result.output
        data = yaml.safe_load(result.output)
        assert data["uncovered_count"] == 0
        assert data["rows"][0] == {"A": 1, "B": 0, "C": 0}

    def test_engine_and_strength_options(self, runner, write_file):
        model = write_file("model.yaml", BOOLEAN_MODEL)
        result = runner.invoke(
            cli, ["generate", model, "--engine", "ipo", "--strength", "3", "-f", "json"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["engine"] == "ipo"
        assert len(data["rows"]) == 6

    def test_model_settings_applied(self, runner, write_file):
        model = write_file("model.yaml", IPO_MODEL)
        result = runner.invoke(cli, ["generate", model, "-f", "json"])
        assert json.loads(result.output)["engine"] == "ipo"

    def test_cli_options_override_model_settings(self, runner, write_file):
        model = write_file("model.yaml", IPO_MODEL)
        result = runner.invoke(cli, ["generate", model, "-e", "aetg", "-f", "json"])
        assert json.loads(result.output)["engine"] == "aetg"

    def test_seed_and_trials(self, runner, write_file):
        model = write_file("model.yaml", BOOLEAN_MODEL)
        args = ["generate", model, "--seed", "9", "--trials", "3", "--shuffle", "-f", "json"]
        first = runner.invoke(cli, args)
        second = runner.invoke(cli, args)
        assert first.exit_code == 0, first.output
        assert json.loads(first.output)["rows"] == json.loads(second.output)["rows"]

    def test_partial_coverage_reported(self, runner, write_file):
        model = write_file("model.yaml", GIVE_UP_MODEL)
        result = runner.invoke(cli, ["generate", model])
        assert result.exit_code == 0, result.output
        assert "Partial coverage: 1 tuple(s) uncovered" in result.output
        assert "A=0, B=0" in result.output

    def test_strict_partial_coverage_exit_code(self, runner, write_file):
        model = write_file("model.yaml", GIVE_UP_MODEL)
        result = runner.invoke(cli, ["generate", model, "--strict"])
        assert result.exit_code == EXIT_PARTIAL_COVERAGE

    def test_strict_complete_coverage(self, runner, write_file):
        model = write_file("model.yaml", BOOLEAN_MODEL)
        result = runner.invoke(cli, ["generate", model, "--strict"])
        assert result.exit_code == 0

    def test_invalid_strength(self, runner, write_file):
        model = write_file("model.yaml", BOOLEAN_MODEL)
        result = runner.invoke(cli, ["generate", model, "--strength", "4"])
        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Error [E102]" in result.output

    def test_invalid_model(self, runner, write_file):
        model = write_file("model.yaml", "factors:\n  A: []\n")
        result = runner.invoke(cli, ["generate", model])
        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Error [E103]" in result.output
        assert "Suggestions:" in result.output

    def test_invalid_model_setting(self, runner, write_file):
        model = write_file("model.yaml", "factors:\n  A: [0, 1]\nsettings:\n  trial_budget: 0\n")
        result = runner.invoke(cli, ["generate", model])
        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "trial_budget" in result.output

    def test_missing_model_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["generate", str(tmp_path / "absent.yaml")])
        assert result.exit_code != 0


# =========================================================================
# verify
# =========================================================================


class TestVerifyCommand:
    """Tests for `coverforge verify`."""

    ROWS = [
        {"A": 0, "B": 0, "C": 0},
        {"A": 0, "B": 1, "C": 1},
        {"A": 1, "B": 0, "C": 1},
        {"A": 1, "B": 1, "C": 0},
    ]

    def test_complete_suite(self, runner, write_file):
        model = write_file("model.yaml", IPO_MODEL)
        suite = write_file("suite.json", json.dumps(self.ROWS))
        result = runner.invoke(cli, ["verify", model, suite])
        assert result.exit_code == 0, result.output
        assert "12/12 tuples covered (100.0%), 4 tests" in result.output

    def test_incomplete_suite(self, runner, write_file):
        model = write_file("model.yaml", IPO_MODEL)
        suite = write_file("suite.yaml", yaml.safe_dump(self.ROWS[:2]))
        result = runner.invoke(cli, ["verify", model, suite])
        assert result.exit_code == EXIT_PARTIAL_COVERAGE
        assert "6/12" in result.output

    def test_json_output(self, runner, write_file):
        model = write_file("model.yaml", IPO_MODEL)
        suite = write_file("suite.json", json.dumps(self.ROWS))
        result = runner.invoke(cli, ["verify", model, suite, "-t", "3", "-f", "json"])
        assert result.exit_code == EXIT_PARTIAL_COVERAGE
        data = json.loads(result.output)
        assert data["strength"] == 3
        assert data["total_tuples"] == 8
        assert data["covered_tuples"] == 4

    def test_accepts_generate_output(self, runner, write_file):
        model = write_file("model.yaml", BOOLEAN_MODEL)
        generated = runner.invoke(cli, ["generate", model, "-f", "json"])
        suite = write_file("suite.json", generated.output)
        result = runner.invoke(cli, ["verify", model, suite])
        assert result.exit_code == 0, result.output
        assert "1 tuple(s) excluded by constraints" in result.output

    def test_invalid_row(self, runner, write_file):
        model = write_file("model.yaml", IPO_MODEL)
        suite = write_file("suite.json", json.dumps([{"A": 0, "B": 0, "C": 9}]))
        result = runner.invoke(cli, ["verify", model, suite])
        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Error [E202]" in result.output

    def test_not_a_list(self, runner, write_file):
        model = write_file("model.yaml", IPO_MODEL)
        suite = write_file("suite.json", json.dumps({"A": 0}))
        result = runner.invoke(cli, ["verify", model, suite])
        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_strength_out_of_range(self, runner, write_file):
        model = write_file("model.yaml", IPO_MODEL)
        suite = write_file("suite.json", json.dumps(self.ROWS))
        result = runner.invoke(cli, ["verify", model, suite, "--strength", "5"])
        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Error [E102]" in result.output


class TestCliGroup:
    """Tests for the command group."""

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "generate" in result.output
        assert "verify" in result.output

    def test_settings_file(self, runner, write_file):
        model = write_file("model.yaml", BOOLEAN_MODEL)
        settings = write_file("coverforge.yaml", "engine: ipo\n")
        result = runner.invoke(cli, ["--config", settings, "generate", model, "-f", "json"])
        assert json.loads(result.output)["engine"] == "ipo"
