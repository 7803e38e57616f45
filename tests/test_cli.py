"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from forge_planner import cli as cli_module
from forge_planner.db import database


@pytest.fixture
def runner(memory_db, monkeypatch):
    monkeypatch.setattr(database, "_db", memory_db)
    return CliRunner()


@pytest.fixture
def profile_file(tmp_path, powerlifting_profile):
    path = tmp_path / "profile.json"
    path.write_text(json.dumps(powerlifting_profile))
    return str(path)


class TestCli:
    """Test CLI commands end to end."""

    def test_generate_and_show(self, runner, profile_file):
        result = runner.invoke(cli_module.cli, ["generate", "--user", "sam", "--profile", profile_file, "--no-ai"])
        assert result.exit_code == 0, result.output
        assert "Sam's Powerlifting Program" in result.output

        shown = runner.invoke(cli_module.cli, ["show", "--user", "sam"])
        assert shown.exit_code == 0
        assert "Week 1/8" in shown.output

    def test_show_without_program(self, runner):
        result = runner.invoke(cli_module.cli, ["show", "--user", "nobody"])
        assert "No active program" in result.output

    def test_log_lift_and_prs(self, runner):
        result = runner.invoke(cli_module.cli, [
            "log-lift", "--user", "sam", "--exercise", "Bench Press", "--weight", "200", "--reps", "5",
        ])
        assert result.exit_code == 0
        assert "First recorded Bench Press" in result.output

        prs = runner.invoke(cli_module.cli, ["prs", "--user", "sam"])
        assert "Bench Press" in prs.output

    def test_readiness(self, runner, tmp_path):
        path = tmp_path / "readings.json"
        path.write_text(json.dumps({"readings": [{"date": "2026-03-10", "hrv": 40, "hrv_baseline": 50,
                                                  "sleep_hours": 5}]}))
        result = runner.invoke(cli_module.cli, ["readiness", "--file", str(path)])
        assert result.exit_code == 0
        assert "Readiness 78/100" in result.output

    def test_substitutes(self, runner):
        result = runner.invoke(cli_module.cli, ["substitutes", "bb_squat"])
        assert result.exit_code == 0
        assert "Barbell Back Squat" in result.output

        unknown = runner.invoke(cli_module.cli, ["substitutes", "nope"])
        assert "Unknown exercise" in unknown.output
