"""Tests for the ``ticktock`` CLI."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from ticktock import __version__
from ticktock.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for var in ("TICKTOCK_INTERVAL_SECONDS", "TICKTOCK_POLICY", "TICKTOCK_NAME"):
        monkeypatch.delenv(var, raising=False)


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"ticktock {__version__}" in result.stdout


class TestRun:
    """Test ``ticktock run``."""

    def test_json_report_log_and_continue(self):
        result = runner.invoke(app, [
            "run",
            "-i", "0.05",
            "-d", "0.3",
            "--fail-every", "2",
            "-p", "log_and_continue",
            "--json",
            "--log-level", "CRITICAL",
        ])
        assert result.exit_code == 0, result.output

        report = json.loads(result.stdout)
        assert report["state"] == "running"
        assert report["policy"] == "log_and_continue"
        assert report["interval_seconds"] == 0.05
        assert report["tick_count"] >= 3
        assert report["failure_count"] >= 1
        assert "RuntimeError" in report["last_error"]

    def test_json_report_stop_policy(self):
        result = runner.invoke(app, [
            "run",
            "-i", "0.02",
            "-d", "0.2",
            "--fail-every", "1",
            "-p", "stop",
            "--json",
            "--log-level", "CRITICAL",
        ])
        assert result.exit_code == 0, result.output

        report = json.loads(result.stdout)
        assert report["state"] == "stopped"
        assert report["healthy"] is False
        assert report["tick_count"] == 1
        assert report["failure_count"] == 1

    def test_table_output(self):
        result = runner.invoke(app, ["run", "-i", "0.05", "-d", "0.15", "--log-level", "CRITICAL"])
        assert result.exit_code == 0, result.output
        assert "tick 1" in result.stdout
        assert "Scheduler health" in result.stdout

    def test_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("TICKTOCK_NAME", "env-heartbeat")
        monkeypatch.setenv("TICKTOCK_INTERVAL_SECONDS", "0.05")

        result = runner.invoke(app, ["run", "-d", "0.1", "--json", "--log-level", "CRITICAL"])
        assert result.exit_code == 0, result.output

        report = json.loads(result.stdout)
        assert report["name"] == "env-heartbeat"
        assert report["interval_seconds"] == 0.05

    def test_invalid_interval_exits_nonzero(self):
        result = runner.invoke(app, ["run", "-i", "0", "-d", "0", "--log-level", "CRITICAL"])
        assert result.exit_code == 1

    def test_unknown_policy_is_usage_error(self):
        result = runner.invoke(app, ["run", "-p", "panic"])
        assert result.exit_code == 2


class TestConfig:
    """Test ``ticktock config``."""

    def test_json(self, monkeypatch):
        monkeypatch.setenv("TICKTOCK_NAME", "cfg-test")
        monkeypatch.setenv("TICKTOCK_POLICY", "stop")

        result = runner.invoke(app, ["config", "--json"])
        assert result.exit_code == 0, result.output

        data = json.loads(result.stdout)
        assert data["name"] == "cfg-test"
        assert data["policy"] == "stop"
        assert data["interval_seconds"] == 1.0

    def test_plain(self):
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "TICKTOCK_INTERVAL_SECONDS" in result.stdout
        assert "TICKTOCK_POLICY: ignore" in result.stdout
