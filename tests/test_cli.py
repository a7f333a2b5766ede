"""Tests for the visitledger CLI, run against a local SQLite store."""

import json
import re

import pytest
from typer.testing import CliRunner

from visitledger.cli import app
from visitledger.config import LedgerConfig, WorkflowConfig, save_config

VISIT_ID_RE = re.compile(r"\d{13}-[0-9a-z]{7}")

runner = CliRunner()


@pytest.fixture
def store_dir(tmp_path, monkeypatch):
    for name in ("VISITLEDGER_API_URL", "VISITLEDGER_API_KEY", "VISITLEDGER_ACCOUNT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("VISITLEDGER_STORE_PATH", str(tmp_path))
    save_config(LedgerConfig(
        path=tmp_path,
        backend="local",
        account="0xAlice",
        workflow=WorkflowConfig(success_delay=0, error_delay=0, guide_compute_delay=0),
    ))
    return tmp_path


def _invoke(store_dir, *args):
    return runner.invoke(app, ["--store", str(store_dir), *args])


def _record(store_dir, *args) -> str:
    result = _invoke(store_dir, "record", *args)
    assert result.exit_code == 0, result.output
    match = VISIT_ID_RE.search(result.output)
    assert match, result.output
    return match.group(0)


class TestList:
    def test_empty(self, store_dir):
        result = _invoke(store_dir, "list")
        assert result.exit_code == 0
        assert "No museum visits recorded yet." in result.output

    def test_lists_recorded_visits(self, store_dir):
        visit_id = _record(store_dir, "Hall A, Hall B", "--duration", "45")

        result = _invoke(store_dir, "list")

        assert result.exit_code == 0
        assert f"#{visit_id[:4]}" in result.output
        assert "45 min" in result.output
        assert "0xAlice" in result.output

    def test_json_output(self, store_dir):
        visit_id = _record(store_dir, "Hall A", "--duration", "20")

        result = _invoke(store_dir, "--json", "list")

        data = json.loads(result.output)
        assert data[0]["id"] == visit_id
        assert data[0]["duration"] == 20

    def test_search(self, store_dir):
        _record(store_dir, "Hall A", "--duration", "20")
        _record(store_dir, "Hall B", "--duration", "20", "--account", "0xBob")

        result = _invoke(store_dir, "list", "--search", "bob")

        assert "0xBob" in result.output
        assert "0xAlice" not in result.output


class TestRecord:
    def test_reports_workflow_status(self, store_dir):
        result = _invoke(store_dir, "record", "Hall A", "--duration", "30")
        assert result.exit_code == 0
        assert "Encrypted visit submitted securely!" in result.output

    def test_missing_duration_defaults(self, store_dir):
        _record(store_dir, "Hall A")
        result = _invoke(store_dir, "--json", "list")
        assert json.loads(result.output)[0]["duration"] == 30

    def test_requires_account(self, store_dir):
        save_config(LedgerConfig(path=store_dir, backend="local"))
        result = _invoke(store_dir, "record", "Hall A")
        assert result.exit_code == 1
        assert "no account" in result.output


class TestGuide:
    def test_owner_generates_guide(self, store_dir):
        visit_id = _record(store_dir, "Hall A", "--duration", "30")

        result = _invoke(store_dir, "guide", visit_id)

        assert result.exit_code == 0, result.output
        assert "FHE-Generated Guide #" in result.output

    def test_other_account_refused(self, store_dir):
        visit_id = _record(store_dir, "Hall A", "--duration", "30")

        result = _invoke(store_dir, "guide", visit_id, "--account", "0xMallory")

        assert result.exit_code == 1
        assert "Generation failed" in result.output

    def test_unknown_visit(self, store_dir):
        result = _invoke(store_dir, "guide", "0000000000000-nothere")
        assert result.exit_code == 1
        assert "Visit not found" in result.output


class TestStats:
    def test_stats(self, store_dir):
        _record(store_dir, "Hall A", "--duration", "10")
        _record(store_dir, "Hall B", "--duration", "30")

        result = _invoke(store_dir, "stats")

        assert result.exit_code == 0
        assert "Total visits:     2" in result.output
        assert "Average duration: 20 min" in result.output

    def test_stats_json(self, store_dir):
        result = _invoke(store_dir, "--json", "stats")
        data = json.loads(result.output)
        assert data["count"] == 0
        assert data["average_duration"] == 0
        assert data["recent"] == []


def test_init_writes_account(store_dir):
    result = _invoke(store_dir, "init", "--account", "0xCarol", "--backend", "memory")
    assert result.exit_code == 0
    from visitledger.config import load_config
    config = load_config(store_dir)
    assert config.account == "0xCarol"
    assert config.backend == "memory"


def test_init_does_not_persist_env(store_dir, monkeypatch):
    monkeypatch.setenv("VISITLEDGER_API_KEY", "sekrit")
    monkeypatch.setenv("VISITLEDGER_ACCOUNT", "0xEnv")
    monkeypatch.setenv("VISITLEDGER_API_URL", "https://ledger.example.com")

    result = _invoke(store_dir, "init")

    assert result.exit_code == 0, result.output
    text = (store_dir / "visitledger.toml").read_text()
    assert "sekrit" not in text
    assert "0xEnv" not in text
    from visitledger.config import load_config
    config = load_config(store_dir)
    assert config.account == "0xAlice"
    assert config.backend == "local"
