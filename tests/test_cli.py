"""Tests for the tiempos CLI, run against the emulator."""

import json
import logging

import pytest
from typer.testing import CliRunner

from tiempos_engine.cli import app
from tiempos_engine.common.config import get_settings
from tiempos_engine.deps import reset_singletons

runner = CliRunner()


@pytest.fixture(autouse=True)
def emulated_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TIEMPOS_ENVIRONMENT", "test")
    monkeypatch.setenv("TIEMPOS_BACKEND_URL", "")
    monkeypatch.setenv("TIEMPOS_LATENCY_SCALE", "0")
    monkeypatch.setenv("TIEMPOS_SEED_USERS_PER_ROLE", "5")
    monkeypatch.setenv("TIEMPOS_SEED_RNG", "42")
    monkeypatch.setenv("TIEMPOS_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("TIEMPOS_SESSION_STORE_PATH", str(tmp_path / "session.json"))
    get_settings.cache_clear()
    reset_singletons()
    yield
    get_settings.cache_clear()
    reset_singletons()
    package_logger = logging.getLogger("tiempos_engine")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


def test_tables():
    result = runner.invoke(app, ["tables"])
    assert result.exit_code == 0
    assert "ledger_transactions" in result.stdout
    assert "limits_per_number" in result.stdout


def test_login_whoami_logout():
    result = runner.invoke(app, ["login", "vendedor@test.com", "--password", "x"])
    assert result.exit_code == 0
    assert "vendedor@test.com" in result.stdout

    result = runner.invoke(app, ["whoami"])
    assert result.exit_code == 0
    assert "Vendedor Test (Purple)" in result.stdout
    assert "test-vendor-01" in result.stdout

    result = runner.invoke(app, ["logout"])
    assert result.exit_code == 0

    result = runner.invoke(app, ["whoami"])
    assert result.exit_code == 1
    assert "No active session" in result.stdout


def test_login_rejected():
    result = runner.invoke(app, ["login", "someone@else.com", "--password", "error"])
    assert result.exit_code == 1
    assert "AUTH_FAILURE" in result.stdout


def test_query_json():
    result = runner.invoke(app, ["query", "app_users", "--eq", "role=Vendedor", "--json"])
    assert result.exit_code == 0
    rows = json.loads(result.stdout)
    assert len(rows) == 6
    assert rows[0]["id"] == "test-vendor-01"


def test_query_table_with_limit():
    result = runner.invoke(app, ["query", "ledger_transactions", "--limit", "2"])
    assert result.exit_code == 0
    assert "2 row(s)" in result.stdout


def test_query_empty():
    result = runner.invoke(app, ["query", "bets"])
    assert result.exit_code == 0
    assert "No rows" in result.stdout


def test_query_bad_filter():
    result = runner.invoke(app, ["query", "bets", "--eq", "status"])
    assert result.exit_code == 2


def test_verify_audit():
    result = runner.invoke(app, ["verify-audit"])
    assert result.exit_code == 0
    assert "VALID" in result.stdout
    assert "5 events checked" in result.stdout
