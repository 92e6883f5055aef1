"""Tests for Postgres substrate readiness checks."""

from __future__ import annotations

from sqlalchemy.exc import OperationalError

import packages.schemaward_core.runtime as runtime_module
from packages.schemaward_shared.config import SchemawardSettings
from resources.substrates.postgres.health import ping


class _FakeConnection:
    """Minimal context-managed connection double capturing execute calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, object] | None]] = []

    def __enter__(self) -> "_FakeConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        del exc_type, exc, tb

    def execute(self, statement, params=None) -> None:
        self.calls.append((str(statement), params))


class _FakeEngine:
    """Minimal engine double exposing ``connect``."""

    def __init__(self, conn: _FakeConnection) -> None:
        self._conn = conn

    def connect(self) -> _FakeConnection:
        return self._conn


def test_ping_applies_statement_timeout_via_set_config() -> None:
    """Ping should set statement timeout with set_config then run SELECT 1."""
    conn = _FakeConnection()
    engine = _FakeEngine(conn)

    assert ping(engine, timeout_seconds=1.2) is True
    assert conn.calls[0] == (
        "SELECT set_config('statement_timeout', :timeout_value, false)",
        {"timeout_value": "1200ms"},
    )
    assert conn.calls[1] == ("SELECT 1", None)


def test_ping_returns_false_when_connection_or_query_fails() -> None:
    """Ping should degrade cleanly when the check raises."""

    class _FailingConnection(_FakeConnection):
        def execute(self, statement, params=None) -> None:
            del statement, params
            raise OperationalError("SELECT 1", {}, ConnectionRefusedError("refused"))

    engine = _FakeEngine(_FailingConnection())
    assert ping(engine, timeout_seconds=1.0) is False


def test_check_health_uses_configured_timeout_and_disposes(monkeypatch) -> None:
    """Health checks should pass the configured timeout into ping."""
    captured: dict[str, object] = {}

    class _DisposableEngine:
        def dispose(self) -> None:
            captured["disposed"] = True

    def _fake_ping(engine, *, timeout_seconds):
        captured["engine"] = engine
        captured["timeout_seconds"] = timeout_seconds
        return True

    monkeypatch.setattr(runtime_module, "ping", _fake_ping)
    settings = SchemawardSettings.model_validate(
        {"postgres": {"health_timeout_seconds": 2.5}}
    )

    result = runtime_module.check_health(
        settings, engine_factory=lambda _settings: _DisposableEngine()
    )

    assert result is True
    assert captured["timeout_seconds"] == 2.5
    assert captured["disposed"] is True
