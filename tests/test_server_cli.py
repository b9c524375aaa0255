"""Command line entry point tests."""

import pytest

from cirrus.config import Settings
from cirrus.db.models.clock_job import ClockJobRow
from cirrus.server_cli import main, run_clock_process


def test_serve_defaults_to_configured_bind_address(monkeypatch):
    monkeypatch.setenv("CIRRUS_HOST", "127.0.0.1")
    monkeypatch.setenv("CIRRUS_PORT", "9090")
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda target, **kwargs: calls.append((target, kwargs)))

    main([])

    [(target, kwargs)] = calls
    assert target == "cirrus.main:app"
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9090


def test_serve_flags_override_settings(monkeypatch):
    monkeypatch.setenv("CIRRUS_PORT", "9090")
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda target, **kwargs: calls.append(kwargs))

    main(["serve", "--host", "10.0.0.5", "--port", "7000"])

    assert calls[0]["host"] == "10.0.0.5"
    assert calls[0]["port"] == 7000


@pytest.mark.asyncio
async def test_clock_once_runs_due_jobs(db_engine, tmp_path, fetch):
    config = Settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'cirrus_test.db'}")

    assert sorted(await run_clock_process(config, once=True)) == ["events_cleanup", "pending_jobs"]
    assert await run_clock_process(config, once=True) == []

    rows = await fetch(ClockJobRow)
    assert {row.name for row in rows} == {"events_cleanup", "pending_jobs"}
    assert all(row.last_completed_at is not None for row in rows)
