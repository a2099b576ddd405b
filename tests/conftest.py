"""Shared pytest fixtures for the spill test suite."""

from __future__ import annotations

import os
import subprocess
import sys

import pytest

from spill.jsonl_store import JsonlStore
from spill.record import LogRecord
from spill.sqlite_store import SqliteStore

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

SPILL_ENV = (
    "SPILL_BACKEND", "SPILL_DB", "SPILL_LOG",
    "SPILL_MAX_SIZE", "SPILL_KEEP", "SPILL_CONFIG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's SPILL_* variables out of every test."""
    for key in SPILL_ENV:
        monkeypatch.delenv(key, raising=False)


def make_record(
    ts="2025-01-15T12:00:00.000Z",
    tool="crib",
    level="info",
    message="hello",
    pid=1234,
    context=None,
) -> LogRecord:
    return LogRecord(timestamp=ts, tool=tool, level=level, message=message, pid=pid, context=context)


@pytest.fixture()
def sample_records() -> list[LogRecord]:
    """Five records from two tools, one second apart."""
    return [
        make_record(ts="2025-01-15T12:00:00.000Z", tool="crib", level="info", message="stored entry #1"),
        make_record(ts="2025-01-15T12:00:01.000Z", tool="crib", level="error", message="sqlite3 error: locked",
                    context={"command": "sqlite3"}),
        make_record(ts="2025-01-15T12:00:02.000Z", tool="sift", level="warn", message="slow scan"),
        make_record(ts="2025-01-15T12:00:03.000Z", tool="sift", level="error", message="Disk full"),
        make_record(ts="2025-01-15T12:00:04.000Z", tool="crib", level="debug", message="stored entry #2",
                    context={"entry_id": 2}),
    ]


@pytest.fixture(params=["jsonl", "sqlite"])
def store(request, tmp_path):
    """An empty store of each backend, destination not yet created."""
    if request.param == "jsonl":
        return JsonlStore(str(tmp_path / "state" / "spill.jsonl"), keep=3)
    return SqliteStore(str(tmp_path / "state" / "spill.db"))


@pytest.fixture()
def filled_store(store, sample_records):
    for record in sample_records:
        store.append(record)
    return store


def run_python(code: str, env: dict | None = None, **kwargs) -> subprocess.CompletedProcess:
    """Run a snippet in a fresh interpreter with the repo importable."""
    full_env = dict(os.environ)
    full_env["PYTHONPATH"] = ROOT + os.pathsep + full_env.get("PYTHONPATH", "")
    if env:
        full_env.update(env)
    return subprocess.run(
        [sys.executable, "-c", code],
        capture_output=True,
        text=True,
        env=full_env,
        **kwargs,
    )
