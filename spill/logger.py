"""Dual-sink logger — the stderr line first, then a best-effort durable record.

Usage::

    from spill.logger import configure

    log = configure("crib")
    log.info("stored entry #42", entry_id=42)
    log.error("sqlite3 error: disk I/O error", command="sqlite3")
"""

import sqlite3
import sys

from spill.bounds import enforce_bound
from spill.config import Config, load_config
from spill.record import LogRecord
from spill.store import Store, open_store

# Failures of the durable path that emit absorbs
PERSIST_ERRORS = (OSError, sqlite3.Error, TypeError, ValueError)


class Spill:
    """Process-scoped logging handle.

    A handle built without a destination only writes to stderr. Create one
    per process with :func:`configure` and pass it to whatever needs it.
    """

    def __init__(self, config: Config | None = None, stream=None, store: Store | None = None):
        self.config = config or Config()
        self._stream = stream
        self._store = store if store is not None else open_store(self.config)
        # Last swallowed persistence/enforcement failure, for inspection only
        self.last_error: Exception | None = None

    @classmethod
    def configure(
        cls,
        tool: str,
        destination: str | None = None,
        max_size: int | None = None,
        keep: int | None = None,
        backend: str | None = None,
        stream=None,
    ) -> "Spill":
        """Resolve a fresh Config from arguments, env vars and defaults. Touches no storage."""
        config = load_config(
            tool=tool, destination=destination, max_size=max_size, keep=keep, backend=backend
        )
        return cls(config, stream=stream)

    @property
    def tool(self) -> str:
        return self.config.tool

    @property
    def store(self) -> Store | None:
        return self._store

    def emit(self, level: str, message, /, **context) -> None:
        text = str(message)
        stream = self._stream or sys.stderr
        stream.write(f"{self.config.tool}: {text}\n")
        stream.flush()

        if self._store is None:
            return

        # Fail-open: the stderr line already reached the caller, so durable
        # failures come back as values and are dropped here.
        persist_error = self._persist(level, text, context)
        bound_error = self._enforce_bound()
        self.last_error = persist_error or bound_error

    def _persist(self, level: str, message: str, context: dict) -> Exception | None:
        try:
            record = LogRecord.create(self.config.tool, level, message, context)
            self._store.append(record)
        except PERSIST_ERRORS as e:
            return e
        return None

    def _enforce_bound(self) -> Exception | None:
        if not self.config.enforcement_enabled:
            return None
        try:
            enforce_bound(self._store, self.config.max_size, self.config.keep)
        except PERSIST_ERRORS as e:
            return e
        return None

    def debug(self, message, /, **context) -> None:
        self.emit("debug", message, **context)

    def info(self, message, /, **context) -> None:
        self.emit("info", message, **context)

    def warn(self, message, /, **context) -> None:
        self.emit("warn", message, **context)

    def error(self, message, /, **context) -> None:
        self.emit("error", message, **context)


def configure(
    tool: str,
    destination: str | None = None,
    max_size: int | None = None,
    keep: int | None = None,
    backend: str | None = None,
) -> Spill:
    """Create the process's logging handle."""
    return Spill.configure(
        tool, destination=destination, max_size=max_size, keep=keep, backend=backend
    )
