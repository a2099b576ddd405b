"""SQLite-backed store — WAL journaling and a bounded busy timeout serialize concurrent writers."""

import logging
import os
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Iterator

from spill.filters import Filters
from spill.record import LogRecord, RecordDecodeError

logger = logging.getLogger(__name__)

BUSY_TIMEOUT_SECONDS = 5.0

INIT_SQL = """
PRAGMA journal_mode = WAL;
CREATE TABLE IF NOT EXISTS log (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts TEXT NOT NULL,
  tool TEXT NOT NULL,
  level TEXT NOT NULL,
  msg TEXT NOT NULL,
  pid INTEGER NOT NULL,
  ctx TEXT
);
CREATE INDEX IF NOT EXISTS idx_log_ts ON log(ts);
CREATE INDEX IF NOT EXISTS idx_log_tool ON log(tool);
CREATE INDEX IF NOT EXISTS idx_log_level ON log(level);
CREATE INDEX IF NOT EXISTS idx_log_tool_level ON log(tool, level);
"""

INSERT_SQL = "INSERT INTO log (ts, tool, level, msg, pid, ctx) VALUES (?, ?, ?, ?, ?, ?)"

COLUMNS = "ts, tool, level, msg, pid, ctx"

CULL_SQL = (
    "DELETE FROM log WHERE id IN "
    "(SELECT id FROM log ORDER BY id ASC LIMIT (SELECT COUNT(*) / 2 FROM log))"
)


def build_where(filters: Filters) -> tuple[str, list]:
    """Compile filters to a WHERE clause and its parameters."""
    clauses = []
    params = []
    if filters.tool:
        clauses.append("tool = ?")
        params.append(filters.tool)
    if filters.level:
        clauses.append("level = ?")
        params.append(filters.level)
    if filters.since:
        clauses.append("ts >= ?")
        params.append(filters.since)
    if filters.msg:
        # instr() is case-sensitive, unlike LIKE
        clauses.append("instr(msg, ?) > 0")
        params.append(filters.msg)
    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


class SqliteStore:
    def __init__(self, path: str):
        self.path = os.fspath(path)
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        """Open a read-write connection, creating the file if needed."""
        return sqlite3.connect(self.path, timeout=BUSY_TIMEOUT_SECONDS, isolation_level=None)

    def _connect_existing(self) -> sqlite3.Connection | None:
        """Open the database only if it already exists; never creates a file."""
        uri = Path(self.path).resolve().as_uri() + "?mode=rw"
        try:
            return sqlite3.connect(uri, uri=True, timeout=BUSY_TIMEOUT_SECONDS, isolation_level=None)
        except sqlite3.OperationalError:
            if os.path.exists(self.path):
                raise
            return None

    @staticmethod
    def _has_table(conn: sqlite3.Connection) -> bool:
        row = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'log'"
        ).fetchone()
        return row is not None

    def initialize_if_absent(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with closing(self._connect()) as conn:
            conn.executescript(INIT_SQL)
        self._initialized = True

    def append(self, record: LogRecord) -> None:
        if not self._initialized or not os.path.exists(self.path):
            self.initialize_if_absent()
        row = record.to_row()
        with closing(self._connect()) as conn:
            try:
                conn.execute(INSERT_SQL, row)
            except sqlite3.OperationalError as e:
                # The file was replaced by an empty database since we initialized
                if "no such table" not in str(e):
                    raise
                conn.executescript(INIT_SQL)
                conn.execute(INSERT_SQL, row)

    def size(self) -> int:
        total = 0
        for path in (self.path, self.path + "-wal"):
            try:
                total += os.path.getsize(path)
            except FileNotFoundError:
                pass
        return total

    def cull(self) -> int:
        """Delete the oldest half of rows by id and reclaim the space. Returns rows deleted."""
        conn = self._connect_existing()
        if conn is None:
            return 0
        with closing(conn):
            if not self._has_table(conn):
                return 0
            deleted = conn.execute(CULL_SQL).rowcount
            conn.execute("VACUUM")
            conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
        logger.debug("Culled %d row(s) from %s", deleted, self.path)
        return deleted

    def compact(self, keep: int | None = None) -> bool:
        return self.cull() > 0

    # -- read side ---------------------------------------------------------

    def _query(self, sql: str, params=()) -> Iterator[LogRecord]:
        conn = self._connect_existing()
        if conn is None:
            return
        with closing(conn):
            if not self._has_table(conn):
                return
            for row in conn.execute(sql, params):
                try:
                    yield LogRecord.from_row(row)
                except RecordDecodeError as e:
                    logger.warning("Skipping malformed row in %s: %s", self.path, e)

    def records(self) -> Iterator[LogRecord]:
        return self._query(f"SELECT {COLUMNS} FROM log ORDER BY id ASC")

    def raw_lines(self) -> Iterator[str]:
        for record in self.records():
            yield record.to_json()

    def tail(self, n: int) -> list[LogRecord]:
        if n <= 0:
            return []
        newest = list(self._query(f"SELECT {COLUMNS} FROM log ORDER BY id DESC LIMIT ?", (n,)))
        newest.reverse()
        return newest

    def search(self, filters: Filters) -> list[LogRecord]:
        where, params = build_where(filters)
        return list(self._query(f"SELECT {COLUMNS} FROM log{where} ORDER BY id ASC", params))

    def count(self) -> int:
        conn = self._connect_existing()
        if conn is None:
            return 0
        with closing(conn):
            if not self._has_table(conn):
                return 0
            return conn.execute("SELECT COUNT(*) FROM log").fetchone()[0]
