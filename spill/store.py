"""Storage backend contract and factory."""

from typing import Iterator, Protocol

from spill.config import Config
from spill.filters import Filters
from spill.jsonl_store import JsonlStore
from spill.record import LogRecord
from spill.sqlite_store import SqliteStore


class Store(Protocol):
    """A durable destination shared by uncoordinated writer processes.

    Implementations hold no open handle between calls; every operation opens,
    works and closes so the destination may be rotated, culled or removed by
    another process in between.
    """

    path: str

    def append(self, record: LogRecord) -> None:
        """Persist one record."""

    def size(self) -> int:
        """On-disk footprint in bytes, 0 when absent."""

    def initialize_if_absent(self) -> None:
        """Create the destination and its structure if missing."""

    def compact(self, keep: int | None = None) -> bool:
        """Force a rotation or cull. Returns True if anything changed."""

    def records(self) -> Iterator[LogRecord]:
        """Every record in storage order."""

    def raw_lines(self) -> Iterator[str]:
        """Every record as its JSON line, in storage order."""

    def tail(self, n: int) -> list[LogRecord]:
        """The last *n* records, oldest first."""

    def search(self, filters: Filters) -> list[LogRecord]:
        """Records matching all active filters, in storage order."""


def open_store(config: Config) -> Store | None:
    """Return the configured backend, or None when durable logging is disabled."""
    if not config.destination:
        return None
    if config.backend == "jsonl":
        return JsonlStore(config.destination, keep=config.keep)
    return SqliteStore(config.destination)
