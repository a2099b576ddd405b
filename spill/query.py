"""Read-side query engine — tail, search, raw export, and operator compaction.

Every read tolerates a missing or empty destination and returns an empty
result. Only ``compact`` changes the store.
"""

from typing import Iterator

from spill.filters import Filters
from spill.record import LogRecord
from spill.store import Store


def tail(store: Store, n: int) -> list[LogRecord]:
    """Return the most recent *n* records, oldest of the window first."""
    return store.tail(n)


def search(store: Store, tool=None, level=None, since=None, msg=None) -> list[LogRecord]:
    """Return records matching every supplied filter, in chronological order.

    Raises ValueError for an unknown level or an unparseable *since*.
    """
    filters = Filters.build(tool=tool, level=level, since=since, msg=msg)
    if filters.empty:
        return list(store.records())
    return store.search(filters)


def read_all(store: Store) -> Iterator[LogRecord]:
    """Stream every record in storage order, unfiltered."""
    return store.records()


def read_raw(store: Store) -> Iterator[str]:
    """Stream every record as its stored JSON line, for piping."""
    return store.raw_lines()


def compact(store: Store, keep: int | None = None) -> bool:
    """Force a rotation (append store) or cull (SQLite store) regardless of size."""
    return store.compact(keep)
