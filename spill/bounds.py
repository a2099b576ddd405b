"""Bound enforcement — compact the store once it reaches the size threshold."""


def needs_compaction(store, max_size: int) -> bool:
    """True if enforcement is enabled and the store is at or over *max_size* bytes."""
    if max_size <= 0:
        return False
    return store.size() >= max_size


def enforce_bound(store, max_size: int, keep: int | None = None) -> bool:
    """Rotate or cull *store* when it has grown past *max_size*.

    Returns True if a compaction was attempted. A rotation lost to a
    concurrent writer is a no-op inside the store, not an error.
    """
    if not needs_compaction(store, max_size):
        return False
    store.compact(keep)
    return True
