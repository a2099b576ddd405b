"""Filter predicates for stored records — tool, level, since, message substring."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from spill.record import LEVELS, LogRecord, format_timestamp


def normalize_since(value) -> str | None:
    """Convert a datetime or ISO-8601 text into the record timestamp form.

    Accepts a bare date, minutes, seconds or fractional seconds, with an
    optional ``Z`` or UTC offset. Naive values are taken as UTC.
    Raises ValueError for anything else.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return format_timestamp(value)
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Invalid timestamp: {value!r}") from None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return format_timestamp(dt)


@dataclass(frozen=True)
class Filters:
    tool: str | None = None
    level: str | None = None
    since: str | None = None
    msg: str | None = None

    @classmethod
    def build(cls, tool=None, level=None, since=None, msg=None) -> "Filters":
        """Validate and normalize raw filter values."""
        if level is not None:
            level = level.lower()
            if level not in LEVELS:
                raise ValueError(f"Unknown level {level!r}; expected one of {', '.join(LEVELS)}")
        return cls(
            tool=tool or None,
            level=level,
            since=normalize_since(since),
            msg=msg if msg else None,
        )

    @property
    def empty(self) -> bool:
        return not (self.tool or self.level or self.since or self.msg)


def filter_by_tool(record: LogRecord, tool: str) -> bool:
    return record.tool == tool


def filter_by_level(record: LogRecord, level: str) -> bool:
    return record.level == level


def filter_by_since(record: LogRecord, since: str) -> bool:
    """True if the record is at or after *since* (fixed-width timestamps compare as text)."""
    return record.timestamp >= since


def filter_by_message(record: LogRecord, needle: str) -> bool:
    """Case-sensitive containment."""
    return needle in record.message


def build_filter_chain(filters: Filters) -> Callable[[LogRecord], bool]:
    """Combine the active filters into a single callable that ANDs them."""
    predicates = []

    if filters.tool:
        predicates.append(lambda r, t=filters.tool: filter_by_tool(r, t))
    if filters.level:
        predicates.append(lambda r, l=filters.level: filter_by_level(r, l))
    if filters.since:
        predicates.append(lambda r, s=filters.since: filter_by_since(r, s))
    if filters.msg:
        predicates.append(lambda r, m=filters.msg: filter_by_message(r, m))

    if not predicates:
        return lambda record: True

    def combined(record: LogRecord) -> bool:
        return all(p(record) for p in predicates)

    return combined
