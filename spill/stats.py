"""Statistics — record counts by level and by tool."""

import json
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from spill.record import LEVELS, LogRecord


@dataclass
class LogStats:
    total_records: int = 0
    level_counts: dict[str, int] = field(default_factory=dict)
    tool_counts: dict[str, int] = field(default_factory=dict)
    first_timestamp: str | None = None
    last_timestamp: str | None = None


def compute_stats(records: Iterable[LogRecord]) -> LogStats:
    """Consume a record stream and produce aggregated counts."""
    level_counter = Counter()
    tool_counter = Counter()
    first = last = None
    total = 0

    for record in records:
        total += 1
        level_counter[record.level] += 1
        tool_counter[record.tool] += 1
        if first is None:
            first = record.timestamp
        last = record.timestamp

    return LogStats(
        total_records=total,
        level_counts={level: level_counter[level] for level in LEVELS if level_counter[level]},
        tool_counts=dict(tool_counter.most_common()),
        first_timestamp=first,
        last_timestamp=last,
    )


def format_stats_text(stats: LogStats) -> str:
    lines = [f"Total records: {stats.total_records}"]
    if stats.total_records:
        lines.append(f"Span: {stats.first_timestamp} .. {stats.last_timestamp}")
    lines.append("")

    lines.append("Level counts:")
    for level, count in stats.level_counts.items():
        lines.append(f"  {level:8s} {count}")
    lines.append("")

    lines.append("Tool counts:")
    for tool, count in stats.tool_counts.items():
        lines.append(f"  {tool:16s} {count}")

    return "\n".join(lines)


def format_stats_json(stats: LogStats) -> str:
    return json.dumps({
        "total_records": stats.total_records,
        "level_counts": stats.level_counts,
        "tool_counts": stats.tool_counts,
        "first_timestamp": stats.first_timestamp,
        "last_timestamp": stats.last_timestamp,
    }, indent=2)
