"""Output formatters — plain text, colorized (ANSI), raw JSON lines."""

import json
from typing import Callable

from spill.record import LogRecord

# ANSI color codes
COLORS = {
    "debug": "\033[36m",  # cyan
    "info": "\033[32m",   # green
    "warn": "\033[33m",   # yellow
    "error": "\033[31m",  # red
}
RESET = "\033[0m"


def _context_suffix(record: LogRecord) -> str:
    if not record.context:
        return ""
    return " " + json.dumps(record.context, separators=(",", ":"), ensure_ascii=False)


def format_text(record: LogRecord) -> str:
    """``<ts> LEVEL tool[pid]: message {ctx}``"""
    level = record.level.upper().ljust(5)
    return f"{record.timestamp} {level} {record.tool}[{record.pid}]: {record.message}{_context_suffix(record)}"


def format_color(record: LogRecord) -> str:
    """Like format_text with the level colored by severity."""
    color = COLORS.get(record.level, "")
    level = record.level.upper().ljust(5)
    return (
        f"{record.timestamp} {color}{level}{RESET} "
        f"{record.tool}[{record.pid}]: {record.message}{_context_suffix(record)}"
    )


def format_raw(record: LogRecord) -> str:
    """The stored line form, suitable for jq and other pipes."""
    return record.to_json()


def get_formatter(raw: bool = False, color: bool = False) -> Callable[[LogRecord], str]:
    """Factory that returns the right formatter based on args."""
    if raw:
        return format_raw
    if color:
        return format_color
    return format_text
