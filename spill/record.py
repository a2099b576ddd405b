"""Structured log record — frozen dataclass plus JSON line and row codecs."""

import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone

LEVELS = ("debug", "info", "warn", "error")


class RecordDecodeError(ValueError):
    """Raised when a stored record cannot be decoded."""


def format_timestamp(dt: datetime) -> str:
    """Render *dt* as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def utc_timestamp() -> str:
    return format_timestamp(datetime.now(timezone.utc))


@dataclass(frozen=True)
class LogRecord:
    timestamp: str
    tool: str
    level: str
    message: str
    pid: int
    context: dict | None = None

    def __post_init__(self):
        if not isinstance(self.tool, str) or not self.tool:
            raise ValueError("tool must be a non-empty string")
        if self.level not in LEVELS:
            raise ValueError(f"level must be one of {', '.join(LEVELS)}, got {self.level!r}")
        if not isinstance(self.message, str):
            raise ValueError("message must be a string")
        if not isinstance(self.pid, int) or isinstance(self.pid, bool):
            raise ValueError("pid must be an integer")
        if self.context is not None and not isinstance(self.context, dict):
            raise ValueError("context must be a mapping")
        # An empty context is stored as absent.
        if not self.context:
            object.__setattr__(self, "context", None)

    @classmethod
    def create(cls, tool: str, level: str, message: str, context: dict | None = None) -> "LogRecord":
        """Stamp a new record with the current UTC time and process id."""
        return cls(
            timestamp=utc_timestamp(),
            tool=tool,
            level=level,
            message=message,
            pid=os.getpid(),
            context=dict(context) if context else None,
        )

    # -- line form ---------------------------------------------------------

    def to_dict(self) -> dict:
        data = {
            "ts": self.timestamp,
            "tool": self.tool,
            "level": self.level,
            "msg": self.message,
            "pid": self.pid,
        }
        if self.context:
            data["ctx"] = self.context
        return data

    def to_json(self) -> str:
        """One JSON object, no embedded newlines."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: dict) -> "LogRecord":
        if not isinstance(data, dict):
            raise RecordDecodeError("record must be a JSON object")
        try:
            return cls(
                timestamp=data["ts"],
                tool=data["tool"],
                level=data["level"],
                message=data["msg"],
                pid=data["pid"],
                context=data.get("ctx"),
            )
        except KeyError as e:
            raise RecordDecodeError(f"missing field {e.args[0]!r}") from e
        except ValueError as e:
            raise RecordDecodeError(str(e)) from e

    @classmethod
    def from_json(cls, line: str) -> "LogRecord":
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise RecordDecodeError(f"invalid JSON: {e}") from e
        return cls.from_dict(data)

    # -- row form ----------------------------------------------------------

    def to_row(self) -> tuple:
        """Return ``(ts, tool, level, msg, pid, ctx)`` with ctx as JSON text or None."""
        ctx = json.dumps(self.context, separators=(",", ":"), ensure_ascii=False) if self.context else None
        return (self.timestamp, self.tool, self.level, self.message, self.pid, ctx)

    @classmethod
    def from_row(cls, row) -> "LogRecord":
        ts, tool, level, msg, pid, ctx = row
        try:
            context = json.loads(ctx) if ctx else None
            return cls(timestamp=ts, tool=tool, level=level, message=msg, pid=pid, context=context)
        except ValueError as e:
            raise RecordDecodeError(str(e)) from e
