"""Configuration module — frozen dataclass resolved from arguments, env vars, and an optional YAML file."""

import logging
import os
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

BACKENDS = ("sqlite", "jsonl")
DEFAULT_TOOL = "unknown"
DEFAULT_MAX_SIZE = 10 * 1024 * 1024  # 10 MB
DEFAULT_KEEP = 5

# Destination env var per backend
DESTINATION_ENV = {"sqlite": "SPILL_DB", "jsonl": "SPILL_LOG"}
# Destination key in the YAML file per backend
DESTINATION_KEY = {"sqlite": "db", "jsonl": "log"}
DEFAULT_FILENAME = {"sqlite": "spill.db", "jsonl": "spill.jsonl"}


@dataclass(frozen=True)
class Config:
    tool: str = DEFAULT_TOOL
    backend: str = "sqlite"
    destination: str | None = None
    max_size: int = DEFAULT_MAX_SIZE
    keep: int = DEFAULT_KEEP

    @property
    def enforcement_enabled(self) -> bool:
        return self.max_size > 0


def default_state_dir() -> str:
    return os.path.join(os.getcwd(), ".state", "spill")


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path or no file."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError:
        logger.warning("Invalid YAML in %s, using defaults", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, using defaults", path)
        return {}
    return data


def _parse_int(name: str, raw, default: int) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s: %r, using %d", name, raw, default)
        return default


def _resolve_backend(explicit: str | None, file_data: dict) -> str:
    raw = explicit or os.environ.get("SPILL_BACKEND") or file_data.get("backend") or "sqlite"
    backend = str(raw).strip().lower()
    if backend not in BACKENDS:
        logger.warning("Unknown backend %r, using sqlite", raw)
        return "sqlite"
    return backend


def _resolve_destination(explicit: str | None, backend: str, file_data: dict) -> str | None:
    if explicit:
        return os.fspath(explicit)
    env_value = os.environ.get(DESTINATION_ENV[backend])
    if env_value is not None:
        # An explicitly empty env var disables durable logging
        return env_value or None
    file_value = file_data.get(DESTINATION_KEY[backend])
    if file_value:
        return str(file_value)
    return os.path.join(default_state_dir(), DEFAULT_FILENAME[backend])


def _resolve_int(explicit: int | None, env_name: str, file_key: str, file_data: dict, default: int) -> int:
    if explicit is not None:
        return int(explicit)
    raw = os.environ.get(env_name)
    if raw is not None:
        return _parse_int(env_name, raw, default)
    if file_data.get(file_key) is not None:
        return _parse_int(file_key, file_data[file_key], default)
    return default


def load_config(
    tool: str = DEFAULT_TOOL,
    destination: str | None = None,
    max_size: int | None = None,
    keep: int | None = None,
    backend: str | None = None,
) -> Config:
    """Build Config from explicit arguments, env vars, the SPILL_CONFIG file, and defaults.

    Explicit arguments win, then environment variables, then the YAML file,
    then hardcoded defaults. Bad values fall back to defaults with a warning.
    """
    file_data = load_yaml_config(os.environ.get("SPILL_CONFIG"))
    resolved_backend = _resolve_backend(backend, file_data)
    return Config(
        tool=tool or DEFAULT_TOOL,
        backend=resolved_backend,
        destination=_resolve_destination(destination, resolved_backend, file_data),
        max_size=_resolve_int(max_size, "SPILL_MAX_SIZE", "max_size", file_data, DEFAULT_MAX_SIZE),
        keep=max(0, _resolve_int(keep, "SPILL_KEEP", "keep", file_data, DEFAULT_KEEP)),
    )
