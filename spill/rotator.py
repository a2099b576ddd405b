"""Rotation of the append-only log file: timestamped rename and retention."""

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

ROTATION_FORMAT = "%Y%m%d-%H%M%S"


@dataclass(frozen=True)
class RotationResult:
    rotated_path: str | None = None
    deleted: list[str] = field(default_factory=list)

    @property
    def rotated(self) -> bool:
        return self.rotated_path is not None


def _split(log_path: str) -> tuple[str, str, str]:
    """Return (directory, stem, extension) for the live file."""
    directory, name = os.path.split(log_path)
    stem, ext = os.path.splitext(name)
    return directory or ".", stem, ext


def _rotation_pattern(stem: str, ext: str) -> re.Pattern:
    return re.compile(
        rf"^{re.escape(stem)}-(\d{{8}}-\d{{6}})(?:-(\d+))?{re.escape(ext)}$"
    )


def rotated_name(log_path: str, now: datetime, seq: int = 0) -> str:
    """Name for a generation captured at *now*: ``<stem>-YYYYMMDD-HHMMSS[-n]<ext>``."""
    _, stem, ext = _split(log_path)
    stamp = now.astimezone(timezone.utc).strftime(ROTATION_FORMAT)
    suffix = f"-{seq}" if seq else ""
    return f"{stem}-{stamp}{suffix}{ext}"


def _claim_pattern(log_path: str) -> re.Pattern:
    return re.compile(rf"^{re.escape(os.path.basename(log_path))}\.rotating-(\d+)$")


def _claim_path(log_path: str) -> str:
    return f"{log_path}.rotating-{os.getpid()}"


def _pid_running(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except (ProcessLookupError, OverflowError):
        return False
    except PermissionError:
        return True
    return True


def get_rotated_files(log_path: str) -> list[str]:
    """List rotated generations of *log_path* oldest-first (timestamp, then sequence)."""
    directory, stem, ext = _split(log_path)
    pattern = _rotation_pattern(stem, ext)
    try:
        names = os.listdir(directory)
    except FileNotFoundError:
        return []
    keyed = []
    for name in names:
        match = pattern.match(name)
        if match:
            keyed.append((match.group(1), int(match.group(2) or 0), name))
    keyed.sort()
    return [name for _, _, name in keyed]


def _publish(claimed: str, log_path: str, now: datetime) -> str:
    """Give a claimed file its generation name without replacing an existing one."""
    directory, _, _ = _split(log_path)
    seq = 0
    while True:
        target = os.path.join(directory, rotated_name(log_path, now, seq))
        try:
            os.link(claimed, target)
        except FileExistsError:
            seq += 1
            continue
        except OSError:
            # No hard links on this filesystem
            if os.path.exists(target):
                seq += 1
                continue
            os.rename(claimed, target)
            return target
        os.unlink(claimed)
        return target


def rotate_file(log_path: str, time_func=None) -> str | None:
    """Rename the live file to a new generation. Returns the rotated path.

    Returns None when the live file is already gone, which means another
    process rotated it first. Writers that still hold the old file keep
    appending to the same inode, so nothing written before the rename is lost.
    """
    now = (time_func or (lambda: datetime.now(timezone.utc)))()

    # Only one concurrent rotator can win this rename.
    claimed = _claim_path(log_path)
    try:
        os.rename(log_path, claimed)
    except FileNotFoundError:
        return None

    target = _publish(claimed, log_path, now)
    logger.debug("Rotated %s -> %s", log_path, target)
    return target


def recover_stale_claims(log_path: str) -> list[str]:
    """Publish claim files left behind by rotators that no longer run.

    A claim owned by a live process is a rotation in progress and is left
    alone. Returns the generation paths created.
    """
    directory, _, _ = _split(log_path)
    pattern = _claim_pattern(log_path)
    try:
        names = os.listdir(directory)
    except FileNotFoundError:
        return []
    own_claim = _claim_path(log_path)
    recovered = []
    for name in names:
        match = pattern.match(name)
        if not match:
            continue
        pid = int(match.group(1))
        if pid != os.getpid() and _pid_running(pid):
            continue
        stale = os.path.join(directory, name)
        try:
            mtime = os.path.getmtime(stale)
            if stale != own_claim:
                # Only one recoverer wins this rename
                os.rename(stale, own_claim)
        except FileNotFoundError:
            continue
        target = _publish(own_claim, log_path, datetime.fromtimestamp(mtime, timezone.utc))
        logger.warning("Recovered stale rotation %s -> %s", name, os.path.basename(target))
        recovered.append(target)
    return recovered


def enforce_retention(log_path: str, keep: int) -> list[str]:
    """Delete the oldest generations beyond *keep*. Returns deleted filenames."""
    directory, _, _ = _split(log_path)
    rotated = get_rotated_files(log_path)
    deleted = []
    while len(rotated) > keep:
        name = rotated.pop(0)
        try:
            os.remove(os.path.join(directory, name))
        except FileNotFoundError:
            # Already purged by a concurrent writer
            continue
        deleted.append(name)
    if deleted:
        logger.debug("Purged %d generation(s): %s", len(deleted), ", ".join(deleted))
    return deleted


def rotate(log_path: str, keep: int, time_func=None) -> RotationResult:
    """Recover abandoned claims, rotate the live file and apply retention."""
    # The new claim would overwrite a leftover claim of this process
    recover_stale_claims(log_path)
    rotated_path = rotate_file(log_path, time_func=time_func)
    deleted = enforce_retention(log_path, keep)
    return RotationResult(rotated_path=rotated_path, deleted=deleted)
