"""Append-only JSON lines store — one open/write/close cycle per record."""

import logging
import os
from collections import deque
from typing import Iterator

from spill.filters import Filters, build_filter_chain
from spill.record import LogRecord, RecordDecodeError
from spill.rotator import RotationResult, rotate

logger = logging.getLogger(__name__)


class JsonlStore:
    def __init__(self, path: str, keep: int = 5, time_func=None):
        self.path = os.fspath(path)
        self.keep = keep
        self._time_func = time_func

    def initialize_if_absent(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    def append(self, record: LogRecord) -> None:
        """Append one line with a single write to a file opened in append mode.

        O_APPEND keeps each modest-sized write intact against concurrent
        writers, and reopening on every call follows the file across rotations.
        """
        data = (record.to_json() + "\n").encode("utf-8")
        self.initialize_if_absent()
        with open(self.path, "ab", buffering=0) as f:
            f.write(data)

    def size(self) -> int:
        try:
            return os.path.getsize(self.path)
        except FileNotFoundError:
            return 0

    def rotate(self, keep: int | None = None) -> RotationResult:
        return rotate(self.path, self.keep if keep is None else keep, time_func=self._time_func)

    def compact(self, keep: int | None = None) -> bool:
        return self.rotate(keep).rotated

    # -- read side ---------------------------------------------------------

    def raw_lines(self) -> Iterator[str]:
        """Yield raw stored lines without the terminator, skipping blanks.

        Lines are decoded one at a time so a torn or foreign write that is
        not valid UTF-8 only costs that line.
        """
        try:
            f = open(self.path, "rb")
        except FileNotFoundError:
            return
        with f:
            for index, data in enumerate(f, 1):
                try:
                    line = data.decode("utf-8").rstrip("\r\n")
                except UnicodeDecodeError as e:
                    logger.warning("Skipping undecodable line #%d in %s: %s", index, self.path, e)
                    continue
                if line.strip():
                    yield line

    def records(self) -> Iterator[LogRecord]:
        for index, line in enumerate(self.raw_lines(), 1):
            try:
                yield LogRecord.from_json(line)
            except RecordDecodeError as e:
                logger.warning("Skipping malformed record #%d in %s: %s", index, self.path, e)

    def tail(self, n: int) -> list[LogRecord]:
        if n <= 0:
            return []
        return list(deque(self.records(), maxlen=n))

    def search(self, filters: Filters) -> list[LogRecord]:
        match = build_filter_chain(filters)
        return [r for r in self.records() if match(r)]
