"""Content-addressed result index: hash -> files with that content."""
from __future__ import annotations

import threading
from typing import Dict, Iterable, List

from dexy.models import ScannedFile, ScanResult


class ResultAggregator:
    """Grows for the lifetime of one scan; every record() is atomic."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._index: Dict[str, List[ScannedFile]] = {}
        self._files = 0

    def record(self, scanned: ScannedFile) -> None:
        with self._lock:
            self._index.setdefault(scanned.hash, []).append(scanned)
            self._files += 1

    def record_many(self, files: Iterable[ScannedFile]) -> None:
        """Merge one directory's batch under a single lock acquisition."""
        with self._lock:
            for scanned in files:
                self._index.setdefault(scanned.hash, []).append(scanned)
                self._files += 1

    @property
    def file_count(self) -> int:
        with self._lock:
            return self._files

    def duplicate_group_count(self) -> int:
        with self._lock:
            return sum(1 for files in self._index.values() if len(files) > 1)

    def snapshot(self) -> ScanResult:
        """Copy of the index; lists are copied so later records don't leak in."""
        with self._lock:
            return {h: list(files) for h, files in self._index.items()}
