"""Shared FIFO of directories waiting to be listed."""
from __future__ import annotations

import threading
from collections import deque
from typing import Iterable, Optional


class WorkQueue:
    """
    Thread-safe FIFO of directory paths.

    Every successful pop() hands a path to exactly one caller. The condition
    is public so the termination detector can couple "queue is empty" with
    its idle bookkeeping under the same lock; code holding `not_empty` must
    use the *_locked methods.
    """

    def __init__(self, items: Iterable[str] = ()) -> None:
        self._items: deque[str] = deque(items)
        self.not_empty = threading.Condition(threading.Lock())
        self.pushed = len(self._items)  # total ever queued, for progress

    def push(self, path: str) -> None:
        self.extend((path,))

    def extend(self, paths: Iterable[str]) -> None:
        with self.not_empty:
            before = len(self._items)
            self._items.extend(paths)
            added = len(self._items) - before
            if added:
                self.pushed += added
                self.not_empty.notify(added)

    def pop(self) -> Optional[str]:
        """Head of the queue, or None when it is currently empty."""
        with self.not_empty:
            return self.pop_locked()

    def pop_locked(self) -> Optional[str]:
        if self._items:
            return self._items.popleft()
        return None

    def empty_locked(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        with self.not_empty:
            return len(self._items)
