"""Fatal scan errors — everything else is skipped and reported per entry."""
from __future__ import annotations

from typing import Optional


class FatalError(Exception):
    """Aborts the whole scan. main() prints the message and exits 1."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message}: {self.path}"
        return self.message
