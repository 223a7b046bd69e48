"""SHA-256 hashing of file contents."""
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import BinaryIO, Optional


DEFAULT_CHUNK_SIZE = 8 * 1024 * 1024  # 8 MB


@dataclass(frozen=True)
class DigestResult:
    """Outcome of hashing one file: a digest, or the reason it was skipped."""

    digest: Optional[str] = None
    skip_reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.digest is not None


def hash_stream(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """SHA-256 hex digest of everything left in stream, read chunk_size bytes at a time."""
    h = hashlib.sha256()
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        h.update(chunk)
    return h.hexdigest()


def hash_file(path: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> DigestResult:
    """
    Compute SHA-256 hex digest of a file.
    Never raises OSError: open and read failures come back as a skip reason.
    """
    try:
        f = open(path, "rb")
    except OSError as e:
        return DigestResult(skip_reason="open_error", error=e.strerror or str(e))
    try:
        with f:
            return DigestResult(digest=hash_stream(f, chunk_size))
    except OSError as e:
        # vanished or I/O error mid-read
        return DigestResult(skip_reason="read_error", error=e.strerror or str(e))
