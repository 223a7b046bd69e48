"""Status line on stderr while a scan runs."""
from __future__ import annotations

import os
import sys
import threading
import time
from typing import Callable, Dict, Optional


_SIZE_UNITS = ("KB", "MB", "GB", "TB")


def format_size(n: Optional[int]) -> str:
    """Whole bytes below 1 KiB, one decimal above."""
    n = n or 0
    if n < 1024:
        return f"{n} B"
    value = n / 1024
    for unit in _SIZE_UNITS:
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} PB"


def format_duration(seconds: float) -> str:
    """M:SS, or H:MM:SS once the scan passes an hour."""
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def _terminal_columns(is_tty: bool) -> int:
    if is_tty:
        try:
            return os.get_terminal_size(sys.stderr.fileno()).columns
        except (OSError, ValueError):
            return 120
    return 120


class ProgressDisplay:
    """
    Per-worker status strings plus a processed/total-known counter, redrawn
    by a heartbeat thread.

    counters() returns (processed, total_known, bytes_hashed); total_known
    grows while the scan discovers directories.
    """

    _INTERVAL = 0.25

    def __init__(
        self,
        counters: Callable[[], tuple[int, int, int]],
        quiet: bool = False,
    ) -> None:
        self._counters = counters
        self.quiet = quiet
        self._statuses: Dict[int, str] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lines = 0
        self._start = time.time()

    # -- StatusSink ---------------------------------------------------------

    def set_status(self, worker_id: int, status: str) -> None:
        with self._lock:
            self._statuses[worker_id] = status

    def statuses(self) -> Dict[int, str]:
        with self._lock:
            return dict(self._statuses)

    # -- rendering ------------------------------------------------------------

    def _current_path(self) -> str:
        """Most interesting status: a file being hashed beats a directory listing."""
        statuses = self.statuses()
        for prefix in ("scanning file: ", "processing dir: "):
            for wid in sorted(statuses):
                if statuses[wid].startswith(prefix):
                    return statuses[wid][len(prefix):]
        return ""

    def status_line(self, final: bool = False) -> str:
        processed, total, bytes_hashed = self._counters()
        elapsed = time.time() - self._start
        mb_rate = bytes_hashed / elapsed / (1024 * 1024) if elapsed > 0 else 0
        total = max(total, processed)
        busy = sum(1 for s in self.statuses().values() if s.startswith(("scanning", "processing")))
        line = (
            f"Processed {processed:,} of {total:,} dirs"
            f" | {mb_rate:.1f} MB/s"
            f" | {format_size(bytes_hashed)}"
        )
        if not final:
            line += f" | {busy} busy"
        line += f" | {format_duration(elapsed)} elapsed"
        return line

    def render(self, final: bool = False) -> None:
        if self.quiet:
            return
        is_tty = sys.stderr.isatty()
        cols = _terminal_columns(is_tty)
        # A wrapped line breaks \r and cursor-up ANSI codes
        summary = self.status_line(final=final)[: cols - 1]

        if not is_tty:
            sys.stderr.write(summary + "\n")
            sys.stderr.flush()
            return

        # Redraw over the previous frame, whether it had one line or two
        frame = "\x1b[1A" if self._lines == 2 else ""
        frame += "\r\x1b[J" + summary
        self._lines = 1
        current = "" if final else self._current_path()
        if current:
            if len(current) + 2 > cols:
                # Filename stays visible; the head of the path is dropped
                current = "..." + current[-(cols - 5):]
            frame += "\n\r  " + current
            self._lines = 2
        if final:
            frame += "\n"
            self._lines = 0
        sys.stderr.write(frame)
        sys.stderr.flush()

    # -- heartbeat ------------------------------------------------------------

    def _heartbeat(self) -> None:
        interval = self._INTERVAL if sys.stderr.isatty() else 10.0
        while not self._stop.wait(interval):
            self.render()

    def start(self) -> None:
        if self.quiet or self._thread is not None:
            return
        self._start = time.time()
        self._thread = threading.Thread(
            target=self._heartbeat,
            daemon=True,
            name="dexy-progress-heartbeat",
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        self.render(final=True)
