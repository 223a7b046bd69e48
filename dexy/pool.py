"""
Worker pool and termination detection.

N worker threads drain one shared WorkQueue. Each worker is both a consumer
(pops a directory) and a producer (pushes the subdirectories it finds), so
"queue is empty" alone does not mean the scan is over: a peer may be halfway
through a directory whose children are not queued yet.

The TerminationDetector counts idle workers under the queue's own lock. A
worker only becomes idle while holding that lock and seeing an empty queue,
and only stops being idle in the same critical section that pops its next
item. A worker that is processing a directory is therefore never counted, and
when the idle count reaches N no discovery can still be unpublished.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

from dexy import classify
from dexy.attributes import attributes_from_stat
from dexy.classify import SkippedEntry, classify_directory
from dexy.hash_utils import DEFAULT_CHUNK_SIZE, DigestResult, hash_file
from dexy.models import ScannedFile
from dexy.normalize import display_path, printable_path
from dexy.results import ResultAggregator
from dexy.work_queue import WorkQueue

logger = logging.getLogger("dexy.pool")

# Skips that are expected in normal trees are not worth a warning
_QUIET_SKIPS = {
    classify.HIDDEN: logging.INFO,
    classify.DIRECTORY_SYMLINK: logging.INFO,
    classify.SPECIAL_FILE: logging.INFO,
    classify.EMPTY: logging.DEBUG,
}

_SKIP_MESSAGES = {
    classify.HIDDEN: "Skipped hidden path",
    classify.BROKEN_SYMLINK: "Skipped broken symlink",
    classify.DIRECTORY_SYMLINK: "Skipped symlinked directory",
    classify.SPECIAL_FILE: "Skipped special file",
    classify.EMPTY: "Skipped empty file",
    classify.STAT_ERROR: "Cannot stat",
    classify.UNDECODABLE_NAME: "Skipped name that is not valid UTF-8",
}


class StatusSink(Protocol):
    """Where workers report what they are doing. Never on the correctness path."""

    def set_status(self, worker_id: int, status: str) -> None: ...


class NullStatus:
    def set_status(self, worker_id: int, status: str) -> None:
        pass


@dataclass
class ScanOptions:
    workers: int = 1
    hash_workers: int = 0  # 0 = same as workers
    chunk_size: int = DEFAULT_CHUNK_SIZE
    poll_interval: float = 0.1
    include_hidden: bool = False
    ignore_empty: bool = False
    load_file_attributes: bool = False

    def __post_init__(self):
        if self.workers < 1:
            raise ValueError("worker count must be a positive integer")
        if self.hash_workers < 0:
            raise ValueError("hash worker count cannot be negative")
        if self.chunk_size < 1:
            raise ValueError("chunk size must be positive")
        if self.poll_interval <= 0:
            raise ValueError("poll interval must be positive")

    @property
    def effective_hash_workers(self) -> int:
        return self.hash_workers or self.workers


@dataclass
class PoolState:
    """
    Counters shared by all workers for one scan. Progress only: nothing here
    decides when the pool stops.
    """

    workers: int
    processed: int = 0  # directories finished
    files_hashed: int = 0
    bytes_hashed: int = 0
    skipped: int = 0
    read_errors: int = 0
    dir_errors: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add(self, **counts: int) -> None:
        with self._lock:
            for name, n in counts.items():
                setattr(self, name, getattr(self, name) + n)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return {
                "processed": self.processed,
                "files_hashed": self.files_hashed,
                "bytes_hashed": self.bytes_hashed,
                "skipped": self.skipped,
                "read_errors": self.read_errors,
                "dir_errors": self.dir_errors,
            }


@dataclass
class WorkerState:
    worker_id: int
    idle: bool = False


class TerminationDetector:
    """Hands out directories and decides, without a coordinator, when none remain."""

    def __init__(self, queue: WorkQueue, workers: int, poll_interval: float = 0.1) -> None:
        self._queue = queue
        self.workers = workers
        self.poll_interval = poll_interval
        self.idle = 0
        self.quiescent = False

    def next_directory(self, worker: WorkerState) -> Optional[str]:
        """
        Block until this worker has a directory to process, or return None
        once every worker is idle against an empty queue.
        """
        cond = self._queue.not_empty
        with cond:
            while True:
                if self.quiescent:
                    return None

                path = self._queue.pop_locked()
                if path is not None:
                    if worker.idle:
                        worker.idle = False
                        self.idle -= 1
                    return path

                if not worker.idle:
                    worker.idle = True
                    self.idle += 1
                    if self.idle == self.workers:
                        self.quiescent = True
                        cond.notify_all()
                        return None

                # Woken early by push(); the timeout bounds a missed notify
                cond.wait(self.poll_interval)


class WorkerPool:
    """Runs N traversal workers plus a separate executor for hashing."""

    def __init__(
        self,
        queue: WorkQueue,
        results: ResultAggregator,
        options: ScanOptions,
        status: Optional[StatusSink] = None,
    ) -> None:
        self.queue = queue
        self.results = results
        self.options = options
        self.status: StatusSink = status or NullStatus()
        self.state = PoolState(workers=options.workers)
        self.detector = TerminationDetector(queue, options.workers, options.poll_interval)
        self._hasher: Optional[ThreadPoolExecutor] = None

    def run(self) -> PoolState:
        """Start all workers and return once the pool is quiescent."""
        started = time.monotonic()
        threads: List[threading.Thread] = []
        with ThreadPoolExecutor(
            max_workers=self.options.effective_hash_workers,
            thread_name_prefix="dexy-hash",
        ) as hasher:
            self._hasher = hasher
            for i in range(self.options.workers):
                t = threading.Thread(
                    target=self._worker,
                    args=(i,),
                    daemon=True,
                    name=f"dexy-worker-{i + 1}",
                )
                t.start()
                threads.append(t)
            for t in threads:
                t.join()
        self._hasher = None
        logger.debug(
            "pool quiescent after %.2fs: %d directories", time.monotonic() - started, self.state.processed
        )
        return self.state

    # -- worker loop -------------------------------------------------------

    def _worker(self, worker_id: int) -> None:
        me = WorkerState(worker_id)
        self.status.set_status(worker_id, "started")
        while True:
            path = self.detector.next_directory(me)
            if path is None:
                break
            self.status.set_status(worker_id, f"processing dir: {display_path(path)}")
            try:
                self._process_directory(worker_id, path)
            except Exception:
                # A worker that leaves the loop is never counted idle and
                # the pool would wait forever.
                logger.exception("unexpected error processing %s", display_path(path))
                self.state.add(dir_errors=1)
            self.state.add(processed=1)
            self.status.set_status(worker_id, "idle")
        self.status.set_status(worker_id, "closing")

    def _process_directory(self, worker_id: int, path: str) -> None:
        opts = self.options
        listing = classify_directory(
            path,
            include_hidden=opts.include_hidden,
            ignore_empty=opts.ignore_empty,
        )
        if listing.error:
            logger.warning("Cannot read directory %s: %s", display_path(path), listing.error)
            self.state.add(dir_errors=1)

        # Publish discoveries before the slow part so idle peers can start on them
        if listing.subdirs:
            self.queue.extend(listing.subdirs)

        for skipped in listing.skipped:
            self._report_skip(skipped)

        scanned: List[ScannedFile] = []
        for candidate in listing.files:
            shown = display_path(candidate.path)
            self.status.set_status(worker_id, f"scanning file: {shown}")
            digest = self._hash(candidate.path)
            if not digest.ok:
                logger.warning("Cannot generate hash: %s (%s)", shown, digest.error)
                self.state.add(read_errors=1, skipped=1)
                continue
            attributes = attributes_from_stat(candidate.stat) if opts.load_file_attributes else None
            scanned.append(ScannedFile(hash=digest.digest, path=shown, attributes=attributes))
            self.state.add(files_hashed=1, bytes_hashed=candidate.stat.st_size)

        if scanned:
            self.results.record_many(scanned)

    def _hash(self, path: str) -> DigestResult:
        if self._hasher is None:
            return hash_file(path, self.options.chunk_size)
        return self._hasher.submit(hash_file, path, self.options.chunk_size).result()

    def _report_skip(self, skipped: SkippedEntry) -> None:
        level = _QUIET_SKIPS.get(skipped.reason, logging.WARNING)
        message = _SKIP_MESSAGES.get(skipped.reason, "Skipped")
        shown = printable_path(display_path(skipped.path))
        if skipped.error:
            logger.log(level, "%s: %s (%s)", message, shown, skipped.error)
        else:
            logger.log(level, "%s: %s", message, shown)
        if skipped.reason == classify.STAT_ERROR:
            self.state.add(read_errors=1, skipped=1)
        else:
            self.state.add(skipped=1)
