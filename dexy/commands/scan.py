"""dexy scan — hash every file under the start directories and write a JSON index."""

from __future__ import annotations

import logging
import os
import sys
import tempfile
import time
from typing import Any, Optional

from dexy.config import default_worker_count, get_output_config, get_scan_config
from dexy.errors import FatalError
from dexy.models import ScanResult, dump_scan_result
from dexy.normalize import canonicalize_start_dirs, safe_path
from dexy.pool import ScanOptions, WorkerPool
from dexy.progress import ProgressDisplay, format_duration, format_size
from dexy.results import ResultAggregator
from dexy.work_queue import WorkQueue

logger = logging.getLogger("dexy.scan")


def _flag(cli_value: bool, cfg: dict, key: str) -> bool:
    """A store_true flag turns the option on; otherwise the config file decides."""
    return bool(cli_value) or bool(cfg.get(key, False))


def _positive(value: Any, name: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError) as e:
        raise FatalError(f"{name} must be a positive integer, got {value!r}") from e
    if n < 1:
        raise FatalError(f"{name} must be a positive integer, got {n}")
    return n


def build_options(args) -> ScanOptions:
    cfg = get_scan_config()

    workers = getattr(args, "thread_count", None)
    if workers is None:
        workers = cfg.get("workers") or default_worker_count()
    workers = _positive(workers, "thread count")

    # 0 / unset means "one hashing thread per worker"
    hash_workers = getattr(args, "hash_threads", None)
    if hash_workers is None:
        hash_workers = cfg.get("hash_workers") or 0
    hash_workers = _positive(hash_workers, "hash thread count") if hash_workers else 0

    chunk_size_mb = _positive(cfg.get("chunk_size_mb", 8), "chunk_size_mb")
    poll_ms = _positive(cfg.get("poll_interval_ms", 100), "poll_interval_ms")

    return ScanOptions(
        workers=workers,
        hash_workers=hash_workers,
        chunk_size=chunk_size_mb * 1024 * 1024,
        poll_interval=poll_ms / 1000.0,
        include_hidden=_flag(getattr(args, "include_hidden", False), cfg, "include_hidden"),
        ignore_empty=_flag(getattr(args, "ignore_empty", False), cfg, "ignore_empty"),
        load_file_attributes=_flag(
            getattr(args, "load_file_attributes", False), cfg, "load_file_attributes"
        ),
    )


def reject_unsupported(args) -> None:
    """Exclusion patterns and incremental updates are declared but not supported."""
    if getattr(args, "exclude", None):
        raise FatalError("--exclude is not supported; every file under the start directories is indexed")
    if getattr(args, "update_existing", False):
        raise FatalError("--update-existing is not supported; rescan from scratch instead")


def output_path(args) -> str:
    out_cfg = get_output_config()
    out_dir = getattr(args, "out", None) or out_cfg.get("dir") or "./"
    name = getattr(args, "name", None) or out_cfg.get("name") or "dexy"
    out_dir = os.path.expanduser(out_dir)
    if not os.path.isdir(out_dir):
        raise FatalError("output directory does not exist", out_dir)
    if os.sep in name or (os.altsep and os.altsep in name):
        raise FatalError(f"scan name must not contain a path separator: {name!r}")
    return os.path.join(out_dir, f"{name}.json")


def write_result(result: ScanResult, path: str, indent: Optional[int] = None) -> None:
    """Write the index to path via a temp file + rename so a failed write leaves no partial file."""
    try:
        data = dump_scan_result(result, indent=indent)
    except ValueError as e:
        # PydanticSerializationError, e.g. a path that cannot be encoded as UTF-8
        raise FatalError(f"cannot serialize scan result ({e})", path) from e
    directory = os.path.dirname(os.path.abspath(path))
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".dexy-", suffix=".json.tmp", dir=directory)
    except OSError as e:
        raise FatalError(f"cannot write output ({e.strerror})", path) from e
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except OSError as e:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise FatalError(f"cannot write output ({e.strerror})", path) from e


def run_scan(roots: list[str], options: ScanOptions, quiet: bool = True) -> tuple[ScanResult, dict]:
    """Scan already-canonicalized roots to quiescence; return the index and final counters."""
    queue = WorkQueue(safe_path(r) for r in roots)
    results = ResultAggregator()

    def _counters() -> tuple[int, int, int]:
        state = pool.state
        return state.processed, queue.pushed, state.bytes_hashed

    display = ProgressDisplay(_counters, quiet=quiet)
    pool = WorkerPool(queue, results, options, status=display)
    display.start()
    try:
        state = pool.run()
    finally:
        display.stop()
    return results.snapshot(), state.snapshot()


def cmd_scan(args) -> None:
    quiet = getattr(args, "quiet", False)

    reject_unsupported(args)
    options = build_options(args)
    out_path = output_path(args)
    indent = getattr(args, "indent", None)
    if indent is None:
        indent = get_output_config().get("indent")

    roots = canonicalize_start_dirs(getattr(args, "start_directory", None) or ["."])
    logger.info("starting at: %s", roots[0])
    logger.info(
        "%d worker(s), %d hash thread(s), output %s",
        options.workers,
        options.effective_hash_workers,
        out_path,
    )

    started = time.time()
    result, stats = run_scan(roots, options, quiet=quiet)
    write_result(result, out_path, indent=indent)
    elapsed = time.time() - started

    duplicate_groups = sum(1 for files in result.values() if len(files) > 1)
    err_suffix = f", {stats['read_errors']:,} read errors" if stats["read_errors"] else ""
    dir_suffix = (
        f", {stats['dir_errors']:,} unreadable directories" if stats["dir_errors"] else ""
    )
    print(
        f"Scan complete: {stats['processed']:,} directories, "
        f"{stats['files_hashed']:,} files hashed, "
        f"{duplicate_groups:,} duplicate groups, "
        f"{stats['skipped']:,} skipped{err_suffix}{dir_suffix}, "
        f"{format_size(stats['bytes_hashed'])} hashed, "
        f"{format_duration(elapsed)} elapsed",
        file=sys.stderr,
    )
    print(f"Wrote {out_path}", file=sys.stderr)
