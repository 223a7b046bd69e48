"""dexy dupes — list duplicate groups from a written index."""
from __future__ import annotations

import sys

from pydantic import ValidationError

from dexy.errors import FatalError
from dexy.models import ScanResult, duplicate_groups, load_scan_result
from dexy.progress import format_size


def load_index(path: str) -> ScanResult:
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise FatalError(f"cannot read index ({e.strerror})", path) from e
    try:
        return load_scan_result(data)
    except ValidationError as e:
        raise FatalError(f"not a dexy index ({e.error_count()} errors)", path) from e


def cmd_dupes(args) -> None:
    result = load_index(args.index)
    min_count = max(2, getattr(args, "min_count", 2) or 2)
    full_hash = getattr(args, "full_hash", False)

    groups = duplicate_groups(result, min_count=min_count)
    redundant = 0
    reclaimable = 0
    for hash_val, files in groups:
        shown = hash_val if full_hash else hash_val[:8]
        sizes = [f.attributes.size for f in files if f.attributes is not None]
        size_part = f"  {format_size(sizes[0])} each" if sizes else ""
        print(f"{shown}  {len(files)} files{size_part}")
        for scanned in sorted(files, key=lambda f: f.path):
            print(f"    {scanned.path}")
        redundant += len(files) - 1
        if sizes:
            reclaimable += sizes[0] * (len(files) - 1)

    reclaim_part = f", {format_size(reclaimable)} reclaimable" if reclaimable else ""
    print(
        f"{len(groups):,} duplicate groups, {redundant:,} redundant files{reclaim_part}",
        file=sys.stderr,
    )
