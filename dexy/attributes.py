"""Optional per-file attribute collection (size, timestamps, type)."""
from __future__ import annotations

import math
import os
import stat as stat_mod

from dexy.models import UNKNOWN_TIME, FileAttributes, FileType


def _seconds(value) -> int:
    if value is None:
        return UNKNOWN_TIME
    # floor keeps -1.5 at -2 instead of landing on UNKNOWN_TIME
    return math.floor(value)


def file_type_of(st: os.stat_result) -> FileType:
    """Type from the entry's own (lstat) metadata."""
    if stat_mod.S_ISLNK(st.st_mode):
        return FileType.SYMLINK
    if stat_mod.S_ISDIR(st.st_mode):
        return FileType.DIRECTORY
    return FileType.FILE


def attributes_from_stat(st: os.stat_result) -> FileAttributes:
    """
    Build FileAttributes from an lstat result already fetched for the entry.
    Birth time is only exposed on some platforms; elsewhere it is UNKNOWN_TIME.
    """
    return FileAttributes(
        size=st.st_size,
        created_date=_seconds(getattr(st, "st_birthtime", None)),
        accessed_date=_seconds(st.st_atime),
        edit_date=_seconds(st.st_mtime),
        file_type=file_type_of(st),
    )
