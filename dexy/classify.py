"""Directory entry classification: subdirectories to queue, files to hash, entries to skip."""
from __future__ import annotations

import os
import stat as stat_mod
from dataclasses import dataclass, field
from typing import List, Optional

from dexy.normalize import get_source_os, is_encodable

HIDDEN_PREFIX = "."
_FILE_ATTRIBUTE_HIDDEN = getattr(stat_mod, "FILE_ATTRIBUTE_HIDDEN", 0x2)

# Skip reasons
HIDDEN = "hidden"
BROKEN_SYMLINK = "broken_symlink"
DIRECTORY_SYMLINK = "directory_symlink"
SPECIAL_FILE = "special_file"
EMPTY = "empty"
STAT_ERROR = "stat_error"
UNDECODABLE_NAME = "undecodable_name"


@dataclass(frozen=True)
class FileCandidate:
    path: str
    stat: os.stat_result  # lstat of the entry itself


@dataclass(frozen=True)
class SkippedEntry:
    path: str
    reason: str
    error: Optional[str] = None


@dataclass
class ListingResult:
    """
    One directory's immediate entries, split by what happens to them next.
    error is set when the directory could not be (fully) listed; whatever was
    classified before the failure is still returned.
    """

    path: str
    subdirs: List[str] = field(default_factory=list)
    files: List[FileCandidate] = field(default_factory=list)
    skipped: List[SkippedEntry] = field(default_factory=list)
    error: Optional[str] = None


def is_hidden(entry: os.DirEntry, source_os: Optional[str] = None) -> bool:
    """
    Dot-prefixed names are hidden everywhere; on Windows the hidden
    file attribute counts too.
    """
    if entry.name.startswith(HIDDEN_PREFIX):
        return True
    if (source_os or get_source_os()) != "windows":
        return False
    try:
        attrs = getattr(entry.stat(follow_symlinks=False), "st_file_attributes", 0)
    except OSError:
        return False
    return bool(attrs & _FILE_ATTRIBUTE_HIDDEN)


def _classify_symlink(entry: os.DirEntry, result: ListingResult) -> None:
    try:
        target = os.stat(entry.path)
    except FileNotFoundError:
        result.skipped.append(SkippedEntry(entry.path, BROKEN_SYMLINK))
        return
    except OSError as e:
        # dangling through a loop or an unreadable hop: unresolvable either way
        result.skipped.append(SkippedEntry(entry.path, BROKEN_SYMLINK, e.strerror))
        return

    if stat_mod.S_ISDIR(target.st_mode):
        result.skipped.append(SkippedEntry(entry.path, DIRECTORY_SYMLINK))
    elif not stat_mod.S_ISREG(target.st_mode):
        result.skipped.append(SkippedEntry(entry.path, SPECIAL_FILE))
    else:
        result.files.append(FileCandidate(entry.path, entry.stat(follow_symlinks=False)))


def classify_directory(
    path: str,
    include_hidden: bool = False,
    ignore_empty: bool = False,
    source_os: Optional[str] = None,
) -> ListingResult:
    """
    List path once and sort each immediate entry into subdirs, files or skipped.
    Never raises OSError: per-entry failures become SkippedEntry, listing
    failures set ListingResult.error.
    """
    source_os = source_os or get_source_os()
    result = ListingResult(path=path)
    try:
        with os.scandir(path) as it:
            for entry in it:
                try:
                    if not include_hidden and is_hidden(entry, source_os):
                        result.skipped.append(SkippedEntry(entry.path, HIDDEN))
                        continue

                    if not is_encodable(entry.path):
                        result.skipped.append(SkippedEntry(entry.path, UNDECODABLE_NAME))
                        continue

                    if entry.is_symlink():
                        _classify_symlink(entry, result)
                        continue

                    if entry.is_dir(follow_symlinks=False):
                        result.subdirs.append(entry.path)
                        continue

                    st = entry.stat(follow_symlinks=False)
                    if not stat_mod.S_ISREG(st.st_mode):
                        # FIFOs, sockets, devices: opening them can block forever
                        result.skipped.append(SkippedEntry(entry.path, SPECIAL_FILE))
                    elif ignore_empty and st.st_size == 0:
                        result.skipped.append(SkippedEntry(entry.path, EMPTY))
                    else:
                        result.files.append(FileCandidate(entry.path, st))
                except OSError as e:
                    result.skipped.append(
                        SkippedEntry(entry.path, STAT_ERROR, e.strerror or str(e))
                    )
    except OSError as e:
        result.error = e.strerror or str(e)
    return result
