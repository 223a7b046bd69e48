"""Platform detection and start-path canonicalization."""
import os
import platform
from typing import List

from dexy.errors import FatalError


def get_source_os() -> str:
    system = platform.system().lower()
    if system == "windows":
        return "windows"
    elif system == "darwin":
        return "darwin"
    else:
        return "linux"


def safe_path(raw_path: str) -> str:
    """
    Return a path safe for os.stat / open on Windows (adds \\?\\ prefix for long paths).
    No-op on POSIX.
    """
    if get_source_os() != "windows":
        return raw_path
    if raw_path.startswith("\\\\?\\"):
        return raw_path
    abs_path = os.path.abspath(raw_path)
    return "\\\\?\\" + abs_path


def display_path(raw_path: str) -> str:
    """Strip the \\?\\ long-path prefix so recorded paths look like what the user typed."""
    if raw_path.startswith("\\\\?\\"):
        return raw_path[4:]
    return raw_path


def is_encodable(path: str) -> bool:
    """False for names read from disk that cannot be written back out as UTF-8."""
    try:
        path.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def printable_path(raw_path: str) -> str:
    """Path for log lines: bytes that are not valid UTF-8 show as \\xNN escapes."""
    try:
        raw = raw_path.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        return raw_path.encode("utf-8", "backslashreplace").decode("utf-8")
    return raw.decode("utf-8", "backslashreplace")


def canonicalize_start_dir(raw_path: str) -> str:
    """
    Expand ~ and resolve symlinks/relative parts of a start directory.
    Raises FatalError if it does not exist or is not a directory.
    """
    expanded = os.path.expanduser(raw_path)
    try:
        resolved = os.path.realpath(expanded, strict=True)
    except (OSError, ValueError) as e:
        raise FatalError("cannot canonicalize start directory", raw_path) from e
    if not os.path.isdir(resolved):
        raise FatalError("start path is not a directory", raw_path)
    if not is_encodable(resolved):
        raise FatalError("start directory path is not valid UTF-8", printable_path(resolved))
    return resolved


def _is_within(path: str, root: str) -> bool:
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


def canonicalize_start_dirs(raw_paths: List[str]) -> List[str]:
    """
    Canonicalize every start directory, keeping order.
    Repeats and roots nested inside another root are dropped so no file
    is reached twice.
    """
    resolved = [canonicalize_start_dir(raw) for raw in raw_paths]
    roots: List[str] = []
    for root in resolved:
        if any(_is_within(root, other) for other in resolved if other != root):
            continue
        if root not in roots:
            roots.append(root)
    return roots
