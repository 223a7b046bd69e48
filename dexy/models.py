"""Pydantic models for the scan index and its JSON form."""
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, TypeAdapter

# Timestamp value for clocks the platform cannot report
UNKNOWN_TIME = -1


class FileType(str, Enum):
    SYMLINK = "SymLink"
    DIRECTORY = "Directory"
    FILE = "File"


class FileAttributes(BaseModel):
    size: int
    created_date: int = UNKNOWN_TIME
    accessed_date: int = UNKNOWN_TIME
    edit_date: int = UNKNOWN_TIME
    file_type: FileType = FileType.FILE


class ScannedFile(BaseModel):
    hash: str
    path: str
    attributes: Optional[FileAttributes] = None


# hash -> every file seen with that content
ScanResult = Dict[str, List[ScannedFile]]

_scan_result_adapter: TypeAdapter[ScanResult] = TypeAdapter(ScanResult)


def dump_scan_result(result: ScanResult, indent: Optional[int] = None) -> bytes:
    """UTF-8 JSON object: {hash: [{hash, path, attributes}, ...]}."""
    return _scan_result_adapter.dump_json(result, indent=indent)


def load_scan_result(data: bytes | str) -> ScanResult:
    return _scan_result_adapter.validate_json(data)


def duplicate_groups(result: ScanResult, min_count: int = 2) -> List[tuple[str, List[ScannedFile]]]:
    """(hash, files) pairs with at least min_count files, largest groups first."""
    groups = [(h, files) for h, files in result.items() if len(files) >= min_count]
    groups.sort(key=lambda item: (-len(item[1]), item[0]))
    return groups
