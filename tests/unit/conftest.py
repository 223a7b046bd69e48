"""
Fixtures shared by all unit tests.

Every test runs against an isolated config: DEXY_CONFIG_PATH points into
tmp_path (no file there unless the test writes one) and the cached config
singleton is reset before and after.
"""
import hashlib
import os
import sys

import pytest

from dexy import config as config_mod


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setenv("DEXY_CONFIG_PATH", str(tmp_path / "dexy.config"))
    monkeypatch.delenv("DEXY_WORKERS", raising=False)
    monkeypatch.delenv("DEXY_OUTPUT_DIR", raising=False)
    config_mod.reset_config()
    yield
    config_mod.reset_config()


def sha(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def write(path, content: bytes = b"") -> str:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)
    return str(path)


# Linux filesystems store names as raw bytes, so any byte string is a legal name
needs_raw_byte_names = pytest.mark.skipif(
    not sys.platform.startswith("linux") or sys.getfilesystemencoding() != "utf-8",
    reason="needs a filesystem that accepts names that are not valid UTF-8",
)


def raw_name(parent, name: bytes) -> str:
    """Path under parent whose last component is the given raw bytes."""
    return os.fsdecode(os.path.join(os.fsencode(str(parent)), name))


@pytest.fixture
def sample_tree(tmp_path):
    """
    R/a.txt = "hello"
    R/d/b.txt = "hello"
    R/d/c.txt = "world"
    """
    root = tmp_path / "R"
    write(root / "a.txt", b"hello")
    write(root / "d" / "b.txt", b"hello")
    write(root / "d" / "c.txt", b"world")
    return root
