"""Unit tests for dexy.attributes."""
import os
import sys
from types import SimpleNamespace
import stat

import pytest

from dexy.attributes import attributes_from_stat, file_type_of
from dexy.models import UNKNOWN_TIME, FileType


def _fake_stat(mode=stat.S_IFREG | 0o644, size=10, atime=1.9, mtime=2.5, **extra):
    return SimpleNamespace(st_mode=mode, st_size=size, st_atime=atime, st_mtime=mtime, **extra)


class TestFileTypeOf:
    def test_regular(self):
        assert file_type_of(_fake_stat()) is FileType.FILE

    def test_symlink(self):
        assert file_type_of(_fake_stat(mode=stat.S_IFLNK | 0o777)) is FileType.SYMLINK

    def test_directory(self):
        assert file_type_of(_fake_stat(mode=stat.S_IFDIR | 0o755)) is FileType.DIRECTORY


class TestAttributesFromStat:
    def test_fields(self):
        attrs = attributes_from_stat(_fake_stat(size=42, atime=1700000000.7, mtime=1600000000.2))
        assert attrs.size == 42
        assert attrs.accessed_date == 1700000000
        assert attrs.edit_date == 1600000000

    def test_birth_time_missing_is_sentinel(self):
        assert attributes_from_stat(_fake_stat()).created_date == UNKNOWN_TIME

    def test_birth_time_used_when_present(self):
        assert attributes_from_stat(_fake_stat(st_birthtime=123.9)).created_date == 123

    def test_pre_epoch_timestamps_stay_signed(self):
        attrs = attributes_from_stat(_fake_stat(mtime=-5.0))
        assert attrs.edit_date == -5

    def test_fractional_pre_epoch_rounds_down_past_sentinel(self):
        attrs = attributes_from_stat(_fake_stat(atime=-1.5, mtime=-2.1))
        assert attrs.accessed_date == -2
        assert attrs.edit_date == -3

    def test_positive_fraction_truncated(self):
        assert attributes_from_stat(_fake_stat(mtime=2.99)).edit_date == 2

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_real_symlink_lstat(self, tmp_path):
        target = tmp_path / "t"
        target.write_bytes(b"abc")
        link = tmp_path / "l"
        os.symlink(str(target), str(link))
        assert attributes_from_stat(os.lstat(link)).file_type is FileType.SYMLINK
        assert attributes_from_stat(os.lstat(target)).size == 3
