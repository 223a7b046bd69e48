"""Unit tests for dexy.classify."""
import os
import sys
from unittest.mock import MagicMock

import pytest

from dexy import classify
from dexy.classify import classify_directory, is_hidden
from tests.unit.conftest import needs_raw_byte_names, raw_name, write

needs_symlinks = pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")


def _names(paths):
    return sorted(os.path.basename(p) for p in paths)


def _reasons(listing):
    return {os.path.basename(s.path): s.reason for s in listing.skipped}


class TestIsHidden:
    def _entry(self, name):
        entry = MagicMock()
        entry.name = name
        return entry

    def test_dot_prefix_hidden(self):
        assert is_hidden(self._entry(".git"), "linux")

    def test_plain_name_not_hidden(self):
        assert not is_hidden(self._entry("notes.txt"), "linux")

    def test_dot_inside_name_not_hidden(self):
        assert not is_hidden(self._entry("archive.tar.gz"), "darwin")

    def test_windows_hidden_attribute(self):
        entry = self._entry("desktop.ini")
        entry.stat.return_value = MagicMock(st_file_attributes=0x2)
        assert is_hidden(entry, "windows")

    def test_windows_without_hidden_attribute(self):
        entry = self._entry("report.docx")
        entry.stat.return_value = MagicMock(st_file_attributes=0x20)
        assert not is_hidden(entry, "windows")

    def test_windows_stat_failure_not_hidden(self):
        entry = self._entry("gone.txt")
        entry.stat.side_effect = OSError("vanished")
        assert not is_hidden(entry, "windows")


class TestClassifyDirectory:
    # -- basic split -----------------------------------------------------------

    def test_splits_subdirs_and_files(self, sample_tree):
        listing = classify_directory(str(sample_tree))
        assert listing.error is None
        assert _names(listing.subdirs) == ["d"]
        assert _names(c.path for c in listing.files) == ["a.txt"]
        assert listing.skipped == []

    def test_does_not_descend(self, sample_tree):
        listing = classify_directory(str(sample_tree))
        assert all(os.path.dirname(c.path) == str(sample_tree) for c in listing.files)

    def test_empty_directory(self, tmp_path):
        listing = classify_directory(str(tmp_path))
        assert listing.subdirs == [] and listing.files == [] and listing.skipped == []

    def test_candidate_carries_lstat(self, tmp_path):
        write(tmp_path / "f.bin", b"12345")
        (candidate,) = classify_directory(str(tmp_path)).files
        assert candidate.stat.st_size == 5

    # -- hidden policy -----------------------------------------------------------

    def test_hidden_file_skipped_by_default(self, tmp_path):
        write(tmp_path / ".secret", b"x")
        listing = classify_directory(str(tmp_path))
        assert listing.files == []
        assert _reasons(listing) == {".secret": classify.HIDDEN}

    def test_hidden_dir_not_queued_by_default(self, tmp_path):
        (tmp_path / ".cache").mkdir()
        listing = classify_directory(str(tmp_path))
        assert listing.subdirs == []
        assert _reasons(listing) == {".cache": classify.HIDDEN}

    def test_hidden_included_when_enabled(self, tmp_path):
        write(tmp_path / ".secret", b"x")
        (tmp_path / ".cache").mkdir()
        listing = classify_directory(str(tmp_path), include_hidden=True)
        assert _names(c.path for c in listing.files) == [".secret"]
        assert _names(listing.subdirs) == [".cache"]

    # -- empty-file policy -------------------------------------------------------

    def test_empty_file_kept_by_default(self, tmp_path):
        write(tmp_path / "zero", b"")
        assert _names(c.path for c in classify_directory(str(tmp_path)).files) == ["zero"]

    def test_empty_file_skipped_when_ignoring(self, tmp_path):
        write(tmp_path / "zero", b"")
        write(tmp_path / "one", b"1")
        listing = classify_directory(str(tmp_path), ignore_empty=True)
        assert _names(c.path for c in listing.files) == ["one"]
        assert _reasons(listing) == {"zero": classify.EMPTY}

    # -- symlinks ----------------------------------------------------------------

    @needs_symlinks
    def test_broken_symlink_skipped_others_kept(self, tmp_path):
        os.symlink(str(tmp_path / "missing"), str(tmp_path / "dangling"))
        write(tmp_path / "real.txt", b"x")
        listing = classify_directory(str(tmp_path))
        assert _reasons(listing) == {"dangling": classify.BROKEN_SYMLINK}
        assert _names(c.path for c in listing.files) == ["real.txt"]

    @needs_symlinks
    def test_symlink_to_file_is_candidate(self, tmp_path):
        target = write(tmp_path / "target.txt", b"x")
        os.symlink(target, str(tmp_path / "link.txt"))
        listing = classify_directory(str(tmp_path))
        assert _names(c.path for c in listing.files) == ["link.txt", "target.txt"]

    @needs_symlinks
    def test_symlink_to_directory_not_queued(self, tmp_path):
        (tmp_path / "real").mkdir()
        os.symlink(str(tmp_path / "real"), str(tmp_path / "loop"))
        listing = classify_directory(str(tmp_path))
        assert _names(listing.subdirs) == ["real"]
        assert _reasons(listing) == {"loop": classify.DIRECTORY_SYMLINK}

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="no FIFOs on this platform")
    def test_fifo_skipped(self, tmp_path):
        os.mkfifo(str(tmp_path / "pipe"))
        listing = classify_directory(str(tmp_path))
        assert listing.files == []
        assert _reasons(listing) == {"pipe": classify.SPECIAL_FILE}

    @needs_raw_byte_names
    def test_undecodable_file_name_skipped(self, tmp_path):
        write(tmp_path / "ok.txt", b"ok")
        bad = write(raw_name(tmp_path, b"bad\xff.txt"), b"bad")
        listing = classify_directory(str(tmp_path))
        assert _names(c.path for c in listing.files) == ["ok.txt"]
        assert [(s.path, s.reason) for s in listing.skipped] == [(bad, classify.UNDECODABLE_NAME)]

    @needs_raw_byte_names
    def test_undecodable_directory_name_not_queued(self, tmp_path):
        (tmp_path / "good").mkdir()
        bad = raw_name(tmp_path, b"dir\xfe")
        os.mkdir(bad)
        listing = classify_directory(str(tmp_path))
        assert _names(listing.subdirs) == ["good"]
        assert [s.reason for s in listing.skipped] == [classify.UNDECODABLE_NAME]

    @needs_raw_byte_names
    def test_hidden_check_runs_first(self, tmp_path):
        write(raw_name(tmp_path, b".hid\xff"), b"x")
        assert [s.reason for s in classify_directory(str(tmp_path)).skipped] == [classify.HIDDEN]

    # -- failures ----------------------------------------------------------------

    def test_missing_directory_reports_error(self, tmp_path):
        listing = classify_directory(str(tmp_path / "gone"))
        assert listing.error
        assert listing.subdirs == [] and listing.files == []

    @pytest.mark.skipif(sys.platform == "win32" or os.geteuid() == 0,
                        reason="permission bits not enforced")
    def test_unreadable_directory_reports_error(self, tmp_path):
        locked = tmp_path / "locked"
        locked.mkdir()
        locked.chmod(0)
        try:
            assert classify_directory(str(locked)).error
        finally:
            locked.chmod(0o755)
