"""Tests for partial-read scratch copies and the scratch sweeper."""

import os

import pytest

from shelfscan.introspector.partial import (
    ScratchSweeper,
    TempFileFailure,
    copy_head,
    remove_scratch_file,
    scratch_name,
    sweep_stale_partials,
)


def make_file(path, age_seconds, now):
    path.write_bytes(b"data")
    mtime = now - age_seconds
    os.utime(path, (mtime, mtime))
    return path


class TestScratchName:
    """Tests for scratch_name."""

    def test_keeps_stem_and_extension(self, tmp_path):
        name = scratch_name(tmp_path / "The Book.m4b")

        assert name.startswith("The Book.")
        assert name.endswith(".m4b")

    def test_names_are_unique(self, tmp_path):
        """Repeated calls for the same source never collide."""
        source = tmp_path / "a.mp3"
        assert len({scratch_name(source) for _ in range(50)}) == 50

    def test_long_stems_truncated(self, tmp_path):
        name = scratch_name(tmp_path / ("x" * 300 + ".flac"))
        assert len(name) < 160
        assert name.endswith(".flac")


class TestCopyHead:
    """Tests for copy_head."""

    def test_copies_prefix(self, media_file, tmp_path):
        """Only the first max_bytes are copied."""
        scratch_dir = tmp_path / "scratch"

        copy = copy_head(media_file, scratch_dir, 1000)

        assert copy.parent == scratch_dir
        assert copy.suffix == ".m4b"
        assert copy.read_bytes() == media_file.read_bytes()[:1000]

    def test_small_file_copied_whole(self, tmp_path):
        """Files below the limit are copied in full."""
        source = tmp_path / "short.mp3"
        source.write_bytes(b"ID3" + b"\x00" * 100)

        copy = copy_head(source, tmp_path / "scratch", 5 * 1024 * 1024)

        assert copy.read_bytes() == source.read_bytes()

    def test_concurrent_copies_of_same_source_differ(self, media_file, tmp_path):
        first = copy_head(media_file, tmp_path / "scratch", 10)
        second = copy_head(media_file, tmp_path / "scratch", 10)
        assert first != second

    def test_missing_source_leaves_nothing(self, tmp_path):
        """A failed copy raises TempFileFailure and removes the target."""
        scratch_dir = tmp_path / "scratch"

        with pytest.raises(TempFileFailure):
            copy_head(tmp_path / "missing.m4b", scratch_dir, 1024)

        assert list(scratch_dir.iterdir()) == []

    def test_unusable_scratch_dir(self, media_file, tmp_path):
        """A scratch dir that cannot be created raises TempFileFailure."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(TempFileFailure, match="scratch dir"):
            copy_head(media_file, blocker, 1024)


class TestRemoveScratchFile:
    """Tests for remove_scratch_file."""

    def test_removes_file(self, tmp_path):
        path = tmp_path / "x.tmp"
        path.write_bytes(b"x")
        assert remove_scratch_file(path) is True
        assert not path.exists()

    def test_missing_file_is_fine(self, tmp_path):
        assert remove_scratch_file(tmp_path / "gone.tmp") is True


class TestSweepStalePartials:
    """Tests for sweep_stale_partials."""

    def test_removes_only_old_files(self, tmp_path):
        """Files older than max age go; newer files and dirs stay."""
        now = 1_700_000_000.0
        old = make_file(tmp_path / "old.m4b", 7200, now)
        fresh = make_file(tmp_path / "fresh.m4b", 60, now)
        (tmp_path / "subdir").mkdir()

        removed = sweep_stale_partials(tmp_path, max_age_seconds=3600, now=now)

        assert removed == 1
        assert not old.exists()
        assert fresh.exists()
        assert (tmp_path / "subdir").is_dir()

    def test_missing_dir_returns_zero(self, tmp_path):
        assert sweep_stale_partials(tmp_path / "nope") == 0

    def test_logs_sweep(self, tmp_path, caplog):
        now = 1_700_000_000.0
        make_file(tmp_path / "old.m4b", 7200, now)

        with caplog.at_level("INFO"):
            sweep_stale_partials(tmp_path, max_age_seconds=3600, now=now)

        assert "Swept 1 stale scratch file(s)" in caplog.text


class TestScratchSweeper:
    """Tests for ScratchSweeper."""

    def test_start_and_stop(self, tmp_path):
        """The thread runs between start() and stop()."""
        sweeper = ScratchSweeper(tmp_path, interval_seconds=3600)

        sweeper.start()
        try:
            assert sweeper.running is True
        finally:
            sweeper.stop()

        assert sweeper.running is False

    def test_double_start_warns(self, tmp_path, caplog):
        sweeper = ScratchSweeper(tmp_path, interval_seconds=3600)
        sweeper.start()
        try:
            sweeper.start()
        finally:
            sweeper.stop()

        assert "already running" in caplog.text

    def test_run_once_sweeps(self, tmp_path):
        """run_once removes stale files using the configured max age."""
        old = tmp_path / "old.mp3"
        old.write_bytes(b"x")
        os.utime(old, (0, 0))
        sweeper = ScratchSweeper(tmp_path, max_age_seconds=60)

        assert sweeper.run_once() == 1
        assert not old.exists()

    def test_stop_without_start(self, tmp_path):
        ScratchSweeper(tmp_path).stop()
