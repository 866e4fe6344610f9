"""
Tests for time-based eviction of generated artifacts.
"""

import os
import time

import pytest

from filetools_backend.lifecycle import OutputLifecycle


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def lifecycle(clock):
    return OutputLifecycle(retention_seconds=3600, sweep_interval_seconds=60, clock=clock)


def write(path, content=b"data"):
    path.write_bytes(content)
    return path


class TestTrack:
    """Tests for OutputLifecycle.track."""

    def test_track_describes_artifact(self, lifecycle, tmp_path):
        artifact = lifecycle.track(write(tmp_path / "merged_1_2.pdf", b"12345"))
        assert artifact.file_id == "merged_1_2.pdf"
        assert artifact.file_name == "merged_1_2.pdf"
        assert artifact.size_bytes == 5
        assert artifact.created_at.tzinfo is not None

    def test_display_name(self, lifecycle, tmp_path):
        artifact = lifecycle.track(write(tmp_path / "report-1.docx"), "report.docx")
        assert artifact.file_id == "report-1.docx"
        assert artifact.file_name == "report.docx"

    def test_missing_file(self, lifecycle, tmp_path):
        with pytest.raises(FileNotFoundError):
            lifecycle.track(tmp_path / "never-written.txt")


class TestSweep:
    """Tests for OutputLifecycle.sweep."""

    def test_nothing_due_before_retention(self, lifecycle, clock, tmp_path):
        path = write(tmp_path / "a.txt")
        lifecycle.track(path)
        clock.advance(3599)
        assert lifecycle.sweep() == 0
        assert path.exists()
        assert lifecycle.is_live("a.txt")

    def test_due_artifact_is_deleted(self, lifecycle, clock, tmp_path):
        path = write(tmp_path / "a.txt")
        lifecycle.track(path)
        clock.advance(3600)
        assert lifecycle.sweep() == 1
        assert not path.exists()
        assert not lifecycle.is_live("a.txt")
        assert lifecycle.pending() == 0

    def test_only_due_entries_are_evicted(self, lifecycle, clock, tmp_path):
        older = write(tmp_path / "older.txt")
        lifecycle.track(older)
        clock.advance(1800)
        newer = write(tmp_path / "newer.txt")
        lifecycle.track(newer)
        clock.advance(1800)

        assert lifecycle.sweep() == 1
        assert not older.exists()
        assert newer.exists()
        assert lifecycle.pending() == 1

    def test_already_deleted_file_is_tolerated(self, lifecycle, clock, tmp_path):
        path = write(tmp_path / "gone.txt")
        lifecycle.track(path)
        path.unlink()
        clock.advance(3601)
        assert lifecycle.sweep() == 1

    def test_access_does_not_extend_life(self, lifecycle, clock, tmp_path):
        path = write(tmp_path / "a.txt")
        lifecycle.track(path)
        clock.advance(3000)
        assert lifecycle.is_live("a.txt")
        clock.advance(600)
        lifecycle.sweep()
        assert not path.exists()


class TestAdoptExisting:
    """Tests for scheduling leftovers from an earlier run."""

    def test_leftovers_keep_their_age(self, lifecycle, clock, tmp_path):
        stale = write(tmp_path / "stale.txt")
        fresh = write(tmp_path / "fresh.txt")
        os.utime(stale, (clock.now - 7200, clock.now - 7200))
        os.utime(fresh, (clock.now, clock.now))

        assert lifecycle.adopt_existing(tmp_path) == 2
        assert lifecycle.sweep() == 1
        assert not stale.exists()
        assert fresh.exists()

    def test_missing_directory(self, lifecycle, tmp_path):
        assert lifecycle.adopt_existing(tmp_path / "absent") == 0

    def test_tracked_files_are_not_adopted_twice(self, lifecycle, tmp_path):
        lifecycle.track(write(tmp_path / "a.txt"))
        assert lifecycle.adopt_existing(tmp_path) == 0


class TestSweeperThread:
    """Tests for the background sweeper."""

    def test_start_and_stop(self, tmp_path):
        lifecycle = OutputLifecycle(retention_seconds=0, sweep_interval_seconds=0.01)
        path = write(tmp_path / "a.txt")
        lifecycle.start()
        try:
            lifecycle.track(path)
            for _ in range(200):
                if not path.exists():
                    break
                time.sleep(0.01)
        finally:
            lifecycle.stop()
        assert not path.exists()
