"""
Tests for the lock-file helpers.
"""

from __future__ import annotations

import threading
from pathlib import Path

from teamreg.core.registry import WorkspaceLock, file_lock


class TestFileLock:
    """Tests for file_lock."""

    def test_creates_lock_file(self, tmp_path: Path) -> None:
        lock_path = tmp_path / "nested" / "state.lock"

        with file_lock(lock_path):
            assert lock_path.is_file()

    def test_excludes_other_holders(self, tmp_path: Path) -> None:
        lock_path = tmp_path / "state.lock"
        acquired = threading.Event()

        def take_lock() -> None:
            with file_lock(lock_path):
                acquired.set()

        with file_lock(lock_path):
            thread = threading.Thread(target=take_lock)
            thread.start()
            assert not acquired.wait(timeout=0.3)

        thread.join(timeout=10)
        assert acquired.is_set()


class TestWorkspaceLock:
    """Tests for WorkspaceLock."""

    def test_reentrant(self, tmp_path: Path) -> None:
        lock = WorkspaceLock(tmp_path / "ws.lock")

        with lock as outer:
            with lock as inner:
                assert outer is True
                assert inner is False

    def test_released_for_other_lock_objects(self, tmp_path: Path) -> None:
        """A second lock on the same file waits until the first fully releases."""
        first = WorkspaceLock(tmp_path / "ws.lock")
        second = WorkspaceLock(tmp_path / "ws.lock")
        acquired = threading.Event()

        def take_second() -> None:
            with second:
                acquired.set()

        with first:
            with first:
                thread = threading.Thread(target=take_second)
                thread.start()
            assert not acquired.wait(timeout=0.3)

        thread.join(timeout=10)
        assert acquired.is_set()
