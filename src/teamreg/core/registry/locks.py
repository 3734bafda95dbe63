"""
Cross-process locks on lock files.

Several teamreg processes may work on the same workspace (one per CLI
invocation), and every workspace shares the one state file. Both are
guarded with ``fcntl.flock`` on a sidecar lock file, which the kernel
releases automatically if the holder dies.
"""

from __future__ import annotations

import fcntl
import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


@contextmanager
def file_lock(lock_path: Path) -> Iterator[None]:
    """
    Hold an exclusive lock on a lock file for the duration of the block.

    Not re-entrant: taking the same lock again in one process through a
    second ``file_lock`` blocks forever.
    """
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(str(lock_path), os.O_CREAT | os.O_RDWR)
    try:
        fcntl.flock(fd, fcntl.LOCK_EX)
        yield
    finally:
        fcntl.flock(fd, fcntl.LOCK_UN)
        os.close(fd)


class WorkspaceLock:
    """
    Re-entrant lock that excludes other threads and other processes.

    Threads of this process queue on an ``RLock``; the outermost holder
    also takes the file lock, so nested sections (add calling remove)
    never wait on themselves.
    """

    def __init__(self, lock_path: Path) -> None:
        self.lock_path = lock_path
        self._thread_lock = threading.RLock()
        self._depth = 0
        self._fd: int | None = None

    def acquire(self) -> bool:
        """
        Take the lock, blocking until it is free.

        Returns:
            True if this call took the file lock (the outermost acquire).
        """
        self._thread_lock.acquire()
        if self._depth > 0:
            self._depth += 1
            return False

        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(str(self.lock_path), os.O_CREAT | os.O_RDWR)
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
            except OSError:
                os.close(fd)
                raise
        except OSError:
            self._thread_lock.release()
            raise

        self._fd = fd
        self._depth = 1
        logger.debug("Acquired workspace lock %s", self.lock_path)
        return True

    def release(self) -> None:
        """Release one level; the outermost release drops the file lock."""
        self._depth -= 1
        if self._depth == 0 and self._fd is not None:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
            os.close(self._fd)
            self._fd = None
            logger.debug("Released workspace lock %s", self.lock_path)
        self._thread_lock.release()

    def __enter__(self) -> bool:
        return self.acquire()

    def __exit__(self, *exc_info: object) -> None:
        self.release()
