"""Single-instance guard — an exclusive file lock held for the watcher's lifetime."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import IO

from zombie_watcher.config import default_data_dir

logger = logging.getLogger(__name__)

LOCK_FILENAME = "zombie-watcher.lock"


class LockError(RuntimeError):
    """Another watcher instance already holds the lock."""


def default_lock_path() -> Path:
    return default_data_dir() / LOCK_FILENAME


class SingletonLock:
    """Non-blocking exclusive lock; released on close or process exit."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_lock_path()
        self._handle: IO[str] | None = None

    @property
    def held(self) -> bool:
        return self._handle is not None

    def acquire(self) -> None:
        if self._handle is not None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        handle = open(self.path, "a+", encoding="utf-8")
        try:
            _lock_file(handle)
        except OSError:
            handle.close()
            raise LockError(
                f"Another zombie-watcher is already running (lock: {self.path})"
            ) from None

        handle.seek(0)
        handle.truncate()
        handle.write(str(os.getpid()))
        handle.flush()
        self._handle = handle
        logger.debug("Acquired lock %s", self.path)

    def release(self) -> None:
        if self._handle is None:
            return
        try:
            _unlock_file(self._handle)
        finally:
            self._handle.close()
            self._handle = None
        logger.debug("Released lock %s", self.path)

    def __enter__(self) -> SingletonLock:
        self.acquire()
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()


if sys.platform == "win32":
    import msvcrt

    def _lock_file(handle: IO[str]) -> None:
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)

    def _unlock_file(handle: IO[str]) -> None:
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)

else:
    import fcntl

    def _lock_file(handle: IO[str]) -> None:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)

    def _unlock_file(handle: IO[str]) -> None:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
