"""Tests for the single-instance lock."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from zombie_watcher.lock import LockError, SingletonLock


def test_acquire_writes_pid(tmp_path: Path):
    path = tmp_path / "nested" / "watcher.lock"
    with SingletonLock(path) as lock:
        assert lock.held
        assert path.read_text() == str(os.getpid())
    assert not lock.held


def test_second_instance_is_refused(tmp_path: Path):
    path = tmp_path / "watcher.lock"
    first = SingletonLock(path)
    first.acquire()
    try:
        with pytest.raises(LockError):
            SingletonLock(path).acquire()
    finally:
        first.release()


def test_lock_can_be_reacquired_after_release(tmp_path: Path):
    lock = SingletonLock(tmp_path / "watcher.lock")
    lock.acquire()
    lock.release()
    lock.acquire()
    assert lock.held
    lock.release()


def test_default_path_under_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    assert SingletonLock().path == tmp_path / "zombie-watcher" / "zombie-watcher.lock"
