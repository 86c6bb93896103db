"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from zombie_watcher.actions.kill import KillExecutor
from zombie_watcher.config import Strategy, WatcherConfig
from zombie_watcher.models import KillResult, ProcessInfo
from zombie_watcher.probe.base import matches_filter


class FakeProbe:
    """In-memory OsProbe. Tests mutate the attributes between ticks."""

    def __init__(self) -> None:
        self.listeners: dict[int, int] = {}
        self.processes: list[ProcessInfo] = []
        self.commands: dict[int, str] = {}
        self.terminated: list[tuple[int, bool]] = []
        self.terminate_result = True

    def list_tcp_listeners(self) -> dict[int, int]:
        return dict(self.listeners)

    def list_matching_processes(self, tokens: Sequence[str]) -> list[ProcessInfo]:
        return [p for p in self.processes if matches_filter(p.command, tokens)]

    def get_process_command(self, pid: int) -> str | None:
        return self.commands.get(pid)

    def terminate(self, pid: int, force: bool = False) -> bool:
        self.terminated.append((pid, force))
        if self.terminate_result:
            # A killed process disappears from every later observation.
            self.processes = [p for p in self.processes if p.pid != pid]
            self.listeners = {port: p for port, p in self.listeners.items() if p != pid}
        return self.terminate_result


class FakeClock:
    def __init__(self, now: float = 1_800_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def reported() -> list[KillResult]:
    return []


@pytest.fixture
def executor(probe: FakeProbe, reported: list[KillResult]) -> KillExecutor:
    return KillExecutor(probe, dry_run=False, on_result=reported.append)


@pytest.fixture
def port_config() -> WatcherConfig:
    return WatcherConfig(
        base_ports=(5173,),
        range=5,
        strategy=Strategy.CHAIN,
        filter=("node", "vite"),
    )


@pytest.fixture
def process_config() -> WatcherConfig:
    return WatcherConfig(base_ports=(5173,), filter=("node", "vite"))
