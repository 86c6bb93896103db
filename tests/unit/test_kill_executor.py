"""Tests for the kill executor."""

from __future__ import annotations

from zombie_watcher.actions.kill import KillExecutor
from zombie_watcher.models import KillOutcome, KillReason, KillResult, ReasonKind

DUPLICATE = KillReason(ReasonKind.DUPLICATE)


def test_execute_kills_with_force(probe, executor: KillExecutor):
    result = executor.execute(4101, DUPLICATE, "node server.js")

    assert result.outcome is KillOutcome.KILLED
    assert result.killed
    assert result.pid == 4101
    assert result.reason is DUPLICATE
    assert result.command == "node server.js"
    assert probe.terminated == [(4101, True)]


def test_execute_reports_failure(probe, executor: KillExecutor):
    probe.terminate_result = False

    result = executor.execute(4101, DUPLICATE)
    assert result.outcome is KillOutcome.FAILED
    assert not result.killed


def test_dry_run_never_calls_terminate(probe):
    executor = KillExecutor(probe, dry_run=True)

    for pid in (1, 4101, 4202):
        for kind in ReasonKind:
            result = executor.execute(pid, KillReason(kind, port=5173, kept_port=5176))
            assert result.outcome is KillOutcome.DRY_RUN_SKIPPED

    assert probe.terminated == []


def test_every_outcome_is_reported(probe, reported: list[KillResult]):
    executor = KillExecutor(probe, on_result=reported.append)
    executor.execute(4101, DUPLICATE)
    probe.terminate_result = False
    executor.execute(4202, DUPLICATE)

    assert [r.outcome for r in reported] == [KillOutcome.KILLED, KillOutcome.FAILED]


def test_reason_rendering():
    assert str(KillReason(ReasonKind.DUPLICATE)) == "duplicate instance"
    assert str(KillReason(ReasonKind.DUPLICATE, kept_pid=7)) == "duplicate instance (keeping PID 7)"
    assert (
        str(KillReason(ReasonKind.MAX_AGE, elapsed_minutes=1, max_age_minutes=1))
        == "max age exceeded (1m > 1m)"
    )
    assert str(KillReason(ReasonKind.KILL_BASE, port=5173)) == "base-port strategy (port 5173)"
    assert (
        str(KillReason(ReasonKind.CHAIN, port=5173, kept_port=5176))
        == "chain strategy (port 5173 below 5176)"
    )
