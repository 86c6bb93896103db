"""Kill executor — terminate a zombie process, honouring dry-run."""

from __future__ import annotations

import logging
from collections.abc import Callable

from zombie_watcher.models import KillOutcome, KillReason, KillResult
from zombie_watcher.probe.base import OsProbe

logger = logging.getLogger(__name__)


class KillExecutor:
    """Terminates processes chosen by a watcher and reports each outcome.

    Stateless apart from its collaborators, so both watchers can share one.
    """

    def __init__(
        self,
        probe: OsProbe,
        dry_run: bool = False,
        on_result: Callable[[KillResult], None] | None = None,
    ) -> None:
        self._probe = probe
        self._dry_run = dry_run
        self._on_result = on_result

    def execute(self, pid: int, reason: KillReason, command: str = "") -> KillResult:
        if self._dry_run:
            logger.warning("[dry-run] would kill PID %d — %s", pid, reason)
            return self._report(
                KillResult(pid, reason, KillOutcome.DRY_RUN_SKIPPED, command)
            )

        logger.critical("KILLING process %d (%s) — %s", pid, command or "?", reason)
        if self._probe.terminate(pid, force=True):
            logger.info("Process %d killed successfully", pid)
            outcome = KillOutcome.KILLED
        else:
            logger.error("Failed to kill process %d", pid)
            outcome = KillOutcome.FAILED
        return self._report(KillResult(pid, reason, outcome, command))

    def _report(self, result: KillResult) -> KillResult:
        if self._on_result:
            self._on_result(result)
        return result
