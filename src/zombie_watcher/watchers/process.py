"""Process watcher — evicts duplicate and over-age instances of filtered processes."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from datetime import datetime

from zombie_watcher.actions.kill import KillExecutor
from zombie_watcher.config import ConfigError, WatcherConfig
from zombie_watcher.models import (
    KillReason,
    KillResult,
    ProcessInfo,
    ProcessRecord,
    ReasonKind,
)
from zombie_watcher.probe.base import OsProbe

logger = logging.getLogger(__name__)

# YYYYmmddHHMMSS, optionally followed by fractional seconds and a UTC offset
# (WMI: "20260219200036.437206+300"); only the fixed-width prefix is used.
_CREATION_DATE = re.compile(r"^(\d{4})(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})")


def parse_creation_date(value: str | None) -> float | None:
    """Parse a platform creation timestamp as local time. Never raises."""
    if not value:
        return None
    match = _CREATION_DATE.match(value.strip())
    if match is None:
        return None
    try:
        return datetime(*(int(part) for part in match.groups())).timestamp()
    except (ValueError, OverflowError, OSError):
        return None


def start_time(record: ProcessRecord) -> float:
    """Platform creation time when parseable, otherwise when first observed."""
    created = parse_creation_date(record.creation_date)
    return created if created is not None else record.first_seen


class ProcessWatcher:
    """Tracks processes matching the filter across polls.

    Per tick: reconcile the pid table with the probe, then kill every
    member of a duplicate-command group except the newest, and (when
    max-age is set) every process older than max-age.
    """

    def __init__(
        self,
        config: WatcherConfig,
        probe: OsProbe,
        executor: KillExecutor,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._probe = probe
        self._executor = executor
        self._clock = clock
        self._records: dict[int, ProcessRecord] = {}

    @property
    def records(self) -> dict[int, ProcessRecord]:
        return dict(self._records)

    def start(self) -> None:
        """Validate that there is something to watch. Raises ConfigError."""
        if not self._config.filter:
            raise ConfigError("No process filter specified. Use --filter.")
        logger.info("Monitoring processes: %s", ", ".join(self._config.filter))
        if self._config.max_age > 0:
            logger.info("Max age: %d minutes", self._config.max_age)

    def tick(self) -> list[KillResult]:
        infos = self._probe.list_matching_processes(self._config.filter)
        now = self._clock()
        self._reconcile(infos, now)

        results: list[KillResult] = []
        for record, reason in self.find_candidates(now):
            result = self._executor.execute(record.pid, reason, record.command)
            if result.killed:
                # Drop now so the next tick does not re-kill a pid still exiting.
                self._records.pop(record.pid, None)
            results.append(result)
        return results

    def find_candidates(self, now: float) -> list[tuple[ProcessRecord, KillReason]]:
        """Duplicates first, then over-age records; each pid at most once."""
        candidates: list[tuple[ProcessRecord, KillReason]] = []
        seen: set[int] = set()
        for record, reason in self.find_duplicates() + self.find_expired(now):
            if record.pid in seen:
                continue
            seen.add(record.pid)
            candidates.append((record, reason))
        return candidates

    def find_duplicates(self) -> list[tuple[ProcessRecord, KillReason]]:
        groups: dict[str, list[ProcessRecord]] = {}
        for record in self._records.values():
            groups.setdefault(record.command.strip(), []).append(record)

        candidates: list[tuple[ProcessRecord, KillReason]] = []
        for command, members in groups.items():
            if len(members) < 2:
                continue
            # Newest wins; pid breaks ties so input order never matters.
            newest = max(members, key=lambda r: (start_time(r), r.pid))
            logger.warning(
                "Found %d instances of %r, keeping PID %d (newest)",
                len(members),
                command,
                newest.pid,
            )
            for record in sorted(members, key=lambda r: (start_time(r), r.pid)):
                if record.pid == newest.pid:
                    continue
                candidates.append(
                    (record, KillReason(ReasonKind.DUPLICATE, kept_pid=newest.pid))
                )
        return candidates

    def find_expired(self, now: float) -> list[tuple[ProcessRecord, KillReason]]:
        max_age = self._config.max_age
        if max_age <= 0:
            return []

        candidates: list[tuple[ProcessRecord, KillReason]] = []
        for record in self._records.values():
            age = now - start_time(record)
            if age > max_age * 60:
                reason = KillReason(
                    ReasonKind.MAX_AGE,
                    elapsed_minutes=int(age // 60),
                    max_age_minutes=max_age,
                )
                candidates.append((record, reason))
        return candidates

    def _reconcile(self, infos: list[ProcessInfo], now: float) -> None:
        current: set[int] = set()
        for info in infos:
            current.add(info.pid)
            record = self._records.get(info.pid)
            if record is None:
                logger.info("New process detected: PID %d (%s)", info.pid, info.command)
                self._records[info.pid] = ProcessRecord(
                    pid=info.pid,
                    command=info.command,
                    first_seen=now,
                    creation_date=info.creation_date,
                )
            else:
                record.command = info.command
                record.creation_date = info.creation_date

        for pid in set(self._records) - current:
            logger.debug("Process %d exited", pid)
            del self._records[pid]
