"""Port watcher — applies the chain or kill-base strategy to configured port ranges."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from zombie_watcher.actions.kill import KillExecutor
from zombie_watcher.config import Strategy, WatcherConfig
from zombie_watcher.models import KillReason, KillResult, PortRecord, ReasonKind
from zombie_watcher.probe.base import OsProbe, matches_filter

logger = logging.getLogger(__name__)


class PortWatcher:
    """Tracks listeners on base..base+range for every base port."""

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
        self._watched = config.all_scanned_ports()
        self._records: dict[int, PortRecord] = {}

    @property
    def records(self) -> dict[int, PortRecord]:
        return dict(self._records)

    def start(self) -> None:
        ranges = ", ".join(
            f"{base}-{base + self._config.range}" for base in self._config.base_ports
        )
        logger.info(
            "Watching ports %s with strategy '%s'", ranges, self._config.strategy.value
        )
        if not self._config.filter:
            logger.warning("Empty process filter: no port occupant will be killed")

    def tick(self) -> list[KillResult]:
        listeners = self._probe.list_tcp_listeners()
        self._reconcile(listeners, self._clock())

        results: list[KillResult] = []
        for port, pid, reason in self.find_candidates():
            command = self._probe.get_process_command(pid)
            if command is None:
                logger.debug("Skipping PID %d on port %d: command unavailable", pid, port)
                continue
            if not matches_filter(command, self._config.filter):
                logger.debug(
                    "Skipping PID %d on port %d: %r does not match filter",
                    pid,
                    port,
                    command,
                )
                continue

            result = self._executor.execute(pid, reason, command)
            if result.killed:
                self._forget_pid(pid)
            results.append(result)
        return results

    def find_candidates(self) -> list[tuple[int, int, KillReason]]:
        """(port, pid, reason) per zombie, evaluated per base; each pid once."""
        candidates: list[tuple[int, int, KillReason]] = []
        seen: set[int] = set()
        for base in self._config.base_ports:
            if self._config.strategy is Strategy.KILL_BASE:
                found = self._kill_base_candidates(base)
            else:
                found = self._chain_candidates(base)
            for port, pid, reason in found:
                if pid in seen:
                    continue
                seen.add(pid)
                candidates.append((port, pid, reason))
        return candidates

    def _kill_base_candidates(self, base: int) -> list[tuple[int, int, KillReason]]:
        record = self._records.get(base)
        if record is None:
            return []
        return [(base, record.pid, KillReason(ReasonKind.KILL_BASE, port=base))]

    def _chain_candidates(self, base: int) -> list[tuple[int, int, KillReason]]:
        bound = sorted(p for p in self._config.scanned_ports(base) if p in self._records)
        if len(bound) < 2:
            return []

        # A restarting dev server climbs to the next free port: the top one is live.
        top = bound[-1]
        live_pid = self._records[top].pid
        candidates = []
        for port in bound[:-1]:
            pid = self._records[port].pid
            if pid == live_pid:
                continue
            reason = KillReason(ReasonKind.CHAIN, port=port, kept_port=top, kept_pid=live_pid)
            candidates.append((port, pid, reason))
        return candidates

    def _reconcile(self, listeners: dict[int, int], now: float) -> None:
        current = {port: pid for port, pid in listeners.items() if port in self._watched}

        for port, pid in current.items():
            record = self._records.get(port)
            if record is None or record.pid != pid:
                logger.info("Port %d bound by PID %d", port, pid)
                self._records[port] = PortRecord(port=port, pid=pid, first_seen=now)

        for port in set(self._records) - set(current):
            logger.debug("Port %d released", port)
            del self._records[port]

    def _forget_pid(self, pid: int) -> None:
        for port in [p for p, r in self._records.items() if r.pid == pid]:
            del self._records[port]
