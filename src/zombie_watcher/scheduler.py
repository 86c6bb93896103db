"""Poll scheduler — drives watchers on a fixed interval, one tick at a time."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Sequence
from typing import Protocol

from zombie_watcher.models import KillOutcome, KillResult

logger = logging.getLogger(__name__)


class Watcher(Protocol):
    """What the scheduler needs from a watcher."""

    def start(self) -> None: ...

    def tick(self) -> list[KillResult]: ...


class PollScheduler:
    """Runs an initial synchronous scan, then ticks every ``interval`` seconds.

    Threading model:
    - Worker thread: run() — probe calls and kills happen here, serially.
    - Caller thread: stop()/join(), typically from a signal handler.

    A tick always runs to completion; stop() only prevents the next one.
    """

    def __init__(self, watchers: Sequence[Watcher], interval: float) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._watchers = list(watchers)
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_count = 0
        self._outcomes: Counter[KillOutcome] = Counter()
        self._watchers_started = False
        self._error: Exception | None = None

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def outcome_counts(self) -> Counter[KillOutcome]:
        """Running tally of kill outcomes; individual results are not retained."""
        return Counter(self._outcomes)

    @property
    def error(self) -> Exception | None:
        """Exception that ended the worker loop, if any."""
        return self._error

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run(self) -> None:
        """Blocking tick loop until stop()."""
        self._start_watchers()

        logger.info(
            "Scheduler started: %d watcher(s), interval %.3fs",
            len(self._watchers),
            self._interval,
        )
        while not self._stop_event.is_set():
            self._tick()
            self._stop_event.wait(timeout=self._interval)
        logger.info("Scheduler stopped after %d tick(s)", self._tick_count)

    def run_once(self) -> list[KillResult]:
        """Start the watchers and run a single tick."""
        self._start_watchers()
        return self._tick()

    def start(self) -> threading.Thread:
        """Run the loop on a daemon worker thread.

        Watchers are started on the calling thread first, so a ConfigError
        surfaces before any polling begins.
        """
        if self.is_running:
            raise RuntimeError("Scheduler already running")
        self._stop_event.clear()
        self._start_watchers()
        self._thread = threading.Thread(
            target=self._run_worker, name="zombie-watcher-poll", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        """Signal the loop to stop after the in-flight tick."""
        self._stop_event.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def _run_worker(self) -> None:
        try:
            self.run()
        except Exception as exc:
            logger.exception("Poll loop crashed")
            self._error = exc

    def _start_watchers(self) -> None:
        if self._watchers_started:
            return
        for watcher in self._watchers:
            watcher.start()
        self._watchers_started = True

    def _tick(self) -> list[KillResult]:
        results: list[KillResult] = []
        for watcher in self._watchers:
            results.extend(watcher.tick())
        self._outcomes.update(result.outcome for result in results)
        self._tick_count += 1
        return results
