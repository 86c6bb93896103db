"""Watcher data models — probe output, tracked records, and kill results."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ProcessInfo:
    """A process as reported by one probe call. Not persisted."""

    pid: int
    command: str
    creation_date: str | None = None


@dataclass
class ProcessRecord:
    """A tracked process, keyed by pid in the process watcher's table."""

    pid: int
    command: str
    first_seen: float
    creation_date: str | None = None


@dataclass
class PortRecord:
    """A tracked listening port, keyed by port in the port watcher's table."""

    port: int
    pid: int
    first_seen: float


class ReasonKind(enum.Enum):
    """Why a process was selected for termination."""

    DUPLICATE = "duplicate"
    MAX_AGE = "max-age"
    KILL_BASE = "kill-base"
    CHAIN = "chain"


@dataclass(frozen=True)
class KillReason:
    """Structured kill reason. ``str()`` renders the human-readable form."""

    kind: ReasonKind
    port: int | None = None
    kept_port: int | None = None
    kept_pid: int | None = None
    elapsed_minutes: int | None = None
    max_age_minutes: int | None = None

    def __str__(self) -> str:
        if self.kind is ReasonKind.DUPLICATE:
            if self.kept_pid is not None:
                return f"duplicate instance (keeping PID {self.kept_pid})"
            return "duplicate instance"
        if self.kind is ReasonKind.MAX_AGE:
            return (
                f"max age exceeded ({self.elapsed_minutes}m > {self.max_age_minutes}m)"
            )
        if self.kind is ReasonKind.KILL_BASE:
            return f"base-port strategy (port {self.port})"
        return f"chain strategy (port {self.port} below {self.kept_port})"


class KillOutcome(enum.Enum):
    KILLED = "killed"
    DRY_RUN_SKIPPED = "dry-run-skipped"
    FAILED = "failed"


@dataclass
class KillResult:
    """Outcome of one kill attempt, reported to logging and the console."""

    pid: int
    reason: KillReason
    outcome: KillOutcome
    command: str = ""
    timestamp: float = field(default_factory=time.time)

    @property
    def killed(self) -> bool:
        return self.outcome is KillOutcome.KILLED
