"""OsProbe protocol and helpers shared by the platform adapters."""

from __future__ import annotations

import logging
import os
import re
import subprocess
from collections.abc import Iterable, Sequence
from typing import Protocol, runtime_checkable

import psutil

from zombie_watcher.models import ProcessInfo

logger = logging.getLogger(__name__)

# Hard limit on any external enumeration call, in seconds.
PROBE_TIMEOUT = 5

_PORT_SUFFIX = re.compile(r":(\d+)$")


@runtime_checkable
class OsProbe(Protocol):
    """Platform adapter turning system-utility output into structured records."""

    def list_tcp_listeners(self) -> dict[int, int]:
        """Return {port: pid} for listening TCP sockets. Empty on any failure."""
        ...

    def list_matching_processes(self, tokens: Sequence[str]) -> list[ProcessInfo]:
        """Return processes whose command line contains any token."""
        ...

    def get_process_command(self, pid: int) -> str | None:
        """Return the command line of a single process, or None."""
        ...

    def terminate(self, pid: int, force: bool = False) -> bool:
        """Signal a process. Returns True on success, never raises."""
        ...


def run_command(
    args: Sequence[str],
    timeout: float = PROBE_TIMEOUT,
    env: dict[str, str] | None = None,
) -> str | None:
    """Run an external command and return its stdout, or None on failure.

    On timeout ``subprocess.run`` kills the child before raising, so a hung
    utility never outlives the call.
    """
    try:
        result = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            env=env,
        )
    except subprocess.TimeoutExpired:
        logger.warning("%s timed out after %ss", args[0], timeout)
        return None
    except (FileNotFoundError, PermissionError, OSError) as exc:
        logger.debug("%s failed to run: %s", args[0], exc)
        return None

    if result.returncode != 0 and not result.stdout:
        logger.debug(
            "%s exited with %d: %s", args[0], result.returncode, result.stderr.strip()
        )
        return None
    return result.stdout


def parse_port(address: str) -> int | None:
    """Extract the port from an address like '*:3000', '[::1]:3000' or '0.0.0.0:80'."""
    match = _PORT_SUFFIX.search(address)
    if match is None:
        return None
    return int(match.group(1))


def matches_filter(command: str, tokens: Iterable[str]) -> bool:
    """Case-sensitive substring match of any token against a command line."""
    return any(token in command for token in tokens)


class BaseProbe:
    """Behaviour common to every platform: psutil termination, self-exclusion."""

    def __init__(self) -> None:
        self._own_pid = os.getpid()

    def terminate(self, pid: int, force: bool = False) -> bool:
        try:
            proc = psutil.Process(pid)
            if force:
                proc.kill()
            else:
                proc.terminate()
        except psutil.NoSuchProcess:
            logger.debug("Process %d already exited", pid)
            return False
        except psutil.AccessDenied:
            logger.debug("Permission denied signalling process %d", pid)
            return False
        except (psutil.Error, OSError) as exc:
            logger.debug("Could not signal process %d: %s", pid, exc)
            return False
        return True

    def _keep(self, info: ProcessInfo) -> bool:
        return info.pid != self._own_pid
