"""Process enumeration via ps, shared by the Linux and macOS probes."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Sequence
from datetime import datetime

from zombie_watcher.models import ProcessInfo
from zombie_watcher.probe.base import BaseProbe, matches_filter, run_command

logger = logging.getLogger(__name__)

# "  4242 Mon Oct 19 10:31:00 2026 node server.js"
_PS_LINE = re.compile(
    r"^\s*(\d+)\s+"
    r"(\w{3}\s+\w{3}\s+\d{1,2}\s+\d{2}:\d{2}:\d{2}\s+\d{4})\s+"
    r"(.*)$"
)

# lstart is printed in the C locale when LC_ALL=C is forced.
_LSTART_FORMAT = "%a %b %d %H:%M:%S %Y"
CREATION_DATE_FORMAT = "%Y%m%d%H%M%S"


def _c_locale_env() -> dict[str, str]:
    env = dict(os.environ)
    env["LC_ALL"] = "C"
    return env


def lstart_to_creation_date(lstart: str) -> str | None:
    """Convert ps lstart ('Mon Oct 19 10:31:00 2026') to 'YYYYmmddHHMMSS'."""
    try:
        started = datetime.strptime(" ".join(lstart.split()), _LSTART_FORMAT)
    except ValueError:
        return None
    return started.strftime(CREATION_DATE_FORMAT)


def parse_ps_output(output: str) -> list[ProcessInfo]:
    """Parse ``ps -Ao pid=,lstart=,args=`` output."""
    processes = []
    for line in output.splitlines():
        match = _PS_LINE.match(line)
        if match is None:
            continue
        command = match.group(3).strip()
        if not command:
            continue
        processes.append(
            ProcessInfo(
                pid=int(match.group(1)),
                command=command,
                creation_date=lstart_to_creation_date(match.group(2)),
            )
        )
    return processes


class PosixProbe(BaseProbe):
    """ps-based process lookups. Subclasses supply the listener enumeration."""

    def list_matching_processes(self, tokens: Sequence[str]) -> list[ProcessInfo]:
        if not tokens:
            return []
        output = run_command(
            ["ps", "-Ao", "pid=,lstart=,args="], env=_c_locale_env()
        )
        if output is None:
            return []
        return [
            info
            for info in parse_ps_output(output)
            if matches_filter(info.command, tokens) and self._keep(info)
        ]

    def get_process_command(self, pid: int) -> str | None:
        output = run_command(["ps", "-p", str(pid), "-o", "command="])
        if output is None:
            return None
        command = output.strip()
        return command or None
