"""Windows probe — netstat for listeners, wmic for processes."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from zombie_watcher.models import ProcessInfo
from zombie_watcher.probe.base import BaseProbe, matches_filter, parse_port, run_command

logger = logging.getLogger(__name__)

EXE_SUFFIX = ".exe"


def parse_netstat_output(output: str) -> dict[int, int]:
    """Parse ``netstat -ano -p TCP`` output into {port: pid}.

      Proto  Local Address   Foreign Address  State       PID
      TCP    0.0.0.0:5173    0.0.0.0:0        LISTENING   1234
    """
    ports: dict[int, int] = {}
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 5 or parts[3] != "LISTENING":
            continue
        port = parse_port(parts[1])
        try:
            pid = int(parts[4])
        except ValueError:
            continue
        if port is not None:
            ports[port] = pid
    return ports


def parse_wmic_processes(output: str) -> list[tuple[ProcessInfo, str]]:
    """Parse wmic CSV output into (ProcessInfo, image name) pairs.

    wmic orders columns alphabetically: Node,CommandLine,CreationDate,Name,ProcessId.
    The command line itself may contain commas, so the fixed columns are
    taken from both ends.
    """
    rows = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("Node,"):
            continue
        parts = line.split(",")
        if len(parts) < 5:
            continue
        try:
            pid = int(parts[-1])
        except ValueError:
            continue
        name = parts[-2]
        creation_date = parts[-3] or None
        command = ",".join(parts[1:-3]).strip()
        rows.append((ProcessInfo(pid=pid, command=command, creation_date=creation_date), name))
    return rows


def widen_tokens(tokens: Sequence[str]) -> set[str]:
    """Image names to match: each token as-is and with the .exe suffix."""
    names: set[str] = set()
    for token in tokens:
        names.add(token.lower())
        if not token.lower().endswith(EXE_SUFFIX):
            names.add(token.lower() + EXE_SUFFIX)
    return names


class WindowsProbe(BaseProbe):
    """OsProbe for Windows."""

    def __init__(self) -> None:
        super().__init__()
        self._wmic_warned = False

    def list_tcp_listeners(self) -> dict[int, int]:
        output = run_command(["netstat", "-ano", "-p", "TCP"])
        if output is None:
            return {}
        return parse_netstat_output(output)

    def list_matching_processes(self, tokens: Sequence[str]) -> list[ProcessInfo]:
        if not tokens:
            return []
        output = run_command(
            [
                "wmic",
                "process",
                "get",
                "ProcessId,Name,CreationDate,CommandLine",
                "/format:csv",
            ]
        )
        if output is None:
            if not self._wmic_warned:
                logger.warning(
                    "wmic returned no process list (it is absent on recent Windows "
                    "builds); process matching will see nothing"
                )
                self._wmic_warned = True
            return []

        names = widen_tokens(tokens)
        matched = []
        for info, name in parse_wmic_processes(output):
            if not (matches_filter(info.command, tokens) or name.lower() in names):
                continue
            if not self._keep(info):
                continue
            # Processes without a readable command line are keyed by image name.
            if not info.command:
                info = ProcessInfo(
                    pid=info.pid, command=name, creation_date=info.creation_date
                )
            matched.append(info)
        return matched

    def get_process_command(self, pid: int) -> str | None:
        output = run_command(
            [
                "wmic",
                "process",
                "where",
                f"processid={pid}",
                "get",
                "CommandLine",
                "/format:csv",
            ]
        )
        if output is None:
            return None
        for line in output.splitlines():
            line = line.strip()
            if not line or line.startswith("Node,"):
                continue
            _, _, command = line.partition(",")
            command = command.strip()
            if command:
                return command
        return None
