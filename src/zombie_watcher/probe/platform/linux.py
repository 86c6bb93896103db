"""Linux probe — listening sockets via ss."""

from __future__ import annotations

import re

from zombie_watcher.probe.base import parse_port, run_command
from zombie_watcher.probe.platform.posix import PosixProbe

_PID_FIELD = re.compile(r"pid=(\d+)")


def parse_ss_output(output: str) -> dict[int, int]:
    """Parse ``ss -lptn`` output into {port: pid}.

    State  Recv-Q Send-Q Local Address:Port Peer Address:Port Process
    LISTEN 0      511    *:5173             *:*               users:(("node",pid=123,fd=19))
    """
    ports: dict[int, int] = {}
    for line in output.splitlines():
        if line.startswith("State"):
            continue
        parts = line.split()
        if len(parts) < 6:
            continue  # no Process column: socket owned by another user

        port = parse_port(parts[3])
        pid_match = _PID_FIELD.search(" ".join(parts[5:]))
        if port is None or pid_match is None:
            continue
        ports[port] = int(pid_match.group(1))
    return ports


class LinuxProbe(PosixProbe):
    """OsProbe for Linux."""

    def list_tcp_listeners(self) -> dict[int, int]:
        output = run_command(["ss", "-lptn"])
        if output is None:
            return {}
        return parse_ss_output(output)
