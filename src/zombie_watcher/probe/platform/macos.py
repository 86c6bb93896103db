"""macOS probe — listening sockets via lsof."""

from __future__ import annotations

from zombie_watcher.probe.base import parse_port, run_command
from zombie_watcher.probe.platform.posix import PosixProbe


def parse_lsof_output(output: str) -> dict[int, int]:
    """Parse ``lsof -iTCP -sTCP:LISTEN -P -n`` output into {port: pid}.

    COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME
    node    123 me   19u IPv6 0x...  0t0      TCP  *:5173 (LISTEN)
    """
    ports: dict[int, int] = {}
    for line in output.splitlines():
        if line.startswith("COMMAND"):
            continue
        parts = line.split()
        if len(parts) < 9:
            continue

        try:
            pid = int(parts[1])
        except ValueError:
            continue
        port = parse_port(parts[8])
        if port is not None:
            ports[port] = pid
    return ports


class MacOSProbe(PosixProbe):
    """OsProbe for macOS."""

    def list_tcp_listeners(self) -> dict[int, int]:
        output = run_command(["lsof", "-iTCP", "-sTCP:LISTEN", "-P", "-n"])
        if output is None:
            return {}
        return parse_lsof_output(output)
