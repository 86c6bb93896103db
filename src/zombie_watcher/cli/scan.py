"""CLI command: zombie-watcher scan — one read-only probe of ports and processes."""

from __future__ import annotations

from datetime import datetime

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from zombie_watcher.cli import fail
from zombie_watcher.config import (
    DEFAULT_BASE,
    DEFAULT_FILTER,
    DEFAULT_RANGE,
    ConfigError,
    build_config,
)
from zombie_watcher.probe import get_probe
from zombie_watcher.probe.base import matches_filter
from zombie_watcher.watchers.process import parse_creation_date

console = Console(stderr=True)


@click.command()
@click.option(
    "--base",
    "-b",
    default=DEFAULT_BASE,
    show_default=True,
    help="Base ports to inspect (comma-separated).",
)
@click.option(
    "--range",
    "-r",
    "range_",
    type=int,
    default=DEFAULT_RANGE,
    show_default=True,
    help="Port range to inspect (base to base+range).",
)
@click.option(
    "--filter",
    "-f",
    "filter_",
    default=DEFAULT_FILTER,
    show_default=True,
    help="Semicolon-separated process names/commands to list.",
)
def scan(base: str, range_: int, filter_: str) -> None:
    """Show listeners in the watched ranges and matching processes. Kills nothing."""
    try:
        config = build_config(base=base, range_=range_, filter_=filter_)
        probe = get_probe()
    except ConfigError as exc:
        fail(str(exc))

    watched = config.all_scanned_ports()
    listeners = {
        port: pid for port, pid in probe.list_tcp_listeners().items() if port in watched
    }

    ports = Table(title="Listening ports", title_justify="left")
    ports.add_column("Port", justify="right")
    ports.add_column("PID", justify="right")
    ports.add_column("Killable")
    ports.add_column("Command", overflow="fold")
    for port in sorted(listeners):
        pid = listeners[port]
        command = probe.get_process_command(pid) or ""
        if matches_filter(command, config.filter):
            killable = "[green]yes[/green]"
        else:
            killable = "[dim]no[/dim]"
        base_marker = " [cyan]*[/cyan]" if port in config.base_ports else ""
        ports.add_row(f"{port}{base_marker}", str(pid), killable, escape(command))
    console.print(ports)

    processes = Table(title="Matching processes", title_justify="left")
    processes.add_column("PID", justify="right")
    processes.add_column("Started")
    processes.add_column("Command", overflow="fold")
    for info in sorted(probe.list_matching_processes(config.filter), key=lambda i: i.pid):
        created = parse_creation_date(info.creation_date)
        started = (
            datetime.fromtimestamp(created).strftime("%Y-%m-%d %H:%M:%S")
            if created is not None
            else "?"
        )
        processes.add_row(str(info.pid), started, escape(info.command))
    console.print(processes)
