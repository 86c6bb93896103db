"""CLI command: zombie-watcher watch — poll and kill zombie dev-server processes."""

from __future__ import annotations

import signal
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from zombie_watcher.actions.kill import KillExecutor
from zombie_watcher.cli import fail
from zombie_watcher.config import (
    DEFAULT_BASE,
    DEFAULT_FILTER,
    DEFAULT_INTERVAL_MS,
    DEFAULT_RANGE,
    ConfigError,
    Mode,
    WatcherConfig,
    build_config,
)
from zombie_watcher.lock import LockError, SingletonLock
from zombie_watcher.models import KillOutcome, KillResult
from zombie_watcher.probe import get_probe
from zombie_watcher.scheduler import PollScheduler
from zombie_watcher.watchers import PortWatcher, ProcessWatcher

console = Console(stderr=True)

_OUTCOME_STYLE = {
    KillOutcome.KILLED: ("red", "KILLED"),
    KillOutcome.DRY_RUN_SKIPPED: ("yellow", "DRY-RUN"),
    KillOutcome.FAILED: ("magenta", "FAILED"),
}


@click.command()
@click.option(
    "--mode",
    "-m",
    default=Mode.PORT.value,
    show_default=True,
    help="Watcher variant: 'port' or 'process'.",
)
@click.option(
    "--base",
    "-b",
    default=DEFAULT_BASE,
    show_default=True,
    help="Base ports to watch (comma-separated).",
)
@click.option(
    "--range",
    "-r",
    "range_",
    type=int,
    default=DEFAULT_RANGE,
    show_default=True,
    help="Port range to scan (base to base+range).",
)
@click.option(
    "--interval",
    "-i",
    type=int,
    default=DEFAULT_INTERVAL_MS,
    show_default=True,
    help="Polling interval in ms.",
)
@click.option(
    "--strategy",
    "-s",
    default="chain",
    show_default=True,
    help="Kill strategy: 'chain' (kill n-1) or 'kill-base' (kill base).",
)
@click.option(
    "--filter",
    "-f",
    "filter_",
    default=DEFAULT_FILTER,
    show_default=True,
    help="Semicolon-separated process names/commands allowed to be killed.",
)
@click.option("--dry-run", "-d", is_flag=True, help="Log what would be killed without killing.")
@click.option(
    "--max-age",
    type=int,
    default=0,
    show_default=True,
    help="Kill matching processes older than this many minutes (process mode, 0 disables).",
)
@click.option("--once", is_flag=True, help="Run a single scan-and-kill pass and exit.")
@click.option("--no-lock", is_flag=True, help="Skip the single-instance lock.")
def watch(
    mode: str,
    base: str,
    range_: int,
    interval: int,
    strategy: str,
    filter_: str,
    dry_run: bool,
    max_age: int,
    once: bool,
    no_lock: bool,
) -> None:
    """Watch ports or processes and kill zombie instances."""
    try:
        config = build_config(
            base=base,
            range_=range_,
            interval_ms=interval,
            strategy=strategy,
            filter_=filter_,
            dry_run=dry_run,
            max_age=max_age,
            mode=mode,
        )
        probe = get_probe()
    except ConfigError as exc:
        fail(str(exc))

    lock = SingletonLock()
    if not no_lock:
        try:
            lock.acquire()
        except LockError as exc:
            fail(str(exc))

    try:
        _print_banner(config, lock)
        executor = KillExecutor(probe, dry_run=config.dry_run, on_result=_print_result)
        if config.mode is Mode.PROCESS:
            watcher = ProcessWatcher(config, probe, executor)
        else:
            watcher = PortWatcher(config, probe, executor)
        scheduler = PollScheduler([watcher], interval=config.interval)

        try:
            with _stop_on_signals(scheduler):
                if once:
                    scheduler.run_once()
                else:
                    _run_until_stopped(scheduler)
        except ConfigError as exc:
            fail(str(exc))
    finally:
        lock.release()

    _print_summary(scheduler)
    if scheduler.error is not None:
        sys.exit(1)


@contextmanager
def _stop_on_signals(scheduler: PollScheduler) -> Iterator[None]:
    """Route SIGINT/SIGTERM to ``scheduler.stop()`` while the block runs.

    Installed before the first tick, so an interrupt at any point lets the
    in-flight tick finish and the summary print. Previous handlers are
    restored on exit.
    """

    def _signal_handler(signum: int, frame: object) -> None:
        console.print("\n[dim]Stopping...[/dim]")
        scheduler.stop()

    previous = {
        sig: signal.signal(sig, _signal_handler) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)


def _run_until_stopped(scheduler: PollScheduler) -> None:
    scheduler.start()
    console.print("  Press Ctrl+C to stop.\n")

    # Short joins keep the main thread responsive to signals on every platform.
    while scheduler.is_running:
        scheduler.join(timeout=0.5)


def _print_banner(config: WatcherConfig, lock: SingletonLock) -> None:
    console.print(f"[bold blue]Starting {config.mode.value} watcher...[/bold blue]")
    if config.mode is Mode.PORT:
        console.print(
            f"  Base ports: [yellow]{', '.join(str(p) for p in config.base_ports)}[/yellow]"
        )
        console.print(f"  Range:      [yellow]+{config.range}[/yellow]")
        console.print(f"  Strategy:   [yellow]{config.strategy.value}[/yellow]")
    elif config.max_age > 0:
        console.print(f"  Max age:    [yellow]{config.max_age}m[/yellow]")
    console.print(f"  Filter:     [yellow]{', '.join(config.filter)}[/yellow]")
    console.print(f"  Interval:   [yellow]{int(config.interval * 1000)}ms[/yellow]")
    if lock.held:
        console.print(f"  Lock:       [dim]{lock.path}[/dim]")
    if config.dry_run:
        console.print("[black on yellow] DRY RUN MODE [/black on yellow]")


def _print_result(result: KillResult) -> None:
    color, label = _OUTCOME_STYLE[result.outcome]
    command = f" [dim]{escape(result.command)}[/dim]" if result.command else ""
    console.print(
        f"  [{color}]{label}[/{color}] PID {result.pid}{command} — {result.reason}"
    )


def _print_summary(scheduler: PollScheduler) -> None:
    counts = scheduler.outcome_counts

    console.print("\n[bold]Watcher Summary[/bold]")
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()

    table.add_row("Ticks", str(scheduler.tick_count))
    table.add_row("Killed", str(counts[KillOutcome.KILLED]))
    table.add_row("Dry-run", str(counts[KillOutcome.DRY_RUN_SKIPPED]))
    table.add_row("Failed", str(counts[KillOutcome.FAILED]))
    console.print(table)
