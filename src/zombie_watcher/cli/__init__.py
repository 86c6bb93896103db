"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging
import sys
from typing import NoReturn

import click
from rich.console import Console

from zombie_watcher import __version__
from zombie_watcher.config import ConfigError, load_config_file

console = Console(stderr=True)

# `scan` accepts only the subset of options that affects what is observed.
_SCAN_KEYS = ("base", "range", "filter")

# YAML keys whose click parameter name differs (builtins are shadowed).
_PARAM_NAMES = {"range": "range_", "filter": "filter_"}


@click.group()
@click.version_option(version=__version__, prog_name="zombie-watcher")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with default option values.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """zombie-watcher — kill zombie dev-server processes left on ports."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if config_path:
        try:
            settings = load_config_file(config_path)
        except ConfigError as exc:
            fail(str(exc))
        ctx.default_map = {
            "watch": _to_params(settings),
            "scan": _to_params({k: v for k, v in settings.items() if k in _SCAN_KEYS}),
        }


def _to_params(settings: dict) -> dict:
    return {_PARAM_NAMES.get(key, key): value for key, value in settings.items()}


def fail(message: str) -> NoReturn:
    """Report a fatal configuration error and exit non-zero."""
    console.print(f"[red]{message}[/red]")
    sys.exit(1)


def run() -> None:
    """Console-script entry point; options also read ZOMBIE_WATCHER_* env vars."""
    main(auto_envvar_prefix="ZOMBIE_WATCHER")


def _register_commands() -> None:
    from zombie_watcher.cli.scan import scan  # noqa: F811
    from zombie_watcher.cli.watch import watch  # noqa: F811

    main.add_command(watch)
    main.add_command(scan)


_register_commands()
