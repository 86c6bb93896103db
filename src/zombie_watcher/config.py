"""Watcher configuration — validated, immutable run settings and YAML defaults."""

from __future__ import annotations

import enum
import os
import re
from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_BASE = "5173"
DEFAULT_RANGE = 20
DEFAULT_INTERVAL_MS = 1000
DEFAULT_FILTER = "node;nuxi;vite;npm"

# Keys accepted in a YAML config file; they mirror the `watch` option names.
CONFIG_KEYS = frozenset(
    {"base", "range", "interval", "strategy", "filter", "dry_run", "max_age", "mode"}
)

_FILTER_SPLIT = re.compile(r"[;,]")


class ConfigError(ValueError):
    """Invalid configuration — fatal, reported once before any watcher starts."""


class Strategy(enum.Enum):
    """How the port watcher picks the zombie among bound ports."""

    CHAIN = "chain"
    KILL_BASE = "kill-base"


class Mode(enum.Enum):
    """Which watcher variant to run."""

    PORT = "port"
    PROCESS = "process"


@dataclass(frozen=True)
class WatcherConfig:
    """Per-run settings shared by reference with both watchers and the scheduler."""

    base_ports: tuple[int, ...]
    range: int = DEFAULT_RANGE
    interval: float = DEFAULT_INTERVAL_MS / 1000
    strategy: Strategy = Strategy.CHAIN
    filter: tuple[str, ...] = ()
    dry_run: bool = False
    max_age: int = 0  # minutes, 0 disables
    mode: Mode = Mode.PORT

    def scanned_ports(self, base: int) -> range:
        """Ports watched for one base: base..base+range inclusive."""
        return range(base, base + self.range + 1)

    def all_scanned_ports(self) -> frozenset[int]:
        ports: set[int] = set()
        for base in self.base_ports:
            ports.update(self.scanned_ports(base))
        return frozenset(ports)


def parse_base_ports(raw: str) -> tuple[int, ...]:
    """Parse a comma-separated port list. Non-numeric entries are dropped."""
    ports: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            port = int(part)
        except ValueError:
            continue
        if not 1 <= port <= 65535:
            raise ConfigError(f"Port out of range: {port}")
        if port not in ports:
            ports.append(port)
    if not ports:
        raise ConfigError(f"Invalid base ports: {raw!r}")
    return tuple(ports)


def parse_filter(raw: str) -> tuple[str, ...]:
    """Split a ';' or ',' separated filter into ordered, de-duplicated tokens."""
    tokens: list[str] = []
    for part in _FILTER_SPLIT.split(raw):
        token = part.strip()
        if token and token not in tokens:
            tokens.append(token)
    return tuple(tokens)


def build_config(
    base: str = DEFAULT_BASE,
    range_: int = DEFAULT_RANGE,
    interval_ms: int = DEFAULT_INTERVAL_MS,
    strategy: str = Strategy.CHAIN.value,
    filter_: str = DEFAULT_FILTER,
    dry_run: bool = False,
    max_age: int = 0,
    mode: str = Mode.PORT.value,
) -> WatcherConfig:
    """Validate raw option values and build a WatcherConfig."""
    try:
        strategy_value = Strategy(strategy)
    except ValueError:
        raise ConfigError(
            f"Invalid strategy: {strategy}. Use 'chain' or 'kill-base'."
        ) from None
    try:
        mode_value = Mode(mode)
    except ValueError:
        raise ConfigError(f"Invalid mode: {mode}. Use 'port' or 'process'.") from None

    if range_ < 0:
        raise ConfigError(f"Range must be >= 0, got {range_}")
    if interval_ms <= 0:
        raise ConfigError(f"Interval must be positive, got {interval_ms}")
    if max_age < 0:
        raise ConfigError(f"Max age must be >= 0, got {max_age}")

    return WatcherConfig(
        base_ports=parse_base_ports(base),
        range=range_,
        interval=interval_ms / 1000,
        strategy=strategy_value,
        filter=parse_filter(filter_),
        dry_run=dry_run,
        max_age=max_age,
        mode=mode_value,
    )


def load_config_file(path: str | Path) -> dict:
    """Load option defaults from a YAML file.

    Keys use the option names of the ``watch`` command (``max_age``,
    ``dry_run``, ...). Lists are accepted for ``base`` and ``filter``.
    """
    text = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config YAML must be a mapping")

    unknown = set(data) - CONFIG_KEYS
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    settings = dict(data)
    if isinstance(settings.get("base"), (list, tuple)):
        settings["base"] = ",".join(str(p) for p in settings["base"])
    elif isinstance(settings.get("base"), int):
        settings["base"] = str(settings["base"])
    if isinstance(settings.get("filter"), (list, tuple)):
        settings["filter"] = ";".join(str(t) for t in settings["filter"])
    return settings


def default_data_dir() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / "zombie-watcher"
    return Path.home() / ".local" / "share" / "zombie-watcher"
