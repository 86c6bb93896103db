"""Tests for configuration parsing and validation."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from zombie_watcher.config import (
    ConfigError,
    Mode,
    Strategy,
    WatcherConfig,
    build_config,
    default_data_dir,
    load_config_file,
    parse_base_ports,
    parse_filter,
)


def test_defaults_match_cli_defaults():
    config = build_config()
    assert config.base_ports == (5173,)
    assert config.range == 20
    assert config.interval == 1.0
    assert config.strategy is Strategy.CHAIN
    assert config.filter == ("node", "nuxi", "vite", "npm")
    assert config.mode is Mode.PORT
    assert config.max_age == 0
    assert not config.dry_run


def test_config_is_immutable():
    config = build_config()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.range = 3  # type: ignore[misc]


def test_parse_base_ports_drops_garbage():
    assert parse_base_ports("5173, abc, 3000,,5173") == (5173, 3000)


@pytest.mark.parametrize("raw", ["", "abc", " , "])
def test_parse_base_ports_empty_is_fatal(raw: str):
    with pytest.raises(ConfigError):
        parse_base_ports(raw)


def test_parse_base_ports_out_of_range():
    with pytest.raises(ConfigError):
        parse_base_ports("70000")


def test_parse_filter_splits_on_semicolon_and_comma():
    assert parse_filter("node; vite,npm;;node") == ("node", "vite", "npm")
    assert parse_filter("") == ()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"strategy": "kill-all"},
        {"mode": "both"},
        {"range_": -1},
        {"interval_ms": 0},
        {"max_age": -5},
        {"base": "nope"},
    ],
)
def test_build_config_rejects_invalid_input(kwargs: dict):
    with pytest.raises(ConfigError):
        build_config(**kwargs)


def test_build_config_converts_interval_to_seconds():
    config = build_config(interval_ms=250, strategy="kill-base", mode="process", max_age=5)
    assert config.interval == 0.25
    assert config.strategy is Strategy.KILL_BASE
    assert config.mode is Mode.PROCESS
    assert config.max_age == 5


def test_scanned_ports_inclusive():
    config = WatcherConfig(base_ports=(5173, 3000), range=2)
    assert list(config.scanned_ports(5173)) == [5173, 5174, 5175]
    assert config.all_scanned_ports() == {3000, 3001, 3002, 5173, 5174, 5175}


def test_zero_range_scans_only_base():
    config = WatcherConfig(base_ports=(5173,), range=0)
    assert list(config.scanned_ports(5173)) == [5173]


def test_load_config_file(fixtures_dir: Path):
    settings = load_config_file(fixtures_dir / "watcher.yaml")
    assert settings == {
        "base": "3000,5173",
        "range": 3,
        "interval": 250,
        "strategy": "kill-base",
        "filter": "node;vite",
        "dry_run": True,
    }


def test_load_config_file_rejects_unknown_keys(tmp_path: Path):
    path = tmp_path / "bad.yaml"
    path.write_text("base: 5173\nport_range: 3\n")
    with pytest.raises(ConfigError, match="port_range"):
        load_config_file(path)


def test_load_config_file_requires_mapping(tmp_path: Path):
    path = tmp_path / "list.yaml"
    path.write_text("- 5173\n- 3000\n")
    with pytest.raises(ConfigError):
        load_config_file(path)


def test_load_empty_config_file(tmp_path: Path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config_file(path) == {}


def test_default_data_dir_honours_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    assert default_data_dir() == tmp_path / "zombie-watcher"
