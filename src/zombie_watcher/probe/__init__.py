"""OS probe — one platform adapter selected at startup."""

from __future__ import annotations

import sys

from zombie_watcher.config import ConfigError
from zombie_watcher.probe.base import PROBE_TIMEOUT, OsProbe


class UnsupportedPlatformError(ConfigError):
    """No probe implementation exists for the running platform."""


def get_probe(platform: str | None = None) -> OsProbe:
    """Return the probe for ``platform`` (defaults to ``sys.platform``)."""
    platform = platform or sys.platform

    if platform.startswith("linux"):
        from zombie_watcher.probe.platform.linux import LinuxProbe

        return LinuxProbe()
    if platform == "darwin":
        from zombie_watcher.probe.platform.macos import MacOSProbe

        return MacOSProbe()
    if platform in ("win32", "cygwin"):
        from zombie_watcher.probe.platform.windows import WindowsProbe

        return WindowsProbe()
    raise UnsupportedPlatformError(f"Unsupported platform: {platform}")


__all__ = ["PROBE_TIMEOUT", "OsProbe", "UnsupportedPlatformError", "get_probe"]
