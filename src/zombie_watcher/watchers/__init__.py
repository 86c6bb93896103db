"""Poll-driven watchers: duplicate/age process eviction and port strategies."""

from zombie_watcher.watchers.port import PortWatcher
from zombie_watcher.watchers.process import ProcessWatcher

__all__ = ["PortWatcher", "ProcessWatcher"]
