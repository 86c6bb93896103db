"""zombie-watcher — kill stale dev-server processes left on ports and duplicates."""

__version__ = "0.1.0"
