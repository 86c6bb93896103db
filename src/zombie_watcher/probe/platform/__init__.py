"""Platform-specific OsProbe implementations."""
