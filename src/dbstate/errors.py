"""Exceptions raised by dbstate."""

from __future__ import annotations

from pathlib import Path


class DbStateError(Exception):
    """Base class for all dbstate errors."""


class UnsupportedDriverError(DbStateError):
    """The connection uses a driver that snapshots cannot handle."""

    def __init__(self, driver: str, supported: tuple[str, ...]):
        self.driver = driver
        self.supported = supported
        super().__init__(
            f"Unsupported database driver {driver!r}. "
            f"Snapshots only work with: {', '.join(supported)}"
        )


class MalformedConnectionStringError(DbStateError, ValueError):
    """The connection string has no 'driver:path' separator."""

    def __init__(self, connection_string: str):
        self.connection_string = connection_string
        super().__init__(
            f"Malformed connection string {connection_string!r}: expected 'driver:path'"
        )


class FileOperationError(DbStateError):
    """Copying or deleting a database file failed. Always chained to the OSError."""

    def __init__(self, message: str, path: Path):
        self.path = path
        super().__init__(f"{message}: {path}")
