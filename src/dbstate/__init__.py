"""dbstate: keyed snapshots of a SQLite database file for test fixtures."""

from dbstate.db.connection import (
    ConnectionDescriptor,
    SqliteConnection,
    StateConnection,
    parse_connection_string,
)
from dbstate.db.snapshots import SUPPORTED_DRIVERS, SnapshotManager
from dbstate.errors import (
    DbStateError,
    FileOperationError,
    MalformedConnectionStringError,
    UnsupportedDriverError,
)

__all__ = [
    "ConnectionDescriptor",
    "DbStateError",
    "FileOperationError",
    "MalformedConnectionStringError",
    "SUPPORTED_DRIVERS",
    "SnapshotManager",
    "SqliteConnection",
    "StateConnection",
    "UnsupportedDriverError",
    "parse_connection_string",
]
