"""Connection strings and the SQLite connection used by the snapshot manager."""

from __future__ import annotations

import logging
import os
import sqlite3
from dataclasses import dataclass
from typing import Protocol

from dbstate.errors import MalformedConnectionStringError

logger = logging.getLogger(__name__)

_VALID_JOURNAL_MODES = ("DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF")


@dataclass(frozen=True)
class ConnectionDescriptor:
    driver: str
    storage_path: str
    active_filename: str


def _split(connection_string: str) -> tuple[str, str]:
    pos = connection_string.find(":")
    if pos == -1:
        raise MalformedConnectionStringError(connection_string)
    return connection_string[:pos], connection_string[pos + 1:]


def parse_connection_string(connection_string: str) -> ConnectionDescriptor:
    """Split a 'driver:path' connection string on its first ':'.

    The driver, directory and filename are lower-cased. A bare filename
    resolves to storage path "." so that storage_path + "/" + filename
    always names the same file.

    Raises:
        MalformedConnectionStringError: If the string has no ':' separator.
    """
    driver, path = _split(connection_string)
    path = path.lower()
    return ConnectionDescriptor(
        driver=driver.lower(),
        storage_path=os.path.dirname(path) or ".",
        active_filename=os.path.basename(path),
    )


class StateConnection(Protocol):
    """What the snapshot manager needs from a database connection."""

    connection_string: str

    @property
    def driver_name(self) -> str: ...

    def close(self) -> None: ...


class SqliteConnection:
    """Lazily opened sqlite3 connection addressed by a 'driver:path' string.

    Reassigning connection_string does not touch an open handle; callers
    close and reopen to follow the new file.
    """

    def __init__(self, connection_string: str, *, journal_mode: str = "DELETE"):
        mode = journal_mode.upper()
        if mode not in _VALID_JOURNAL_MODES:
            raise ValueError(
                f"Invalid journal_mode {journal_mode!r}. Must be one of {_VALID_JOURNAL_MODES}"
            )
        self.connection_string = connection_string
        self._journal_mode = mode
        self._conn: sqlite3.Connection | None = None

    @property
    def driver_name(self) -> str:
        return _split(self.connection_string)[0].lower()

    @property
    def database_path(self) -> str:
        return _split(self.connection_string)[1]

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> sqlite3.Connection:
        """The open sqlite3 handle, opening it on first use."""
        if self._conn is None:
            return self.open()
        return self._conn

    def open(self) -> sqlite3.Connection:
        """Open the database file named by the connection string.

        Returns:
            A sqlite3.Connection with Row factory, foreign keys and the
            configured journal mode.
        """
        if self._conn is not None:
            return self._conn
        db_file = self.database_path
        conn = sqlite3.connect(db_file)
        conn.row_factory = sqlite3.Row
        conn.execute(f"PRAGMA journal_mode={self._journal_mode}")
        conn.execute("PRAGMA foreign_keys=ON")
        self._conn = conn
        logger.debug("Opened %s", db_file)
        return conn

    def close(self) -> None:
        """Release the file handle. Safe to call when already closed."""
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.debug("Closed %s", self.connection_string)
