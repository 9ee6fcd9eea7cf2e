"""Save, restore and reset snapshots of a single SQLite database file."""

from __future__ import annotations

import logging
import os
import random
import shutil
import time
from pathlib import Path
from typing import Callable

from dbstate.db.connection import StateConnection, parse_connection_string
from dbstate.errors import FileOperationError, UnsupportedDriverError

logger = logging.getLogger(__name__)

SUPPORTED_DRIVERS: tuple[str, ...] = ("sqlite", "sqlite2")

DEFAULT_KEY_PREFIX = "dbstate_"

SNAPSHOT_SUFFIX = ".db"

# Files SQLite keeps next to the main database
_SIDECAR_SUFFIXES = ("-journal", "-wal", "-shm")

Migrator = Callable[[StateConnection, str, list[str] | None], None]


def _make_key(prefix: str) -> str:
    """Time-seeded token: 8 hex digits of seconds, 5 of microseconds, random tail."""
    now = time.time()
    seconds = int(now)
    micros = int((now - seconds) * 1_000_000)
    return f"{prefix}{seconds:08x}{micros:05x}.{random.random() * 10:.8f}"


class SnapshotManager:
    """Keyed snapshots of the database file behind a connection.

    Snapshots are stored flat next to the active database as {key}.db. The
    file on disk is the only record of a snapshot; nothing is expired
    automatically, call cleanup() or delete_snapshot() to remove them.

    Not safe for concurrent use against the same storage path.
    """

    def __init__(
        self,
        connection: StateConnection,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        migrator: Migrator | None = None,
    ):
        """Bind to a connection and remember its current file as the base.

        Raises:
            UnsupportedDriverError: If the connection is not sqlite or sqlite2.
            MalformedConnectionStringError: If the connection string has no ':'.
        """
        driver = connection.driver_name
        if driver not in SUPPORTED_DRIVERS:
            raise UnsupportedDriverError(driver, SUPPORTED_DRIVERS)
        if not key_prefix or os.sep in key_prefix or "/" in key_prefix:
            raise ValueError(f"Invalid key_prefix: {key_prefix!r}")
        self._connection = connection
        self._key_prefix = key_prefix
        self._migrator = migrator
        self._saved_keys: list[str] = []
        self._base_filename = self.current_filename

    @property
    def connection(self) -> StateConnection:
        return self._connection

    @property
    def base_filename(self) -> str:
        """Filename active at construction; target of load_state and reset_state."""
        return self._base_filename

    @property
    def key_prefix(self) -> str:
        return self._key_prefix

    @property
    def saved_keys(self) -> list[str]:
        """Keys saved through this manager, in order."""
        return list(self._saved_keys)

    @property
    def storage_path(self) -> str:
        """Directory holding the active database and its snapshots."""
        return parse_connection_string(self._connection.connection_string).storage_path

    @storage_path.setter
    def storage_path(self, path: str) -> None:
        directory = path if path.endswith("/") else path + "/"
        self._connection.connection_string = (
            f"{self._connection.driver_name}:{directory}{self.current_filename}"
        )

    @property
    def current_filename(self) -> str:
        """Filename of the active database."""
        return parse_connection_string(self._connection.connection_string).active_filename

    def _set_current_filename(self, filename: str) -> None:
        self._connection.connection_string = (
            f"{self._connection.driver_name}:{self.storage_path}/{filename}"
        )

    def _file_path(self, filename: str) -> Path:
        return Path(self.storage_path) / filename

    def snapshot_path(self, key: str) -> Path:
        """Location of the snapshot file for key."""
        if not key or "/" in key or os.sep in key:
            raise ValueError(f"Invalid snapshot key: {key!r}")
        return self._file_path(f"{key}{SNAPSHOT_SUFFIX}")

    def _generate_key(self) -> str:
        key = _make_key(self._key_prefix)
        while self.snapshot_path(key).exists():
            logger.debug("Snapshot key %s already taken, generating another", key)
            key = _make_key(self._key_prefix)
        return key

    def save_state(self) -> str:
        """Copy the active database to a new snapshot. Returns its key.

        The connection and the active file are left untouched; uncommitted
        work on an open connection is not part of the snapshot.
        """
        key = self._generate_key()
        source = self._file_path(self.current_filename)
        target = self.snapshot_path(key)
        _copy(source, target)
        self._saved_keys.append(key)
        logger.info("Saved %s as snapshot %s", source, key)
        return key

    def load_state(self, key: str) -> None:
        """Overwrite the base database with a snapshot.

        Closes the connection before copying; the caller reopens it before
        further use.
        """
        source = self.snapshot_path(key)
        self._connection.close()
        target = self._file_path(self._base_filename)
        _copy(source, target)
        self._set_current_filename(self._base_filename)
        logger.info("Restored snapshot %s into %s", key, target)

    def reset_state(
        self,
        migrate_to: str | None = None,
        migration_modules: list[str] | None = None,
    ) -> None:
        """Delete the active database and point the connection at the base file.

        The connection is closed; opening it again creates an empty database.

        Args:
            migrate_to: Migration target to apply after the reset. Requires a
                migrator; without one NotImplementedError is raised before
                anything is deleted.
            migration_modules: Passed through to the migrator.
        """
        if migrate_to is not None and self._migrator is None:
            raise NotImplementedError(
                "Migrations after reset are not supported without a migrator"
            )

        self._connection.close()
        active = self._file_path(self.current_filename)
        _delete(active)
        for suffix in _SIDECAR_SUFFIXES:
            sidecar = active.with_name(active.name + suffix)
            if sidecar.exists():
                _delete(sidecar)
                logger.debug("Removed %s", sidecar)
        self._set_current_filename(self._base_filename)
        logger.info("Reset database, removed %s", active)

        if migrate_to is not None:
            self._migrator(self._connection, migrate_to, migration_modules)
            logger.info("Migrated reset database to %s", migrate_to)

    def list_snapshots(self) -> list[str]:
        """Keys of all snapshots in the storage path with this manager's prefix."""
        directory = Path(self.storage_path)
        if not directory.is_dir():
            return []
        keys = [
            entry.name[: -len(SNAPSHOT_SUFFIX)]
            for entry in directory.iterdir()
            if entry.is_file()
            and entry.name.startswith(self._key_prefix)
            and entry.name.endswith(SNAPSHOT_SUFFIX)
        ]
        return sorted(keys)

    def delete_snapshot(self, key: str) -> None:
        """Remove one snapshot file. Raises FileOperationError if it cannot."""
        _delete(self.snapshot_path(key))
        if key in self._saved_keys:
            self._saved_keys.remove(key)
        logger.debug("Deleted snapshot %s", key)

    def cleanup(self, keys: list[str] | None = None) -> int:
        """Remove snapshots and return how many files were deleted.

        Args:
            keys: Snapshots to remove. None means every snapshot saved by
                this manager that still exists on disk.
        """
        if keys is None:
            keys = [key for key in self._saved_keys if self.snapshot_path(key).exists()]
        removed = 0
        for key in keys:
            self.delete_snapshot(key)
            removed += 1
        if removed:
            logger.info("Removed %d snapshot(s) from %s", removed, self.storage_path)
        return removed


def _copy(source: Path, target: Path) -> None:
    try:
        shutil.copyfile(source, target)
    except OSError as e:
        raise FileOperationError(f"Failed to copy database to {target}", source) from e


def _delete(path: Path) -> None:
    try:
        path.unlink()
    except OSError as e:
        raise FileOperationError("Failed to delete database file", path) from e
