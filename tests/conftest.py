"""Shared test fixtures."""

import sqlite3

import pytest

from dbstate.db.connection import SqliteConnection
from dbstate.db.snapshots import SnapshotManager

pytest_plugins = ["dbstate.pytest_plugin", "pytester"]


def _write_rows(db_file, *values):
    """Append rows to the items table, creating it if needed."""
    conn = sqlite3.connect(str(db_file))
    conn.execute("CREATE TABLE IF NOT EXISTS items (id INTEGER PRIMARY KEY, name TEXT)")
    conn.executemany("INSERT INTO items (name) VALUES (?)", [(v,) for v in values])
    conn.commit()
    conn.close()


def _read_rows(db_file):
    conn = sqlite3.connect(str(db_file))
    rows = [r[0] for r in conn.execute("SELECT name FROM items ORDER BY id")]
    conn.close()
    return rows


@pytest.fixture
def write_rows():
    """Helper that appends rows to the items table of a database file."""
    return _write_rows


@pytest.fixture
def read_rows():
    """Helper that returns the item names of a database file in insert order."""
    return _read_rows


@pytest.fixture
def storage(tmp_path_factory):
    """A directory for database files whose path does not depend on the test id."""
    return tmp_path_factory.mktemp("data")


@pytest.fixture
def db_file(storage):
    """A populated database file at <storage>/test.db."""
    path = storage / "test.db"
    _write_rows(path, "alpha", "beta")
    return path


@pytest.fixture
def connection(db_file):
    conn = SqliteConnection(f"sqlite:{db_file}")
    yield conn
    conn.close()


@pytest.fixture
def manager(connection):
    return SnapshotManager(connection)
