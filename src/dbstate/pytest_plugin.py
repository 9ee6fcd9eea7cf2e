"""Pytest fixtures for snapshotting the test database.

Enable in a conftest.py with::

    pytest_plugins = ["dbstate.pytest_plugin"]
"""

from __future__ import annotations

from pathlib import Path

import pytest

from dbstate.config import load_config, snapshot_settings
from dbstate.db.connection import SqliteConnection
from dbstate.db.snapshots import SnapshotManager


def pytest_addoption(parser):
    parser.addini(
        "dbstate_connection_string",
        "driver:path of the database used by the dbstate fixtures",
        default="",
    )


def _project_config(request) -> dict | None:
    return load_config(Path(request.config.rootpath))


@pytest.fixture
def dbstate_connection_string(request, tmp_path_factory) -> str:
    """Connection string from the ini option, the project config, or a fresh temp dir.

    The temp dir is named independently of the test id so its path stays
    lower-case, which the snapshot manager requires.
    """
    value = request.config.getini("dbstate_connection_string")
    if value:
        return value
    config = _project_config(request)
    database = (config or {}).get("database") or {}
    if database.get("connection_string"):
        return database["connection_string"]
    return f"sqlite:{tmp_path_factory.mktemp('dbstate') / 'test.db'}"


@pytest.fixture
def dbstate_connection(dbstate_connection_string):
    """A SqliteConnection for the test database, closed on teardown."""
    conn = SqliteConnection(dbstate_connection_string)
    yield conn
    conn.close()


@pytest.fixture
def dbstate_manager(request, dbstate_connection):
    """A SnapshotManager whose snapshots are removed after the test."""
    settings = snapshot_settings(_project_config(request))
    manager = SnapshotManager(dbstate_connection, key_prefix=settings["key_prefix"])
    yield manager
    manager.cleanup()


@pytest.fixture
def dbstate_restore_point(dbstate_manager):
    """Snapshot the database before the test and restore it afterwards.

    The database file must exist when the fixture runs.
    """
    key = dbstate_manager.save_state()
    yield key
    dbstate_manager.load_state(key)
