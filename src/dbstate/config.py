"""TOML config loader and validation."""

import os
import tomllib
from pathlib import Path

from dbstate.db.snapshots import DEFAULT_KEY_PREFIX

CONFIG_DIR = ".dbstate"
CONFIG_FILE = "config.toml"


def config_path(project_path: Path) -> Path:
    return project_path / CONFIG_DIR / CONFIG_FILE


def load_config(project_path: Path) -> dict | None:
    """Load .dbstate/config.toml. Returns None if the file doesn't exist."""
    config_file = config_path(project_path)
    if not config_file.exists():
        return None
    with open(config_file, "rb") as f:
        return tomllib.load(f)


def require_config_section(config: dict | None, section: str) -> dict:
    """Extract a required config section or raise a hard error."""
    if config is None:
        raise RuntimeError(
            "No config file found. Run 'dbstate init' to create .dbstate/config.toml"
        )
    value = config.get(section)
    if value is None:
        raise RuntimeError(
            f"Missing [{section}] section in .dbstate/config.toml. "
            f"Run 'dbstate init' to create a default config."
        )
    if not isinstance(value, dict):
        raise RuntimeError(
            f"[{section}] in config.toml must be a table, got {type(value).__name__}"
        )
    return value


def require_database_config(config: dict | None) -> dict:
    """Extract [database] and check it names a connection string."""
    database = require_config_section(config, "database")
    connection_string = database.get("connection_string")
    if not isinstance(connection_string, str) or not connection_string.strip():
        raise RuntimeError(
            "[database] connection_string must be a non-empty string "
            "such as \"sqlite:/var/data/app/test.db\""
        )
    return database


def snapshot_settings(config: dict | None) -> dict:
    """Return [snapshots] options with defaults applied.

    Unlike [database], the [snapshots] section is optional.
    """
    section = (config or {}).get("snapshots", {})
    if not isinstance(section, dict):
        raise RuntimeError(
            f"[snapshots] in config.toml must be a table, got {type(section).__name__}"
        )
    key_prefix = section.get("key_prefix", DEFAULT_KEY_PREFIX)
    if (
        not isinstance(key_prefix, str)
        or not key_prefix
        or "/" in key_prefix
        or os.sep in key_prefix
    ):
        raise ValueError(f"Invalid key_prefix {key_prefix!r} in [snapshots] config")
    return {"key_prefix": key_prefix}


def _toml_string(value: str) -> str:
    """Quote value as a TOML basic string."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace("\"", "\\\"")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f'"{escaped}"'


def create_default_config(project_path: Path, connection_string: str | None = None) -> Path:
    """Create a default config.toml in .dbstate/. Returns the path."""
    config_dir = project_path / CONFIG_DIR
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / CONFIG_FILE
    if path.exists():
        raise FileExistsError(f"Config already exists: {path}")
    connection_string = connection_string or "sqlite:tests/data/test.db"
    path.write_text(
        '[database]\n'
        '# driver:path of the database the test fixtures run against.\n'
        '# Only sqlite and sqlite2 are supported.\n'
        f'connection_string = {_toml_string(connection_string)}\n'
        '\n'
        '[snapshots]\n'
        '# Snapshots are written next to the database as <key>.db\n'
        f'key_prefix = {_toml_string(DEFAULT_KEY_PREFIX)}\n'
    )
    return path
