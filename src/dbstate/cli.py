"""Click CLI for inspecting and repairing fixture database snapshots."""

import click


@click.group()
def cli():
    """dbstate: SQLite snapshot tool for test fixtures."""


def _setup_logging(verbose: bool) -> None:
    import logging

    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.INFO)


def _build_manager(project_path: str):
    """Construct a SnapshotManager from the project's config."""
    from pathlib import Path

    from dbstate.config import load_config, require_database_config, snapshot_settings
    from dbstate.db.connection import SqliteConnection
    from dbstate.db.snapshots import SnapshotManager
    from dbstate.errors import DbStateError

    config = load_config(Path(project_path).resolve())
    if config is None:
        raise click.UsageError(
            "No config file found. Run 'dbstate init' to create .dbstate/config.toml"
        )
    try:
        database = require_database_config(config)
        settings = snapshot_settings(config)
    except (RuntimeError, ValueError) as e:
        raise click.UsageError(str(e)) from e

    connection = SqliteConnection(database["connection_string"])
    try:
        return SnapshotManager(connection, key_prefix=settings["key_prefix"])
    except DbStateError as e:
        raise click.ClickException(str(e)) from e
    except ValueError as e:
        raise click.UsageError(str(e)) from e


_project_option = click.option(
    "--project", "project_path", default=".", type=click.Path(exists=True, file_okay=False),
    help="Project directory containing .dbstate/config.toml.",
)
_verbose_option = click.option("-v", "--verbose", is_flag=True, help="Verbose output.")


@cli.command()
@click.argument("project_path", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--connection-string", default=None, help="Initial [database] connection_string.")
def init(project_path, connection_string):
    """Create .dbstate/config.toml with default settings."""
    from pathlib import Path

    from dbstate.config import create_default_config

    project = Path(project_path).resolve()
    try:
        path = create_default_config(project, connection_string)
    except FileExistsError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Created {path}")


@cli.command()
@_project_option
@_verbose_option
def save(project_path, verbose):
    """Snapshot the current database and print the key."""
    from dbstate.errors import DbStateError

    _setup_logging(verbose)
    manager = _build_manager(project_path)
    try:
        key = manager.save_state()
    except DbStateError as e:
        raise click.ClickException(str(e)) from e
    click.echo(key)


@cli.command()
@click.argument("key")
@_project_option
@_verbose_option
def load(key, project_path, verbose):
    """Restore the database from snapshot KEY."""
    from dbstate.errors import DbStateError

    _setup_logging(verbose)
    manager = _build_manager(project_path)
    try:
        manager.load_state(key)
    except (DbStateError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Restored {key} into {manager.base_filename}")


@cli.command()
@_project_option
@_verbose_option
def reset(project_path, verbose):
    """Delete the database so the next connection starts empty."""
    from dbstate.errors import DbStateError

    _setup_logging(verbose)
    manager = _build_manager(project_path)
    try:
        manager.reset_state()
    except DbStateError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Reset {manager.base_filename}")


@cli.command("list")
@_project_option
@_verbose_option
def list_snapshots(project_path, verbose):
    """List saved snapshot keys, oldest first."""
    _setup_logging(verbose)
    manager = _build_manager(project_path)
    keys = manager.list_snapshots()
    if not keys:
        click.echo(f"No snapshots in {manager.storage_path}")
        return
    for key in keys:
        click.echo(key)


@cli.command()
@click.argument("key")
@_project_option
@_verbose_option
def delete(key, project_path, verbose):
    """Delete snapshot KEY."""
    from dbstate.errors import DbStateError

    _setup_logging(verbose)
    manager = _build_manager(project_path)
    try:
        manager.delete_snapshot(key)
    except (DbStateError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Deleted {key}")


@cli.command()
@_project_option
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@_verbose_option
def prune(project_path, yes, verbose):
    """Delete every snapshot in the storage directory."""
    from dbstate.errors import DbStateError

    _setup_logging(verbose)
    manager = _build_manager(project_path)
    keys = manager.list_snapshots()
    if not keys:
        click.echo("Nothing to prune")
        return
    if not yes:
        click.confirm(f"Delete {len(keys)} snapshot(s) from {manager.storage_path}?", abort=True)
    try:
        removed = manager.cleanup(keys)
    except DbStateError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Deleted {removed} snapshot(s)")
