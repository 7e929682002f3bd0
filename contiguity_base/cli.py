"""
CLI interface for Contiguity Base.

Usage:
    contiguity get users ada
    contiguity put users '{"name": "Ada"}' --key ada --expire-in 3600
    contiguity update users ada --increment visits=1 --append tags='"new"'
    contiguity query users '{"name?pfx": "A"}' --limit 10
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from .base import Base, Contiguity
from .config import ClientConfig, resolve_config, save_config
from .errors import ConfigError
from .logging_config import configure_quiet_mode, enable_debug_mode
from .updates import parse_expire_at
from .util import append, delete, increment, prepend, trim

# Set CONTIGUITY_VERBOSE=1 to enable debug mode via environment
if os.environ.get("CONTIGUITY_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"contiguity {version('contiguity-base')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_config_override: Optional[Path] = None


def _config_callback(value: Optional[Path]):
    global _config_override
    _config_override = value


app = typer.Typer(
    name="contiguity",
    help="Read and write items in a Contiguity Base.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    config: Annotated[Optional[Path], typer.Option(
        "--config", "-c",
        envvar="CONTIGUITY_CONFIG",
        help="Path to contiguity.toml",
        callback=_config_callback,
        is_eager=True,
    )] = None,
):
    """Read and write items in a Contiguity Base."""


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _get_base(name: str) -> Base:
    try:
        config = resolve_config(_config_override)
    except (ConfigError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        typer.echo("Hint: run 'contiguity init' or set CONTIGUITY_API_KEY and CONTIGUITY_PROJECT_ID", err=True)
        raise typer.Exit(1)
    return Contiguity.from_config(config).base(name)


def _parse_json(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        typer.echo(f"Error: {what} is not valid JSON: {e}", err=True)
        raise typer.Exit(1)


def _parse_value(text: str) -> Any:
    """JSON if it parses, else the raw string (so --set name=Ada works)."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def _split_assignment(text: str, option: str) -> tuple[str, str]:
    path, sep, value = text.partition("=")
    if not sep or not path:
        typer.echo(f"Error: {option} expects PATH=VALUE, got {text!r}", err=True)
        raise typer.Exit(1)
    return path, value


def _parse_number(text: str, option: str) -> int | float:
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        typer.echo(f"Error: {option} expects a number, got {text!r}", err=True)
        raise typer.Exit(1)


def _parse_expire_at(text: Optional[str]) -> Any:
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        pass
    try:
        parse_expire_at(text)
    except ValueError as e:
        typer.echo(f"Error: --expire-at is not a number or ISO-8601 time: {e}", err=True)
        raise typer.Exit(1)
    return text


def _emit(result: Any, missing: str) -> None:
    if result is None:
        typer.echo(missing, err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(result, indent=2))


# -----------------------------------------------------------------------------
# Common Options
# -----------------------------------------------------------------------------

BaseArg = Annotated[str, typer.Argument(help="Name of the Base")]
KeyArg = Annotated[str, typer.Argument(help="Item key")]
ExpireInOption = Annotated[Optional[int], typer.Option(
    "--expire-in", help="Seconds until the item expires")]
ExpireAtOption = Annotated[Optional[str], typer.Option(
    "--expire-at", help="Expiry as ISO-8601 (UTC if no offset) or Unix seconds")]


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

@app.command()
def get(base: BaseArg, key: KeyArg):
    """Print an item."""
    with _get_base(base) as b:
        _emit(b.get(key), f"Not found: {key}")


@app.command()
def put(
    base: BaseArg,
    data: Annotated[str, typer.Argument(help="Item as a JSON object, or a JSON list of items")],
    key: Annotated[Optional[str], typer.Option("--key", "-k", help="Key for a single item")] = None,
    expire_in: ExpireInOption = None,
    expire_at: ExpireAtOption = None,
):
    """Store an item (or a list of items), replacing any existing one."""
    items = _parse_json(data, "item")
    if not isinstance(items, (dict, list)):
        typer.echo("Error: item must be a JSON object or list", err=True)
        raise typer.Exit(1)
    with _get_base(base) as b:
        result = b.put(items, key, expire_in=expire_in, expire_at=_parse_expire_at(expire_at))
        _emit(result, "Error: put failed")


@app.command()
def insert(
    base: BaseArg,
    data: Annotated[str, typer.Argument(help="Item as a JSON object")],
    key: Annotated[Optional[str], typer.Option("--key", "-k", help="Item key")] = None,
    expire_in: ExpireInOption = None,
    expire_at: ExpireAtOption = None,
):
    """Create an item; fails if the key already exists."""
    item = _parse_json(data, "item")
    if not isinstance(item, dict):
        typer.echo("Error: item must be a JSON object", err=True)
        raise typer.Exit(1)
    with _get_base(base) as b:
        result = b.insert(item, key, expire_in=expire_in, expire_at=_parse_expire_at(expire_at))
        _emit(result, "Error: insert failed (key may already exist)")


@app.command("delete")
def delete_cmd(base: BaseArg, key: KeyArg):
    """Delete an item."""
    with _get_base(base) as b:
        _emit(b.delete(key), f"Error: delete failed: {key}")


@app.command()
def update(
    base: BaseArg,
    key: KeyArg,
    set_fields: Annotated[Optional[list[str]], typer.Option(
        "--set", "-s", help="Replace a field: PATH=JSON (repeatable)")] = None,
    increment_fields: Annotated[Optional[list[str]], typer.Option(
        "--increment", "-i", help="Add to a number: PATH=N (repeatable)")] = None,
    append_fields: Annotated[Optional[list[str]], typer.Option(
        "--append", "-a", help="Append to a list: PATH=JSON (repeatable)")] = None,
    prepend_fields: Annotated[Optional[list[str]], typer.Option(
        "--prepend", "-p", help="Prepend to a list: PATH=JSON (repeatable)")] = None,
    trim_fields: Annotated[Optional[list[str]], typer.Option(
        "--trim", help="Remove a field: PATH (repeatable)")] = None,
    delete_fields: Annotated[Optional[list[str]], typer.Option(
        "--delete", "-d", help="Delete a field: PATH (repeatable)")] = None,
    expire_in: ExpireInOption = None,
    expire_at: ExpireAtOption = None,
):
    """Apply a partial update to an item."""
    updates: dict[str, Any] = {}
    for assignment in set_fields or []:
        path, value = _split_assignment(assignment, "--set")
        updates[path] = _parse_value(value)
    for assignment in increment_fields or []:
        path, value = _split_assignment(assignment, "--increment")
        updates[path] = increment(_parse_number(value, "--increment"))
    for assignment in append_fields or []:
        path, value = _split_assignment(assignment, "--append")
        updates[path] = append(_parse_value(value))
    for assignment in prepend_fields or []:
        path, value = _split_assignment(assignment, "--prepend")
        updates[path] = prepend(_parse_value(value))
    for path in trim_fields or []:
        updates[path] = trim()
    for path in delete_fields or []:
        updates[path] = delete()

    if not updates and expire_in is None and expire_at is None:
        typer.echo("Error: Specify at least one --set/--increment/--append/--prepend/--trim/--delete", err=True)
        raise typer.Exit(1)

    with _get_base(base) as b:
        result = b.update(updates, key, expire_in=expire_in, expire_at=_parse_expire_at(expire_at))
        _emit(result, f"Error: update failed: {key}")


@app.command()
def query(
    base: BaseArg,
    filter_json: Annotated[Optional[str], typer.Argument(
        metavar="FILTER", help="Filter as JSON, e.g. '{\"age?gt\": 30}'")] = None,
    limit: Annotated[Optional[int], typer.Option("--limit", "-n", help="Maximum items to return")] = None,
    last: Annotated[Optional[str], typer.Option("--last", help="Cursor from a previous page")] = None,
):
    """Query items."""
    filters = _parse_json(filter_json, "filter") if filter_json is not None else None
    with _get_base(base) as b:
        page = b.fetch(filters, limit=limit, last=last)
    if page is None:
        typer.echo("Error: query failed", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps({"items": page.items, "last": page.last, "count": page.count}, indent=2))


@app.command()
def init(
    api_key: Annotated[str, typer.Option(
        "--api-key", prompt=True, hide_input=True, help="API key")],
    project_id: Annotated[str, typer.Option(
        "--project-id", prompt=True, help="Project ID")],
    base_url: Annotated[Optional[str], typer.Option(
        "--base-url", help="API root (default: Contiguity cloud)")] = None,
):
    """Save credentials to the config file."""
    kwargs = {"base_url": base_url} if base_url else {}
    path = save_config(ClientConfig(api_key=api_key, project_id=project_id, **kwargs), _config_override)
    typer.echo(f"Saved config to {path}")


# -----------------------------------------------------------------------------

def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="contiguity CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
