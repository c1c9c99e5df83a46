"""Typer application and console entry point for ``rtdb-cache``.

A thin command line over :class:`~rtdb_cache.store.StoreController`,
mostly useful to check a configuration and poke at data::

    rtdb-cache --name proj-default-rtdb --secret env:RTDB_SECRET ping
    rtdb-cache get users --json
    rtdb-cache set users/steve/name '"Steve"'

Values go to stdout, diagnostics to stderr.  Every
:class:`~rtdb_cache.exceptions.RTDBCacheError` exits with its
``exit_code`` (see :mod:`rtdb_cache.exit_codes`).
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import typer

from rtdb_cache import __version__
from rtdb_cache.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="rtdb-cache",
    help="Cached access to a Firebase Realtime Database.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"rtdb-cache {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    name: Optional[str] = typer.Option(
        None, "--name", help="Database name, e.g. PROJECT-default-rtdb."
    ),
    secret: Optional[str] = typer.Option(
        None, "--secret", help="Database secret, or env:VAR / file:PATH."
    ),
    ttl: Optional[int] = typer.Option(
        None, "--ttl", help="Cache time-to-live in milliseconds."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the database URL (emulator)."
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Config file to read instead of the default."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show request and cache trace."
    ),
) -> None:
    """Install the output manager and stash connection flags in ``ctx.obj``."""
    from rtdb_cache.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["name"] = name
    ctx.obj["secret"] = secret
    ctx.obj["ttl"] = ttl
    ctx.obj["base_url"] = base_url
    ctx.obj["config_path"] = config_path


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _make_transport(config: Any) -> Any:
    """Create the transport used by CLI commands (replaced in tests)."""
    from rtdb_cache.client import HttpTransport

    return HttpTransport(
        config.name,
        config.secret,
        base_url=config.base_url,
        timeout=config.timeout,
        verify_ssl=config.verify_ssl,
    )


def _run(ctx: typer.Context, action: Callable[[Any], Awaitable[None]]) -> None:
    """Resolve config, open a controller, run *action*, map errors to exit codes."""
    from rtdb_cache.config import resolve_store_config
    from rtdb_cache.exceptions import RTDBCacheError
    from rtdb_cache.output import error
    from rtdb_cache.store import StoreController

    async def _main() -> None:
        config = resolve_store_config(
            name=ctx.obj["name"],
            secret=ctx.obj["secret"],
            ttl_ms=ctx.obj["ttl"],
            base_url=ctx.obj["base_url"],
            config_path=ctx.obj["config_path"],
        )
        transport = _make_transport(config)
        try:
            async with StoreController.from_config(config, transport=transport) as db:
                await action(db)
        finally:
            await transport.aclose()

    try:
        asyncio.run(_main())
    except RTDBCacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _parse_value(raw: str) -> Any:
    """Parse *raw* as JSON, falling back to the raw string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command()
def ping(ctx: typer.Context) -> None:
    """Validate that the database exists and the secret is accepted."""
    from rtdb_cache.output import success

    async def action(db: Any) -> None:
        await db.wait_ready()
        success(f"Database \"{db.name}\" is reachable")

    _run(ctx, action)


@app.command("get")
def get_command(
    ctx: typer.Context,
    path: str = typer.Argument("", help="Database path, e.g. users/steve."),
    shallow: bool = typer.Option(
        False, "--shallow", help="Fetch only the keys of immediate children (uncached)."
    ),
    refresh: bool = typer.Option(
        False, "--refresh", help="Force a refresh of the cached node."
    ),
) -> None:
    """Print the value stored at PATH."""
    from rtdb_cache.exceptions import NotFoundError
    from rtdb_cache.output import format_value

    async def action(db: Any) -> None:
        if shallow:
            value = await db.fetch(path, {"shallow": True})
            format_value(value)
            return

        node = await db.node(path)
        if node is None:
            raise NotFoundError(f"Nothing could be read at '{path}'")
        if refresh:
            await node.get(force_refresh=True)
        format_value(node.snapshot())

    _run(ctx, action)


@app.command("set")
def set_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Database path, e.g. users/steve/name."),
    value: str = typer.Argument(..., help="JSON value (bare strings are accepted)."),
) -> None:
    """Write VALUE to PATH through the cache."""
    from rtdb_cache.cache import CacheNode
    from rtdb_cache.cache.tree import normalize_path
    from rtdb_cache.output import success

    parsed = _parse_value(value)

    async def action(db: Any) -> None:
        node = await db.node(path) or CacheNode(normalize_path(path), db)
        await node.set(parsed)
        success(f"Wrote '{node.path}'")

    _run(ctx, action)


def main() -> None:
    """Console-script entry point.

    :class:`~rtdb_cache.exceptions.RTDBCacheError` is mapped to its exit
    code inside each command; anything else escaping Typer is reported and
    exits with :data:`~rtdb_cache.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from rtdb_cache.output import error

        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
