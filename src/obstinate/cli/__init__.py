"""Obstinate CLI: fetch, inspect and print cached cloud objects."""

from __future__ import annotations

import logging
from typing import List, Optional

import typer

from obstinate.cli import cat, fetch, where

app = typer.Typer(
    name="obstinate",
    help="Obstinate CLI — memory map local files and cached cloud objects.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    cache_dir: str | None = None
    options: list[str] = []
    json_output: bool = False
    verbose: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        try:
            from importlib.metadata import version

            v = version("obstinate")
        except Exception:
            v = "unknown"
        print(f"obstinate {v}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    cache_dir: Optional[str] = typer.Option(
        None,
        "--cache-dir",
        envvar="OBSTINATE_CACHE_DIR",
        help="Cache root (default: ~/.cache/obstinate)",
    ),
    option: Optional[List[str]] = typer.Option(
        None,
        "--option",
        "-o",
        help="Provider option as KEY=VALUE (e.g. -o endpoint=http://localhost:9000)",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log cache decisions"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all obstinate commands."""
    from obstinate.cli._options import parse_option_pairs

    raw_options = list(option or [])
    try:
        parse_option_pairs(raw_options)
    except ValueError as e:
        raise typer.BadParameter(str(e))

    state.cache_dir = cache_dir
    state.options = raw_options
    state.json_output = json_output
    state.verbose = verbose
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


app.command(name="fetch")(fetch.fetch_cmd)
app.command(name="cat")(cat.cat_cmd)
app.command(name="where")(where.where_cmd)


def main() -> None:
    """Entry point for the obstinate CLI."""
    app()
