"""obstinate fetch — resolve an identifier to a file in the local cache."""

from __future__ import annotations

import os
from typing import Any

import typer

from obstinate.cli import _exitcodes as ec
from obstinate.cli._options import config_from_state, options_for
from obstinate.cli._output import print_error, print_object
from obstinate.errors import ObstinateError
from obstinate.mmap import open_url


def fetch_cmd(
    identifier: str = typer.Argument(..., help="Local path or cloud url (s3://, az://, gs://)"),
) -> None:
    """Download (or reuse) the cached copy of IDENTIFIER and print where it lives."""
    from obstinate.cli import state

    try:
        local = open_url(identifier, options=options_for(identifier), config=config_from_state())
    except ObstinateError as e:
        print_error(str(e))
        raise typer.Exit(ec.GENERAL_ERROR)

    if local is None:
        print_error(f"Object not found: {identifier}")
        raise typer.Exit(ec.NOT_FOUND)

    with local:
        size = os.fstat(local.fileno()).st_size
        data: dict[str, Any] = {
            "identifier": identifier,
            "path": str(local.path),
            "size_bytes": size,
            "etag": local.etag,
            "cached": local.cached,
        }

    if state.json_output:
        print_object(data, json_mode=True)
    else:
        print(data["path"])
