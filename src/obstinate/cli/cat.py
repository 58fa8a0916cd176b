"""obstinate cat — memory map an identifier and write its bytes to stdout."""

from __future__ import annotations

import typer

from obstinate.cli import _exitcodes as ec
from obstinate.cli._options import config_from_state, options_for
from obstinate.cli._output import print_error
from obstinate.errors import ObstinateError
from obstinate.mmap import Mmap


def cat_cmd(
    identifier: str = typer.Argument(..., help="Local path or cloud url (s3://, az://, gs://)"),
) -> None:
    """Write the content of IDENTIFIER to stdout."""
    try:
        view = Mmap.from_url(
            identifier, options=options_for(identifier), config=config_from_state()
        )
    except ObstinateError as e:
        print_error(str(e))
        raise typer.Exit(ec.GENERAL_ERROR)

    if view is None:
        print_error(f"Object not found: {identifier}")
        raise typer.Exit(ec.NOT_FOUND)

    out = typer.get_binary_stream("stdout")
    with view:
        buf = view.as_memoryview()
        try:
            out.write(buf)
        finally:
            buf.release()
    out.flush()
