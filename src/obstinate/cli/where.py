"""obstinate where — show how an identifier resolves, without network access."""

from __future__ import annotations

from typing import Any

import typer

from obstinate.cache import CONTENT_PREFIX
from obstinate.cache_path import cache_dir_for_location
from obstinate.cli import _exitcodes as ec
from obstinate.cli._options import config_from_state
from obstinate.cli._output import print_error, print_object
from obstinate.errors import ObstinateError
from obstinate.location import parse_location


def where_cmd(
    identifier: str = typer.Argument(..., help="Local path or cloud url (s3://, az://, gs://)"),
) -> None:
    """Print the parsed location of IDENTIFIER and its cache directory."""
    from obstinate.cli import state

    try:
        location = parse_location(identifier)
        data: dict[str, Any] = {
            "scheme": location.scheme.name.lower(),
            "bucket": location.bucket,
            "key": location.key,
        }
        if location.is_remote:
            cache_dir = cache_dir_for_location(location, config_from_state().cache_root)
            data["cache_dir"] = str(cache_dir)
            versions: list[str] = []
            if cache_dir.is_dir():
                versions = sorted(p.name for p in cache_dir.glob(f"{CONTENT_PREFIX}*"))
            data["cached_versions"] = versions
    except ObstinateError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)

    print_object(data, json_mode=state.json_output)
