"""Map cloud locations to their local cache directory.

The cache mirrors the cloud under the cache root: every url becomes a
directory ``<root>/<scheme>/<bucket>/<key>`` and each downloaded version of
the object is stored inside it as ``content_<etag>``.

Because keys nest, the directory of ``a/content_v1`` lives inside the
directory of ``a`` under the name of one of its versions. Only regular files
count as cached versions; such a collision surfaces as a
:class:`~obstinate.errors.LocalIoError` when publishing, and eviction never
removes the nested directory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from obstinate.config import ObstinateConfig
from obstinate.errors import InvalidLocationError, LocalIoError
from obstinate.location import CloudLocation

log = logging.getLogger(__name__)


def default_cache_root() -> Path:
    return Path(ObstinateConfig().cache_root)


def cache_dir_for_location(location: CloudLocation, cache_root: str | os.PathLike[str]) -> Path:
    """Return the cache directory for ``location`` without touching the filesystem."""
    if not location.is_remote:
        raise InvalidLocationError(location.url, "local paths are not cached")
    parts = [p for p in location.key.split("/") if p]
    if any(p in {".", ".."} for p in parts) or location.bucket in {".", ".."}:
        raise InvalidLocationError(location.url, "relative path segments are not allowed")
    scheme = location.scheme_name or location.scheme.value
    return Path(cache_root).joinpath(scheme, location.bucket, *parts)


def local_path_for_location(
    location: CloudLocation, cache_root: str | os.PathLike[str] | None = None
) -> Path:
    """Return the cache directory for ``location``, creating it if missing."""
    root = Path(cache_root) if cache_root is not None else default_cache_root()
    path = cache_dir_for_location(location, root)
    if not path.is_dir():
        log.debug("creating directory %s", path)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LocalIoError("create_cache_dir", str(path), str(e)) from e
    return path
