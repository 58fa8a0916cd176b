"""Cache cloud objects locally so they can be memory mapped.

Every url is mirrored as a directory under the cache root (see
:mod:`obstinate.cache_path`) and each version of the object is stored inside
it as ``content_<etag>``. Versions are never rewritten in place: a download is
staged in ``temp_<uuid>`` and atomically renamed into its final name, and
superseded versions are only unlinked. Readers holding an open descriptor or a
mapping of an old version therefore keep a consistent view.

The object stores cannot return an e-tag together with the content stream, so
a fetch is two calls: ``head()`` for the e-tag, then ``get_conditional()``
with ``If-Match``. If the object changes in between, the conditional read
fails and the whole reconciliation is retried, up to
``ObstinateConfig.max_attempts`` times.
"""

from __future__ import annotations

import asyncio
import logging
import os
import random
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote

from obstinate.cache_path import local_path_for_location
from obstinate.config import CloudOptions, ObstinateConfig
from obstinate.errors import (
    LocalIoError,
    ObjectNotFoundError,
    PreconditionFailedError,
    RetryExhaustedError,
)
from obstinate.location import CloudLocation, parse_location
from obstinate.stores import ByteStream, ObjectStore, build_store

log = logging.getLogger(__name__)

CONTENT_PREFIX = "content_"
TEMP_PREFIX = "temp_"
DEFAULT_ETAG = "default"


def content_name(etag: str | None) -> str:
    """Return the cache file name for a version token.

    Surrounding quotes are dropped and anything that is not filename-safe is
    percent-encoded, so distinct e-tags never share a name.
    """
    token = (etag or "").strip('"') or DEFAULT_ETAG
    return CONTENT_PREFIX + quote(token, safe="")


@dataclass
class LocalFile:
    """An open, read-only local file resolved from an identifier."""

    path: Path
    file: BinaryIO
    etag: str | None = None
    cached: bool = False

    def fileno(self) -> int:
        return self.file.fileno()

    def read(self, size: int = -1) -> bytes:
        return self.file.read(size)

    def close(self) -> None:
        self.file.close()

    def __enter__(self) -> LocalFile:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class Outcome(str, Enum):
    DOWNLOADED = "downloaded"
    CACHED = "cached"
    RETRY = "retry"
    NOT_FOUND = "not_found"


@dataclass
class DownloadResult:
    """Outcome of a single reconciliation attempt."""

    outcome: Outcome
    file: LocalFile | None = None
    evicted: list[str] = field(default_factory=list)


def cleanup_content(local_dir: Path, active_content: str) -> list[str]:
    """Delete every ``content_*`` entry of ``local_dir`` except ``active_content``.

    Best effort: a stale entry that cannot be removed is logged and skipped.
    Returns the names that were removed.
    """
    log.debug("cleaning up %s", local_dir)
    removed: list[str] = []
    try:
        entries = list(os.scandir(local_dir))
    except OSError as e:
        raise LocalIoError("scan_cache_dir", str(local_dir), str(e)) from e
    for entry in entries:
        if entry.name == active_content or not entry.name.startswith(CONTENT_PREFIX):
            continue
        if entry.is_dir(follow_symlinks=False):
            # Cache directory of a nested key, not a version.
            continue
        log.debug("removing %s", entry.name)
        try:
            os.unlink(entry.path)
        except FileNotFoundError:
            # Already evicted by a concurrent fetch.
            continue
        except OSError as e:
            log.warning("could not remove stale cache entry %s: %s", entry.path, e)
            continue
        removed.append(entry.name)
    return removed


def _open_cached(path: Path, etag: str | None, *, cached: bool) -> LocalFile | None:
    try:
        handle = open(path, "rb")
    except FileNotFoundError:
        # Evicted by a concurrent fetch of a newer version.
        return None
    except OSError as e:
        raise LocalIoError("open", str(path), str(e)) from e
    return LocalFile(path=path, file=handle, etag=etag, cached=cached)


class CacheEngine:
    """Reconciles one remote object with its local cache directory."""

    def __init__(
        self,
        location: CloudLocation,
        store: ObjectStore,
        config: ObstinateConfig | None = None,
    ) -> None:
        self.location = location
        self.store = store
        self.config = config or ObstinateConfig()

    def local_dir(self) -> Path:
        return local_path_for_location(self.location, self.config.cache_root)

    def download_one(self) -> DownloadResult:
        """Run one head / cache check / eviction / conditional get pass."""
        key = self.location.key

        log.debug("getting metadata for %s", self.location.url)
        try:
            meta = self.store.head(key)
        except ObjectNotFoundError:
            log.debug("object not found in the cloud")
            return DownloadResult(Outcome.NOT_FOUND)
        desired = content_name(meta.etag)
        log.debug("desired filename %s", desired)

        local_dir = self.local_dir()
        local_path = local_dir / desired
        if local_path.is_file():
            log.debug("returning existing file %s", local_path)
            existing = _open_cached(local_path, meta.etag, cached=True)
            if existing is None:
                return DownloadResult(Outcome.RETRY)
            return DownloadResult(Outcome.CACHED, existing)

        evicted = cleanup_content(local_dir, desired)

        try:
            stream = self.store.get_conditional(key, meta.etag)
            temp_path = self._write_temp(local_dir, stream)
        except PreconditionFailedError:
            log.debug("object changed in the cloud, retrying")
            return DownloadResult(Outcome.RETRY, evicted=evicted)
        except ObjectNotFoundError:
            log.debug("object not found in the cloud")
            return DownloadResult(Outcome.NOT_FOUND, evicted=evicted)

        log.debug("renaming %s to %s", temp_path.name, desired)
        try:
            os.replace(temp_path, local_path)
        except OSError as e:
            _discard(temp_path)
            raise LocalIoError("rename", str(local_path), str(e)) from e

        downloaded = _open_cached(local_path, meta.etag, cached=False)
        if downloaded is None:
            return DownloadResult(Outcome.RETRY, evicted=evicted)
        return DownloadResult(Outcome.DOWNLOADED, downloaded, evicted)

    def _write_temp(self, local_dir: Path, stream: ByteStream) -> Path:
        temp_path = local_dir / f"{TEMP_PREFIX}{uuid.uuid4()}"
        log.debug("downloading to temporary file %s", temp_path)
        try:
            out = open(temp_path, "xb")
        except OSError as e:
            raise LocalIoError("create", str(temp_path), str(e)) from e
        try:
            with out:
                for chunk in stream:
                    _checked(out.write, chunk, path=temp_path)
                _checked(out.flush, path=temp_path)
                _checked(os.fsync, out.fileno(), path=temp_path)
        except BaseException:
            _discard(temp_path)
            raise
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()
        return temp_path

    def fetch(self) -> LocalFile | None:
        """Resolve the object to an open local file, or None if it does not exist.

        Raises:
            RetryExhaustedError: The object changed during every attempt.
        """
        for attempt in range(self.config.max_attempts):
            log.debug("attempt %d at downloading %s", attempt, self.location.url)
            result = self.download_one()
            if result.outcome is Outcome.RETRY:
                self._backoff(attempt)
                continue
            if result.outcome is Outcome.NOT_FOUND:
                return None
            return result.file
        raise RetryExhaustedError(self.location.url, self.config.max_attempts)

    def _backoff(self, attempt: int) -> None:
        base = self.config.retry_backoff_ms
        if base <= 0 or attempt + 1 >= self.config.max_attempts:
            return
        delay_ms = min(self.config.retry_backoff_max_ms, base * (2**attempt))
        time.sleep(delay_ms / 1000.0 + random.uniform(0.0, delay_ms / 2000.0))


def _checked(op, *args: object, path: Path) -> object:
    try:
        return op(*args)
    except OSError as e:
        raise LocalIoError("write", str(path), str(e)) from e


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        log.warning("could not remove temporary file %s: %s", path, e)


def download_file(
    url: str,
    *,
    options: CloudOptions | None = None,
    config: ObstinateConfig | None = None,
    store: ObjectStore | None = None,
) -> LocalFile | None:
    """Download a cloud object into the local cache and open it.

    Returns None when the object does not exist. ``store`` overrides the
    object store built from ``options`` (or the process-wide options).
    """
    cfg = config or ObstinateConfig()
    location = parse_location(url)
    owned = store is None
    resolved_store = store or build_store(location, options, chunk_size=cfg.chunk_size)
    try:
        return CacheEngine(location, resolved_store, cfg).fetch()
    finally:
        if owned:
            resolved_store.close()


async def download_file_async(
    url: str,
    *,
    options: CloudOptions | None = None,
    config: ObstinateConfig | None = None,
    store: ObjectStore | None = None,
) -> LocalFile | None:
    """:func:`download_file` on a worker thread."""
    return await asyncio.to_thread(
        download_file, url, options=options, config=config, store=store
    )
