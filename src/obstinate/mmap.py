"""Read-only memory maps of local files and cached cloud objects.

A :class:`Mmap` is only valid while its backing file is never truncated or
rewritten. Files produced by :mod:`obstinate.cache` satisfy this: cached
versions are published by rename and superseded versions are unlinked, never
modified. Mapping arbitrary local files carries no such guarantee.
"""

from __future__ import annotations

import asyncio
import mmap as _mmap
import os
from pathlib import Path
from typing import Any, Iterator

from obstinate.cache import LocalFile, download_file
from obstinate.config import CloudOptions, ObstinateConfig
from obstinate.errors import LocalIoError, MappingError
from obstinate.location import parse_location
from obstinate.stores import ObjectStore


def open_url(
    url: str,
    *,
    options: CloudOptions | None = None,
    config: ObstinateConfig | None = None,
    store: ObjectStore | None = None,
) -> LocalFile | None:
    """Open a local path or cloud url as a read-only local file.

    Local paths (and ``file://`` urls) are opened directly without touching the
    cache. Cloud urls go through :func:`~obstinate.cache.download_file`; None is
    returned when the remote object does not exist.
    """
    location = parse_location(url)
    if location.is_remote:
        return download_file(url, options=options, config=config, store=store)

    path = Path(location.key)
    try:
        handle = open(path, "rb")
    except OSError as e:
        raise LocalIoError("open", str(path), str(e)) from e
    return LocalFile(path=path, file=handle)


async def open_url_async(
    url: str,
    *,
    options: CloudOptions | None = None,
    config: ObstinateConfig | None = None,
    store: ObjectStore | None = None,
) -> LocalFile | None:
    return await asyncio.to_thread(open_url, url, options=options, config=config, store=store)


def _describe(file: Any) -> str:
    for attr in ("path", "name"):
        value = getattr(file, attr, None)
        if isinstance(value, (str, os.PathLike)):
            return str(value)
    return repr(file)


class Mmap:
    """Immutable, zero-copy byte view over a memory-mapped file.

    Behaves like a read-only ``bytes``: ``len()``, indexing (ints), slicing
    (``bytes`` copies of the slice), iteration and equality with other
    bytes-like objects. The mapping is released by :meth:`close` or when used as
    a context manager.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, mapping: _mmap.mmap, path: str | None = None) -> None:
        self._mm = mapping
        self.path = path

    @classmethod
    def map(cls, file: Any) -> Mmap:
        """Map an open file (anything with ``fileno()``, or a raw descriptor).

        Raises:
            MappingError: The file is empty, not readable, or cannot be mapped.
        """
        path = _describe(file)
        try:
            fd = file if isinstance(file, int) else file.fileno()
            mapping = _mmap.mmap(fd, 0, access=_mmap.ACCESS_READ)
        except (ValueError, OSError) as e:
            raise MappingError(path, str(e)) from e
        return cls(mapping, path)

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        options: CloudOptions | None = None,
        config: ObstinateConfig | None = None,
        store: ObjectStore | None = None,
    ) -> Mmap | None:
        """Map a local path or cloud url; None when the cloud object does not exist."""
        local = open_url(url, options=options, config=config, store=store)
        if local is None:
            return None
        # The mapping outlives the descriptor.
        with local:
            return cls.map(local)

    @classmethod
    async def from_url_async(
        cls,
        url: str,
        *,
        options: CloudOptions | None = None,
        config: ObstinateConfig | None = None,
        store: ObjectStore | None = None,
    ) -> Mmap | None:
        return await asyncio.to_thread(
            cls.from_url, url, options=options, config=config, store=store
        )

    @property
    def closed(self) -> bool:
        return self._mm.closed

    def close(self) -> None:
        self._mm.close()

    def __enter__(self) -> Mmap:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def as_memoryview(self) -> memoryview:
        """Return a read-only memoryview; release it before :meth:`close`."""
        return memoryview(self._mm)

    def __len__(self) -> int:
        return len(self._mm)

    def __getitem__(self, index: int | slice) -> int | bytes:
        return self._mm[index]

    def __iter__(self) -> Iterator[int]:
        mm = self._mm
        for i in range(len(mm)):
            yield mm[i]

    def __bytes__(self) -> bytes:
        return self._mm[:]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mmap):
            return self._mm[:] == other._mm[:]
        if isinstance(other, (bytes, bytearray, memoryview)):
            return self._mm[:] == bytes(other)
        return NotImplemented

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"{len(self)} bytes"
        return f"Mmap({self.path!r}, {state})"
