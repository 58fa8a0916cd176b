"""Shared test fixtures for Obstinate tests."""

from __future__ import annotations

from typing import Callable, Iterator

import pytest

from obstinate.config import ObstinateConfig, _reset_cloud_options
from obstinate.errors import ObjectNotFoundError, PreconditionFailedError
from obstinate.stores import ObjectMeta, ObjectStore


class FakeObjectStore(ObjectStore):
    """In-memory object store with the same error contract as the real facades.

    ``before_get`` runs at the start of every content read, which lets a test
    change the remote object between ``head()`` and ``get_conditional()``.
    """

    def __init__(self, chunk_size: int = 3) -> None:
        self.objects: dict[str, tuple[bytes, str | None]] = {}
        self.calls: list[tuple[str, str]] = []
        self.before_get: Callable[[str], None] | None = None
        self.chunk_size = chunk_size
        self.closed = False

    def put(self, key: str, data: bytes, etag: str | None) -> None:
        self.objects[key] = (data, etag)

    def head(self, key: str) -> ObjectMeta:
        self.calls.append(("head", key))
        if key not in self.objects:
            raise ObjectNotFoundError(key)
        data, etag = self.objects[key]
        return ObjectMeta(key=key, etag=etag, size=len(data))

    def get(self, key: str) -> Iterator[bytes]:
        self.calls.append(("get", key))
        return self._read(key, None)

    def get_conditional(self, key: str, if_match: str | None) -> Iterator[bytes]:
        self.calls.append(("get_conditional", key))
        return self._read(key, if_match)

    def _read(self, key: str, if_match: str | None) -> Iterator[bytes]:
        if self.before_get is not None:
            self.before_get(key)
        if key not in self.objects:
            raise ObjectNotFoundError(key)
        data, etag = self.objects[key]
        if if_match is not None and etag != if_match:
            raise PreconditionFailedError(key, if_match)
        return iter([data[i : i + self.chunk_size] for i in range(0, len(data), self.chunk_size)])

    def content_reads(self) -> int:
        return sum(1 for op, _ in self.calls if op in {"get", "get_conditional"})

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def cache_root(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def config(cache_root) -> ObstinateConfig:
    return ObstinateConfig(cache_root=str(cache_root))


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch, tmp_path):
    """Keep the process-wide options slot and the user cache out of every test."""
    monkeypatch.setenv("OBSTINATE_CACHE_DIR", str(tmp_path / "default-cache"))
    _reset_cloud_options()
    yield
    _reset_cloud_options()
