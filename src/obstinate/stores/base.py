"""Read-only object store facade consumed by the download engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator

ByteStream = Iterator[bytes]


@dataclass(frozen=True)
class ObjectMeta:
    """Metadata returned by :meth:`ObjectStore.head`."""

    key: str
    etag: str | None
    size: int | None = None


class ObjectStore(ABC):
    """Minimal read-only interface over a single bucket or container.

    Implementations translate provider errors into
    :class:`~obstinate.errors.ObjectNotFoundError`,
    :class:`~obstinate.errors.PreconditionFailedError` and
    :class:`~obstinate.errors.RemoteTransportError`. Errors may surface either
    from the call itself or while the returned stream is consumed.
    """

    @abstractmethod
    def head(self, key: str) -> ObjectMeta:
        """Return the object's metadata, including its current e-tag."""

    @abstractmethod
    def get(self, key: str) -> ByteStream:
        """Stream the object's content unconditionally."""

    @abstractmethod
    def get_conditional(self, key: str, if_match: str | None) -> ByteStream:
        """Stream the object's content only if its e-tag still equals ``if_match``.

        ``if_match=None`` means the store reported no version token and the
        read is unconditional.
        """

    def close(self) -> None:
        return None
