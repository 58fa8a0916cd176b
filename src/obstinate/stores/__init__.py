"""Read-only object store clients."""

from .base import ByteStream, ObjectMeta, ObjectStore
from .factory import build_store

__all__ = [
    "ByteStream",
    "ObjectMeta",
    "ObjectStore",
    "build_store",
]
