"""Parse identifiers into local paths or provider/bucket/key cloud locations."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from urllib.parse import unquote, urlparse

from obstinate.errors import InvalidLocationError, UnsupportedSchemeError


class Scheme(str, Enum):
    """Storage backend an identifier resolves to."""

    LOCAL = "file"
    S3 = "s3"
    AZURE = "az"
    GCS = "gs"

    @property
    def is_remote(self) -> bool:
        return self is not Scheme.LOCAL


_SCHEMES: dict[str, Scheme] = {
    "file": Scheme.LOCAL,
    "s3": Scheme.S3,
    "az": Scheme.AZURE,
    "adl": Scheme.AZURE,
    "abfs": Scheme.AZURE,
    "gs": Scheme.GCS,
    "gcp": Scheme.GCS,
}

# Provider name used for configuration lookups and error messages.
PROVIDERS: dict[Scheme, str] = {
    Scheme.S3: "aws",
    Scheme.AZURE: "azure",
    Scheme.GCS: "gcp",
}


@dataclass(frozen=True)
class CloudLocation:
    """A resolved identifier.

    ``scheme_name`` keeps the spelling used in the identifier (``abfs``, ``gcp``, ...)
    so cache directories mirror the url. For local locations ``bucket`` is empty
    and ``key`` is the filesystem path.
    """

    scheme: Scheme
    bucket: str
    key: str
    url: str
    scheme_name: str = ""

    @property
    def is_remote(self) -> bool:
        return self.scheme.is_remote

    @property
    def provider(self) -> str | None:
        return PROVIDERS.get(self.scheme)


def scheme_of(identifier: str) -> str | None:
    """Return the lower-cased url scheme of ``identifier``, or None for plain paths."""
    if "://" not in identifier:
        return None
    return identifier.split("://", 1)[0].lower()


def scheme_for(identifier: str) -> Scheme:
    """Return the backend for ``identifier`` without parsing bucket or key."""
    raw_scheme = scheme_of(identifier)
    if raw_scheme is None:
        return Scheme.LOCAL
    scheme = _SCHEMES.get(raw_scheme)
    if scheme is None:
        raise UnsupportedSchemeError(raw_scheme, identifier)
    return scheme


def parse_location(identifier: str) -> CloudLocation:
    """Resolve an identifier into a :class:`CloudLocation`. Performs no I/O.

    Anything that is not a recognized remote scheme, including an unknown
    ``scheme://`` prefix, is treated as a filesystem path.
    """
    raw_scheme = scheme_of(identifier)
    scheme = _SCHEMES.get(raw_scheme) if raw_scheme is not None else None
    if scheme is None:
        return CloudLocation(
            scheme=Scheme.LOCAL,
            bucket="",
            key=os.path.expanduser(identifier),
            url=identifier,
            scheme_name="file",
        )

    parsed = urlparse(identifier)

    if scheme is Scheme.LOCAL:
        path = unquote(parsed.path)
        if parsed.netloc and parsed.netloc != "localhost":
            # file://relative/dir/file.txt
            path = f"{parsed.netloc}{path}"
        if not path:
            raise InvalidLocationError(identifier, "empty file path")
        return CloudLocation(
            scheme=scheme,
            bucket="",
            key=os.path.expanduser(path),
            url=identifier,
            scheme_name=raw_scheme,
        )

    bucket = parsed.netloc
    if "@" in bucket:
        # abfs://container@account.dfs.core.windows.net/path
        bucket = bucket.split("@", 1)[0]
    key = unquote(parsed.path).lstrip("/")
    if not bucket:
        raise InvalidLocationError(identifier, "missing bucket")
    if not key:
        raise InvalidLocationError(identifier, "missing object key")
    return CloudLocation(
        scheme=scheme,
        bucket=bucket,
        key=key,
        url=identifier,
        scheme_name=raw_scheme,
    )
