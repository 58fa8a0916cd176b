"""Google Cloud Storage object store."""

from __future__ import annotations

import json
from typing import Any, Iterator

from google.api_core import exceptions as gexc
from google.auth.credentials import AnonymousCredentials
from google.cloud import storage as gcs_storage
from google.oauth2 import service_account

from obstinate.config import parse_bool
from obstinate.errors import (
    InvalidConfigurationError,
    ObjectNotFoundError,
    PreconditionFailedError,
    RemoteTransportError,
)

from .base import ByteStream, ObjectMeta, ObjectStore

DEFAULT_CHUNK_SIZE = 8 * 1024 * 1024


def _client(options: dict[str, str]) -> Any:
    endpoint = options.get("endpoint")
    if endpoint and endpoint.startswith("http://") and not parse_bool(options.get("allow_http")):
        raise InvalidConfigurationError(
            "gcp", f"endpoint '{endpoint}' uses http; set allow_http=true to permit it"
        )

    kwargs: dict[str, Any] = {}
    if options.get("project"):
        kwargs["project"] = options["project"]
    if options.get("service_account_key"):
        try:
            info = json.loads(options["service_account_key"])
        except ValueError as e:
            raise InvalidConfigurationError("gcp", "service_account_key is not valid JSON") from e
        kwargs["credentials"] = service_account.Credentials.from_service_account_info(info)
    elif options.get("service_account"):
        kwargs["credentials"] = service_account.Credentials.from_service_account_file(
            options["service_account"]
        )
    elif endpoint:
        # Emulators (fake-gcs-server) accept unauthenticated requests.
        kwargs["credentials"] = AnonymousCredentials()
    if endpoint:
        kwargs["client_options"] = {"api_endpoint": endpoint}
    return gcs_storage.Client(**kwargs)


class GcsObjectStore(ObjectStore):
    """Read-only GCS facade over a single bucket."""

    def __init__(
        self,
        bucket_name: str,
        options: dict[str, str] | None = None,
        *,
        client: Any = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.bucket_name = bucket_name
        self._chunk_size = chunk_size
        self._client = client or _client(options or {})
        self._bucket = self._client.bucket(bucket_name)

    def head(self, key: str) -> ObjectMeta:
        try:
            blob = self._bucket.get_blob(key)
        except gexc.NotFound as e:
            raise ObjectNotFoundError(key) from e
        except gexc.GoogleAPIError as e:
            raise RemoteTransportError("head", key, str(e)) from e
        if blob is None:
            raise ObjectNotFoundError(key)
        return ObjectMeta(key=key, etag=blob.etag or None, size=blob.size)

    def get(self, key: str) -> ByteStream:
        return self._stream(key, None)

    def get_conditional(self, key: str, if_match: str | None) -> ByteStream:
        return self._stream(key, if_match)

    def _stream(self, key: str, if_match: str | None) -> Iterator[bytes]:
        kwargs: dict[str, Any] = {"chunk_size": self._chunk_size}
        if if_match is not None:
            kwargs["if_etag_match"] = if_match
        try:
            with self._bucket.blob(key).open("rb", **kwargs) as reader:
                while True:
                    chunk = reader.read(self._chunk_size)
                    if not chunk:
                        break
                    yield chunk
        except gexc.PreconditionFailed as e:
            raise PreconditionFailedError(key, if_match) from e
        except gexc.NotFound as e:
            raise ObjectNotFoundError(key) from e
        except gexc.GoogleAPIError as e:
            raise RemoteTransportError("get", key, str(e)) from e

    def close(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            close()
