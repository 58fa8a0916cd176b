"""Azure Blob Storage object store."""

from __future__ import annotations

from typing import Any, Iterator

from azure.core import MatchConditions
from azure.core.exceptions import AzureError, ResourceModifiedError, ResourceNotFoundError
from azure.storage.blob import ContainerClient

from obstinate.config import parse_bool
from obstinate.errors import (
    InvalidConfigurationError,
    ObjectNotFoundError,
    PreconditionFailedError,
    RemoteTransportError,
)

from .base import ByteStream, ObjectMeta, ObjectStore

# Well-known Azurite development account.
_EMULATOR_CONNECTION_STRING = "UseDevelopmentStorage=true"


def _is_precondition_failed(err: Exception) -> bool:
    if isinstance(err, ResourceModifiedError):
        return True
    return getattr(err, "status_code", None) == 412


def _container_client(container_name: str, options: dict[str, str]) -> ContainerClient:
    endpoint = options.get("endpoint")
    if endpoint and endpoint.startswith("http://") and not parse_bool(options.get("allow_http")):
        raise InvalidConfigurationError(
            "azure", f"endpoint '{endpoint}' uses http; set allow_http=true to permit it"
        )

    kwargs: dict[str, Any] = {}
    if options.get("timeout"):
        kwargs["read_timeout"] = int(float(options["timeout"]))
    if options.get("connect_timeout"):
        kwargs["connection_timeout"] = int(float(options["connect_timeout"]))
    if options.get("max_retries"):
        kwargs["retry_total"] = int(options["max_retries"])

    if parse_bool(options.get("use_emulator")):
        return ContainerClient.from_connection_string(
            _EMULATOR_CONNECTION_STRING, container_name=container_name, **kwargs
        )
    if options.get("connection_string"):
        return ContainerClient.from_connection_string(
            options["connection_string"], container_name=container_name, **kwargs
        )

    account_name = options.get("account_name")
    if not account_name and not endpoint:
        raise InvalidConfigurationError(
            "azure", "requires connection_string, use_emulator, account_name or endpoint"
        )
    account_url = endpoint or f"https://{account_name}.blob.core.windows.net"
    credential: Any = options.get("account_key") or options.get("sas_token")
    if options.get("account_key") and account_name:
        credential = {"account_name": account_name, "account_key": options["account_key"]}
    return ContainerClient(
        account_url,
        container_name=container_name,
        credential=credential,
        **kwargs,
    )


class AzureObjectStore(ObjectStore):
    """Read-only Azure Blob facade over a single container."""

    def __init__(
        self,
        container_name: str,
        options: dict[str, str] | None = None,
        *,
        container: Any = None,
    ) -> None:
        self.container_name = container_name
        self._container = container or _container_client(container_name, options or {})

    def head(self, key: str) -> ObjectMeta:
        try:
            props = self._container.get_blob_client(key).get_blob_properties()
        except ResourceNotFoundError as e:
            raise ObjectNotFoundError(key) from e
        except AzureError as e:
            raise RemoteTransportError("head", key, str(e)) from e
        etag = props.etag
        return ObjectMeta(key=key, etag=etag or None, size=props.size)

    def get(self, key: str) -> ByteStream:
        return self._get(key, None)

    def get_conditional(self, key: str, if_match: str | None) -> ByteStream:
        return self._get(key, if_match)

    def _get(self, key: str, if_match: str | None) -> ByteStream:
        kwargs: dict[str, Any] = {}
        if if_match is not None:
            kwargs["etag"] = if_match
            kwargs["match_condition"] = MatchConditions.IfNotModified
        try:
            downloader = self._container.download_blob(key, **kwargs)
        except ResourceNotFoundError as e:
            raise ObjectNotFoundError(key) from e
        except AzureError as e:
            if _is_precondition_failed(e):
                raise PreconditionFailedError(key, if_match) from e
            raise RemoteTransportError("get", key, str(e)) from e
        return self._stream(key, if_match, downloader)

    def _stream(self, key: str, if_match: str | None, downloader: Any) -> Iterator[bytes]:
        try:
            for chunk in downloader.chunks():
                if chunk:
                    yield chunk
        except ResourceNotFoundError as e:
            raise ObjectNotFoundError(key) from e
        except AzureError as e:
            if _is_precondition_failed(e):
                raise PreconditionFailedError(key, if_match) from e
            raise RemoteTransportError("get", key, str(e)) from e

    def close(self) -> None:
        self._container.close()
