"""S3-compatible object store (AWS S3, MinIO, SeaweedFS)."""

from __future__ import annotations

from typing import Any, Iterator

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from obstinate.config import parse_bool
from obstinate.errors import (
    InvalidConfigurationError,
    ObjectNotFoundError,
    PreconditionFailedError,
    RemoteTransportError,
)

from .base import ByteStream, ObjectMeta, ObjectStore

DEFAULT_CHUNK_SIZE = 8 * 1024 * 1024


def _error_code(err: Exception) -> str:
    if isinstance(err, ClientError):
        return str(err.response.get("Error", {}).get("Code", ""))
    return ""


def _is_not_found(err: Exception) -> bool:
    return _error_code(err) in {"NoSuchKey", "404", "NotFound"}


def _is_precondition_failed(err: Exception) -> bool:
    return _error_code(err) in {"PreconditionFailed", "412"}


def _client_kwargs(options: dict[str, str]) -> dict[str, Any]:
    endpoint = options.get("endpoint")
    if endpoint and endpoint.startswith("http://") and not parse_bool(options.get("allow_http")):
        raise InvalidConfigurationError(
            "aws", f"endpoint '{endpoint}' uses http; set allow_http=true to permit it"
        )

    config_kwargs: dict[str, Any] = {
        "signature_version": "s3v4",
        "retries": {"max_attempts": int(options.get("max_retries", 5)), "mode": "standard"},
    }
    if options.get("timeout"):
        config_kwargs["read_timeout"] = float(options["timeout"])
    if options.get("connect_timeout"):
        config_kwargs["connect_timeout"] = float(options["connect_timeout"])
    if "virtual_hosted_style_request" in options:
        style = "virtual" if parse_bool(options["virtual_hosted_style_request"]) else "path"
        config_kwargs["s3"] = {"addressing_style": style}

    kwargs: dict[str, Any] = {"config": BotoConfig(**config_kwargs)}
    if options.get("region"):
        kwargs["region_name"] = options["region"]
    if endpoint:
        kwargs["endpoint_url"] = endpoint
    if options.get("access_key_id") and options.get("secret_access_key"):
        kwargs["aws_access_key_id"] = options["access_key_id"]
        kwargs["aws_secret_access_key"] = options["secret_access_key"]
    if options.get("session_token"):
        kwargs["aws_session_token"] = options["session_token"]
    return kwargs


class S3ObjectStore(ObjectStore):
    """Read-only S3 facade over a single bucket."""

    def __init__(
        self,
        bucket: str,
        options: dict[str, str] | None = None,
        *,
        client: Any = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.bucket = bucket
        self._chunk_size = chunk_size
        if client is None:
            opts = options or {}
            kwargs = _client_kwargs(opts)
            session = boto3.Session(
                profile_name=opts.get("profile"),
                region_name=kwargs.get("region_name"),
            )
            client = session.client("s3", **kwargs)
        self._s3 = client

    def head(self, key: str) -> ObjectMeta:
        try:
            resp = self._s3.head_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(key) from e
            raise RemoteTransportError("head", key, str(e)) from e
        etag = resp.get("ETag")
        size = resp.get("ContentLength")
        return ObjectMeta(
            key=key,
            etag=etag if isinstance(etag, str) and etag else None,
            size=int(size) if size is not None else None,
        )

    def get(self, key: str) -> ByteStream:
        return self._get(key, None)

    def get_conditional(self, key: str, if_match: str | None) -> ByteStream:
        return self._get(key, if_match)

    def _get(self, key: str, if_match: str | None) -> ByteStream:
        kwargs: dict[str, Any] = {"Bucket": self.bucket, "Key": key}
        if if_match is not None:
            kwargs["IfMatch"] = if_match
        try:
            resp = self._s3.get_object(**kwargs)
        except (ClientError, BotoCoreError) as e:
            if _is_precondition_failed(e):
                raise PreconditionFailedError(key, if_match) from e
            if _is_not_found(e):
                raise ObjectNotFoundError(key) from e
            raise RemoteTransportError("get", key, str(e)) from e
        return self._stream(key, resp["Body"])

    def _stream(self, key: str, body: Any) -> Iterator[bytes]:
        try:
            for chunk in body.iter_chunks(chunk_size=self._chunk_size):
                if chunk:
                    yield chunk
        except (ClientError, BotoCoreError) as e:
            raise RemoteTransportError("get", key, str(e)) from e
        finally:
            body.close()

    def close(self) -> None:
        close = getattr(self._s3, "close", None)
        if close is not None:
            close()
