"""Unit tests for the S3 facade that do not require a live S3 endpoint."""

from __future__ import annotations

from typing import Any

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from obstinate.errors import (
    InvalidConfigurationError,
    ObjectNotFoundError,
    PreconditionFailedError,
    RemoteTransportError,
)
from obstinate.stores.s3 import S3ObjectStore, _client_kwargs


def _client_error(code: str, op: str = "GetObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, op)


class _Body:
    def __init__(self, chunks: list[bytes]) -> None:
        self.chunks = chunks
        self.closed = False

    def iter_chunks(self, chunk_size: int):
        yield from self.chunks

    def close(self) -> None:
        self.closed = True


class _FakeS3:
    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.head_response: dict[str, Any] | Exception = {"ETag": '"abc"', "ContentLength": 3}
        self.get_response: dict[str, Any] | Exception = {"Body": _Body([b"ab", b"c"])}

    def head_object(self, **kwargs: Any) -> dict[str, Any]:
        self.requests.append({"op": "head", **kwargs})
        if isinstance(self.head_response, Exception):
            raise self.head_response
        return self.head_response

    def get_object(self, **kwargs: Any) -> dict[str, Any]:
        self.requests.append({"op": "get", **kwargs})
        if isinstance(self.get_response, Exception):
            raise self.get_response
        return self.get_response


def _store(fake: _FakeS3) -> S3ObjectStore:
    return S3ObjectStore("bucket", client=fake)


def test_head_returns_etag_and_size() -> None:
    fake = _FakeS3()
    meta = _store(fake).head("k")
    assert meta.etag == '"abc"'
    assert meta.size == 3
    assert fake.requests == [{"op": "head", "Bucket": "bucket", "Key": "k"}]


def test_head_without_etag() -> None:
    fake = _FakeS3()
    fake.head_response = {"ContentLength": 1}
    assert _store(fake).head("k").etag is None


@pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
def test_head_not_found(code: str) -> None:
    fake = _FakeS3()
    fake.head_response = _client_error(code, "HeadObject")
    with pytest.raises(ObjectNotFoundError):
        _store(fake).head("k")


def test_head_other_error_is_transport_error() -> None:
    fake = _FakeS3()
    fake.head_response = _client_error("AccessDenied", "HeadObject")
    with pytest.raises(RemoteTransportError) as excinfo:
        _store(fake).head("k")
    assert excinfo.value.operation == "head"
    assert isinstance(excinfo.value.__cause__, ClientError)


def test_connection_failure_is_transport_error() -> None:
    fake = _FakeS3()
    fake.head_response = EndpointConnectionError(endpoint_url="http://nowhere")
    with pytest.raises(RemoteTransportError):
        _store(fake).head("k")


def test_get_conditional_sends_if_match_and_streams() -> None:
    fake = _FakeS3()
    body = _Body([b"ab", b"", b"c"])
    fake.get_response = {"Body": body}

    chunks = list(_store(fake).get_conditional("k", '"abc"'))

    assert chunks == [b"ab", b"c"]
    assert fake.requests[-1] == {"op": "get", "Bucket": "bucket", "Key": "k", "IfMatch": '"abc"'}
    assert body.closed


def test_get_is_unconditional() -> None:
    fake = _FakeS3()
    list(_store(fake).get("k"))
    assert "IfMatch" not in fake.requests[-1]


@pytest.mark.parametrize("code", ["PreconditionFailed", "412"])
def test_get_conditional_precondition_failed(code: str) -> None:
    fake = _FakeS3()
    fake.get_response = _client_error(code)
    with pytest.raises(PreconditionFailedError) as excinfo:
        _store(fake).get_conditional("k", '"old"')
    assert excinfo.value.etag == '"old"'


def test_get_not_found() -> None:
    fake = _FakeS3()
    fake.get_response = _client_error("NoSuchKey")
    with pytest.raises(ObjectNotFoundError):
        _store(fake).get_conditional("k", '"abc"')


def test_client_kwargs_maps_options() -> None:
    kwargs = _client_kwargs(
        {
            "access_key_id": "AKIA",
            "secret_access_key": "secret",
            "region": "us-east-1",
            "endpoint": "http://localhost:9000",
            "allow_http": "true",
            "virtual_hosted_style_request": "false",
            "timeout": "7",
        }
    )
    assert kwargs["aws_access_key_id"] == "AKIA"
    assert kwargs["aws_secret_access_key"] == "secret"
    assert kwargs["region_name"] == "us-east-1"
    assert kwargs["endpoint_url"] == "http://localhost:9000"
    config = kwargs["config"]
    assert config.s3 == {"addressing_style": "path"}
    assert config.read_timeout == 7.0


def test_plain_http_endpoint_requires_allow_http() -> None:
    with pytest.raises(InvalidConfigurationError):
        _client_kwargs({"endpoint": "http://localhost:9000"})
