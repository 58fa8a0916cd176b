"""Tests for cache directory resolution."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from obstinate.cache_path import (
    cache_dir_for_location,
    default_cache_root,
    local_path_for_location,
)
from obstinate.errors import InvalidLocationError
from obstinate.location import parse_location


def test_layout_mirrors_the_url(tmp_path) -> None:
    loc = parse_location("s3://bucket-a/data.csv")
    assert local_path_for_location(loc, tmp_path) == tmp_path / "s3" / "bucket-a" / "data.csv"


def test_nested_keys_become_nested_directories(tmp_path) -> None:
    loc = parse_location("gcp://bkt/a/b/c.bin")
    path = local_path_for_location(loc, tmp_path)
    assert path == tmp_path / "gcp" / "bkt" / "a" / "b" / "c.bin"
    assert path.is_dir()


def test_creation_is_idempotent(tmp_path) -> None:
    loc = parse_location("az://c/k")
    first = local_path_for_location(loc, tmp_path)
    (first / "content_x").write_bytes(b"x")
    second = local_path_for_location(loc, tmp_path)
    assert first == second
    assert (second / "content_x").read_bytes() == b"x"


def test_resolution_does_not_create_without_request(tmp_path) -> None:
    loc = parse_location("s3://b/k")
    path = cache_dir_for_location(loc, tmp_path)
    assert not path.exists()


def test_relative_segments_are_rejected(tmp_path) -> None:
    loc = parse_location("s3://b/../../etc/passwd")
    with pytest.raises(InvalidLocationError):
        local_path_for_location(loc, tmp_path)


def test_local_locations_have_no_cache_dir(tmp_path) -> None:
    with pytest.raises(InvalidLocationError):
        cache_dir_for_location(parse_location("/tmp/x"), tmp_path)


def test_default_root_honours_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("OBSTINATE_CACHE_DIR", str(tmp_path / "root"))
    assert default_cache_root() == tmp_path / "root"


def test_default_root_is_user_cache(monkeypatch) -> None:
    monkeypatch.delenv("OBSTINATE_CACHE_DIR", raising=False)
    expected = Path(os.path.expanduser("~")) / ".cache" / "obstinate"
    assert default_cache_root() == expected
