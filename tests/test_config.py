"""Tests for cloud options and engine configuration."""

from __future__ import annotations

import threading

import pytest

from obstinate.config import (
    CloudOptions,
    ObstinateConfig,
    canonical_key,
    get_cloud_options,
    set_cloud_options,
)
from obstinate.errors import (
    InvalidConfigurationError,
    UnknownConfigurationKeyError,
    UnsupportedSchemeError,
)


def test_with_aws_canonicalizes_aliases() -> None:
    options = CloudOptions().with_aws(
        [
            ("AWS_ACCESS_KEY_ID", "AKIA"),
            ("secret_access_key", "secret"),
            ("aws_endpoint_url", "http://localhost:9000"),
            ("allow_http", "true"),
        ]
    )
    assert options.for_provider("aws") == {
        "access_key_id": "AKIA",
        "secret_access_key": "secret",
        "endpoint": "http://localhost:9000",
        "allow_http": "true",
    }
    assert options.azure is None
    assert options.gcp is None


def test_unknown_key_is_rejected() -> None:
    with pytest.raises(UnknownConfigurationKeyError) as excinfo:
        CloudOptions().with_gcp({"bucket_acl": "private"})
    assert excinfo.value.provider == "gcp"
    assert excinfo.value.key == "bucket_acl"


def test_builders_return_new_instances() -> None:
    base = CloudOptions()
    with_azure = base.with_azure({"account_name": "acct"})
    assert base.azure is None
    assert with_azure.for_provider("azure") == {"account_name": "acct"}


@pytest.mark.parametrize(
    ("url", "provider"),
    [("s3://b/k", "aws"), ("abfs://c@a.dfs.core.windows.net/k", "azure"), ("gs://b/k", "gcp")],
)
def test_from_untyped_config_selects_provider_from_url(url: str, provider: str) -> None:
    options = CloudOptions.from_untyped_config(url, {"timeout": "5"})
    assert options.for_provider(provider) == {"timeout": "5"}


def test_from_untyped_config_accepts_bucket_only_urls() -> None:
    options = CloudOptions.from_untyped_config("s3://bucket", {"region": "us-east-1"})
    assert options.for_provider("aws") == {"region": "us-east-1"}


def test_from_untyped_config_for_local_is_empty() -> None:
    assert CloudOptions.from_untyped_config("file:///tmp/x", {"anything": "x"}) == CloudOptions()


def test_from_untyped_config_rejects_unknown_scheme() -> None:
    with pytest.raises(UnsupportedSchemeError):
        CloudOptions.from_untyped_config("ftp://host/x", {})


def test_from_untyped_config_validates_against_provider() -> None:
    with pytest.raises(UnknownConfigurationKeyError):
        CloudOptions.from_untyped_config("s3://b/k", {"account_name": "acct"})


def test_from_env_reads_conventional_variables() -> None:
    env = {
        "AWS_ACCESS_KEY_ID": "AKIA",
        "AWS_SECRET_ACCESS_KEY": "secret",
        "AWS_ENDPOINT_URL": "http://127.0.0.1:9000",
        "UNRELATED": "x",
    }
    options = CloudOptions.from_env("aws", env)
    assert options.for_provider("aws") == {
        "access_key_id": "AKIA",
        "secret_access_key": "secret",
        "endpoint": "http://127.0.0.1:9000",
    }


def test_from_env_without_variables_is_configured_but_empty() -> None:
    options = CloudOptions.from_env("gcp", {})
    assert options.gcp == ()
    assert options.for_provider("gcp") == {}


def test_merged_lets_later_values_win() -> None:
    env = CloudOptions().with_aws({"region": "us-east-1", "endpoint": "https://a"})
    explicit = CloudOptions().with_aws({"region": "eu-west-1"})
    merged = env.merged(explicit)
    assert merged.for_provider("aws") == {"region": "eu-west-1", "endpoint": "https://a"}


def test_canonical_key_is_case_insensitive() -> None:
    assert canonical_key("azure", "AZURE_STORAGE_ACCOUNT_KEY") == "account_key"


def test_process_options_first_writer_wins() -> None:
    first = CloudOptions().with_aws({"region": "us-east-1"})
    second = CloudOptions().with_aws({"region": "eu-west-1"})

    assert get_cloud_options() is None
    assert set_cloud_options(first) is True
    assert set_cloud_options(second) is False
    assert get_cloud_options() is first


def test_process_options_single_winner_under_contention() -> None:
    candidates = [CloudOptions().with_aws({"region": f"r{i}"}) for i in range(16)]
    results: list[bool] = []
    lock = threading.Lock()

    def _set(options: CloudOptions) -> None:
        won = set_cloud_options(options)
        with lock:
            results.append(won)

    threads = [threading.Thread(target=_set, args=(c,)) for c in candidates]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert get_cloud_options() in candidates


def test_engine_config_defaults(monkeypatch) -> None:
    monkeypatch.setenv("OBSTINATE_CACHE_DIR", "/tmp/obstinate-test-root")
    cfg = ObstinateConfig()
    assert cfg.cache_root == "/tmp/obstinate-test-root"
    assert cfg.max_attempts == 10
    assert cfg.retry_backoff_ms == 0


def test_engine_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("OBSTINATE_MAX_ATTEMPTS", "4")
    monkeypatch.setenv("OBSTINATE_RETRY_BACKOFF_MS", "50")
    cfg = ObstinateConfig.from_env()
    assert cfg.max_attempts == 4
    assert cfg.retry_backoff_ms == 50


def test_engine_config_rejects_non_integer_env(monkeypatch) -> None:
    monkeypatch.setenv("OBSTINATE_MAX_ATTEMPTS", "ten")
    with pytest.raises(InvalidConfigurationError) as excinfo:
        ObstinateConfig.from_env()
    assert "OBSTINATE_MAX_ATTEMPTS" in str(excinfo.value)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"max_attempts": -3},
        {"retry_backoff_ms": -1},
        {"retry_backoff_max_ms": -1},
        {"chunk_size": 0},
    ],
)
def test_engine_config_rejects_out_of_range_values(kwargs) -> None:
    with pytest.raises(InvalidConfigurationError):
        ObstinateConfig(cache_root="/tmp/unused", **kwargs)


def test_engine_config_from_env_validates_range(monkeypatch) -> None:
    monkeypatch.setenv("OBSTINATE_MAX_ATTEMPTS", "0")
    with pytest.raises(InvalidConfigurationError):
        ObstinateConfig.from_env()
