"""Configuration for Obstinate: provider options and engine tuning."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping

from obstinate.errors import InvalidConfigurationError, UnknownConfigurationKeyError
from obstinate.location import PROVIDERS, scheme_for

# Options understood by every provider's client.
_CLIENT_KEYS: dict[str, str] = {
    "allow_http": "allow_http",
    "timeout": "timeout",
    "connect_timeout": "connect_timeout",
    "max_retries": "max_retries",
}

_AWS_KEYS: dict[str, str] = {
    "access_key_id": "access_key_id",
    "aws_access_key_id": "access_key_id",
    "secret_access_key": "secret_access_key",
    "aws_secret_access_key": "secret_access_key",
    "session_token": "session_token",
    "token": "session_token",
    "aws_session_token": "session_token",
    "region": "region",
    "aws_region": "region",
    "aws_default_region": "region",
    "endpoint": "endpoint",
    "endpoint_url": "endpoint",
    "aws_endpoint": "endpoint",
    "aws_endpoint_url": "endpoint",
    "profile": "profile",
    "aws_profile": "profile",
    "virtual_hosted_style_request": "virtual_hosted_style_request",
    "aws_virtual_hosted_style_request": "virtual_hosted_style_request",
}

_AZURE_KEYS: dict[str, str] = {
    "account_name": "account_name",
    "azure_storage_account_name": "account_name",
    "account_key": "account_key",
    "access_key": "account_key",
    "azure_storage_account_key": "account_key",
    "azure_storage_access_key": "account_key",
    "connection_string": "connection_string",
    "azure_storage_connection_string": "connection_string",
    "sas_token": "sas_token",
    "azure_storage_sas_token": "sas_token",
    "endpoint": "endpoint",
    "azure_storage_endpoint": "endpoint",
    "use_emulator": "use_emulator",
    "azure_storage_use_emulator": "use_emulator",
}

_GCP_KEYS: dict[str, str] = {
    "service_account": "service_account",
    "service_account_path": "service_account",
    "google_service_account": "service_account",
    "google_application_credentials": "service_account",
    "service_account_key": "service_account_key",
    "google_service_account_key": "service_account_key",
    "project": "project",
    "google_cloud_project": "project",
    "endpoint": "endpoint",
    "google_storage_endpoint": "endpoint",
}

PROVIDER_KEYS: dict[str, dict[str, str]] = {
    "aws": {**_AWS_KEYS, **_CLIENT_KEYS},
    "azure": {**_AZURE_KEYS, **_CLIENT_KEYS},
    "gcp": {**_GCP_KEYS, **_CLIENT_KEYS},
}

_ENV_VARS: dict[str, dict[str, str]] = {
    "aws": {
        "AWS_ACCESS_KEY_ID": "access_key_id",
        "AWS_SECRET_ACCESS_KEY": "secret_access_key",
        "AWS_SESSION_TOKEN": "session_token",
        "AWS_DEFAULT_REGION": "region",
        "AWS_REGION": "region",
        "AWS_ENDPOINT_URL": "endpoint",
        "AWS_PROFILE": "profile",
        "AWS_ALLOW_HTTP": "allow_http",
    },
    "azure": {
        "AZURE_STORAGE_ACCOUNT_NAME": "account_name",
        "AZURE_STORAGE_ACCOUNT_KEY": "account_key",
        "AZURE_STORAGE_CONNECTION_STRING": "connection_string",
        "AZURE_STORAGE_SAS_TOKEN": "sas_token",
        "AZURE_STORAGE_ENDPOINT": "endpoint",
        "AZURE_STORAGE_USE_EMULATOR": "use_emulator",
        "AZURE_ALLOW_HTTP": "allow_http",
    },
    "gcp": {
        "GOOGLE_APPLICATION_CREDENTIALS": "service_account",
        "GOOGLE_SERVICE_ACCOUNT_KEY": "service_account_key",
        "GOOGLE_CLOUD_PROJECT": "project",
        "STORAGE_EMULATOR_HOST": "endpoint",
    },
}

Configs = tuple[tuple[str, str], ...]


def canonical_key(provider: str, key: str) -> str:
    """Map a user supplied option key to the provider's canonical key name."""
    table = PROVIDER_KEYS.get(provider)
    if table is None:
        raise InvalidConfigurationError(provider, "unknown provider")
    canonical = table.get(key.strip().lower())
    if canonical is None:
        raise UnknownConfigurationKeyError(provider, key)
    return canonical


def parse_untyped_config(
    provider: str, config: Mapping[str, object] | Iterable[tuple[str, object]]
) -> Configs:
    """Validate raw key/value pairs against the provider schema."""
    items = config.items() if isinstance(config, Mapping) else config
    return tuple((canonical_key(provider, str(k)), str(v)) for k, v in items)


def parse_bool(value: str | None, *, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class CloudOptions:
    """Options to connect to the supported cloud providers.

    Each provider holds ``None`` when unconfigured, or a tuple of
    ``(canonical_key, value)`` pairs. An empty tuple means "configured, use the
    SDK's default credential chain".
    """

    aws: Configs | None = None
    azure: Configs | None = None
    gcp: Configs | None = None

    def with_aws(
        self, configs: Mapping[str, object] | Iterable[tuple[str, object]]
    ) -> CloudOptions:
        return replace(self, aws=parse_untyped_config("aws", configs))

    def with_azure(
        self, configs: Mapping[str, object] | Iterable[tuple[str, object]]
    ) -> CloudOptions:
        return replace(self, azure=parse_untyped_config("azure", configs))

    def with_gcp(
        self, configs: Mapping[str, object] | Iterable[tuple[str, object]]
    ) -> CloudOptions:
        return replace(self, gcp=parse_untyped_config("gcp", configs))

    def for_provider(self, provider: str) -> dict[str, str] | None:
        """Return the provider's options as a dict (later keys win), or None."""
        configs = getattr(self, provider, None)
        if configs is None:
            return None
        return dict(configs)

    @classmethod
    def from_untyped_config(
        cls, url: str, config: Mapping[str, object] | Iterable[tuple[str, object]]
    ) -> CloudOptions:
        """Build options for the provider implied by ``url``'s scheme."""
        provider = PROVIDERS.get(scheme_for(url))
        if provider is None:
            return cls()
        return replace(cls(), **{provider: parse_untyped_config(provider, config)})

    @classmethod
    def from_env(cls, provider: str, env: Mapping[str, str] | None = None) -> CloudOptions:
        """Build options for ``provider`` from its conventional environment variables."""
        source = os.environ if env is None else env
        names = _ENV_VARS.get(provider)
        if names is None:
            raise InvalidConfigurationError(provider, "unknown provider")
        pairs = {canonical: source[var] for var, canonical in names.items() if source.get(var)}
        return replace(cls(), **{provider: tuple(pairs.items())})

    def merged(self, other: CloudOptions) -> CloudOptions:
        """Return options where ``other``'s pairs extend (and override) this instance's."""
        values: dict[str, Configs | None] = {}
        for provider in ("aws", "azure", "gcp"):
            mine = getattr(self, provider)
            theirs = getattr(other, provider)
            if mine is None or theirs is None:
                values[provider] = theirs if mine is None else mine
            else:
                values[provider] = mine + theirs
        return CloudOptions(**values)


def _default_cache_root() -> str:
    env = os.getenv("OBSTINATE_CACHE_DIR")
    if env:
        return os.path.expanduser(env)
    return os.path.join(os.path.expanduser("~"), ".cache", "obstinate")


@dataclass
class ObstinateConfig:
    """Tuning for the download/cache engine."""

    cache_root: str = field(default_factory=_default_cache_root)
    max_attempts: int = 10
    retry_backoff_ms: int = 0
    retry_backoff_max_ms: int = 1000
    chunk_size: int = 8 * 1024 * 1024

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise InvalidConfigurationError(
                "obstinate", f"max_attempts must be at least 1, got {self.max_attempts}"
            )
        if self.retry_backoff_ms < 0 or self.retry_backoff_max_ms < 0:
            raise InvalidConfigurationError("obstinate", "retry backoff must not be negative")
        if self.chunk_size < 1:
            raise InvalidConfigurationError(
                "obstinate", f"chunk_size must be positive, got {self.chunk_size}"
            )

    @classmethod
    def from_env(cls) -> ObstinateConfig:
        kwargs: dict[str, int] = {}
        for var, name in (
            ("OBSTINATE_MAX_ATTEMPTS", "max_attempts"),
            ("OBSTINATE_RETRY_BACKOFF_MS", "retry_backoff_ms"),
        ):
            raw = os.getenv(var)
            if not raw:
                continue
            try:
                kwargs[name] = int(raw)
            except ValueError as e:
                raise InvalidConfigurationError(
                    "obstinate", f"{var} must be an integer, got '{raw}'"
                ) from e
        return cls(**kwargs)


_cloud_options: CloudOptions | None = None
_cloud_options_lock = threading.Lock()


def set_cloud_options(options: CloudOptions) -> bool:
    """Install process-wide cloud options once.

    The first call wins and returns True; later calls are ignored and return
    False. Must happen before the first fetch that needs remote access.
    """
    global _cloud_options
    with _cloud_options_lock:
        if _cloud_options is not None:
            return False
        _cloud_options = options
        return True


def get_cloud_options() -> CloudOptions | None:
    return _cloud_options


def _reset_cloud_options() -> None:
    # Test helper: the process-wide slot is otherwise write-once.
    global _cloud_options
    with _cloud_options_lock:
        _cloud_options = None
