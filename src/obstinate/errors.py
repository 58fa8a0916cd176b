"""Structured error types for Obstinate."""

from __future__ import annotations


class ObstinateError(Exception):
    """Base error for all Obstinate errors."""


class UnsupportedSchemeError(ObstinateError):
    """Raised when an identifier uses a URL scheme with no backend."""

    def __init__(self, scheme: str, identifier: str) -> None:
        self.scheme = scheme
        self.identifier = identifier
        super().__init__(f"Unsupported url scheme '{scheme}' in '{identifier}'")


class InvalidLocationError(ObstinateError):
    """Raised when a remote identifier is missing its bucket or key."""

    def __init__(self, identifier: str, detail: str) -> None:
        self.identifier = identifier
        self.detail = detail
        super().__init__(f"Invalid location '{identifier}': {detail}")


class MissingConfigurationError(ObstinateError):
    """Raised when a remote url is used without options for its provider."""

    def __init__(self, provider: str, scheme: str) -> None:
        self.provider = provider
        self.scheme = scheme
        super().__init__(
            f"Configuration '{provider}' must be provided in order to use '{scheme}' cloud urls"
        )


class UnknownConfigurationKeyError(ObstinateError):
    """Raised when a provider option key is not part of the provider's schema."""

    def __init__(self, provider: str, key: str) -> None:
        self.provider = provider
        self.key = key
        super().__init__(f"Unknown configuration key for '{provider}': {key}")


class InvalidConfigurationError(ObstinateError):
    """Raised when provider options are recognized but inconsistent."""

    def __init__(self, provider: str, detail: str) -> None:
        self.provider = provider
        self.detail = detail
        super().__init__(f"Invalid '{provider}' configuration: {detail}")


class ObjectNotFoundError(ObstinateError):
    """Raised by object stores when the requested key does not exist."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Object not found: {key}")


class PreconditionFailedError(ObstinateError):
    """Raised by object stores when a conditional read no longer matches the e-tag."""

    def __init__(self, key: str, etag: str | None) -> None:
        self.key = key
        self.etag = etag
        super().__init__(f"Object '{key}' no longer matches e-tag {etag}")


class RetryExhaustedError(ObstinateError):
    """Raised when the remote object kept changing for every download attempt."""

    def __init__(self, identifier: str, attempts: int) -> None:
        self.identifier = identifier
        self.attempts = attempts
        super().__init__(f"Failed to download '{identifier}' after {attempts} attempts")


class LocalIoError(ObstinateError):
    """Raised when a local cache operation fails."""

    def __init__(self, operation: str, path: str, detail: str) -> None:
        self.operation = operation
        self.path = path
        self.detail = detail
        super().__init__(f"Local I/O error during {operation} on '{path}': {detail}")


class RemoteTransportError(ObstinateError):
    """Raised when the object store fails for any reason other than not-found or precondition."""

    def __init__(self, operation: str, key: str, detail: str) -> None:
        self.operation = operation
        self.key = key
        self.detail = detail
        super().__init__(f"Object store error during {operation} of '{key}': {detail}")


class MappingError(ObstinateError):
    """Raised when a file cannot be memory mapped."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Cannot map '{path}': {detail}")
