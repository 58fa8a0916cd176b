"""Obstinate: zero-copy memory maps of local files and cached cloud objects."""

__version__ = "0.1.0"

from obstinate.cache import LocalFile, download_file, download_file_async
from obstinate.config import CloudOptions, ObstinateConfig, get_cloud_options, set_cloud_options
from obstinate.errors import (
    InvalidConfigurationError,
    InvalidLocationError,
    LocalIoError,
    MappingError,
    MissingConfigurationError,
    ObjectNotFoundError,
    ObstinateError,
    PreconditionFailedError,
    RemoteTransportError,
    RetryExhaustedError,
    UnknownConfigurationKeyError,
    UnsupportedSchemeError,
)
from obstinate.location import CloudLocation, Scheme, parse_location
from obstinate.mmap import Mmap, open_url, open_url_async

__all__ = [
    "__version__",
    "Mmap",
    "open_url",
    "open_url_async",
    "download_file",
    "download_file_async",
    "LocalFile",
    "CloudLocation",
    "Scheme",
    "parse_location",
    "CloudOptions",
    "ObstinateConfig",
    "set_cloud_options",
    "get_cloud_options",
    "ObstinateError",
    "UnsupportedSchemeError",
    "InvalidLocationError",
    "MissingConfigurationError",
    "UnknownConfigurationKeyError",
    "InvalidConfigurationError",
    "ObjectNotFoundError",
    "PreconditionFailedError",
    "RetryExhaustedError",
    "LocalIoError",
    "RemoteTransportError",
    "MappingError",
]
