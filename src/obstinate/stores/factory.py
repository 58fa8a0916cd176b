"""Build the object store for a cloud location."""

from __future__ import annotations

import logging

from obstinate.config import CloudOptions, get_cloud_options
from obstinate.errors import InvalidLocationError, MissingConfigurationError
from obstinate.location import CloudLocation, Scheme

from .base import ObjectStore

log = logging.getLogger(__name__)


def build_store(
    location: CloudLocation,
    options: CloudOptions | None = None,
    *,
    chunk_size: int | None = None,
) -> ObjectStore:
    """Create the read-only store for ``location``'s bucket.

    ``options`` defaults to the process-wide options installed with
    :func:`~obstinate.config.set_cloud_options`.

    Raises:
        MissingConfigurationError: No options are configured for the provider.
        InvalidLocationError: ``location`` is a local path.
    """
    if not location.is_remote:
        raise InvalidLocationError(location.url, "local paths have no object store")

    resolved = options if options is not None else get_cloud_options()
    provider = location.provider
    assert provider is not None
    provider_options = resolved.for_provider(provider) if resolved is not None else None
    if provider_options is None:
        raise MissingConfigurationError(provider, location.scheme_name)

    extra = {"chunk_size": chunk_size} if chunk_size else {}
    log.debug("building %s store for bucket %s", provider, location.bucket)

    if location.scheme is Scheme.S3:
        from .s3 import S3ObjectStore

        return S3ObjectStore(location.bucket, provider_options, **extra)
    if location.scheme is Scheme.GCS:
        from .gcs import GcsObjectStore

        return GcsObjectStore(location.bucket, provider_options, **extra)

    from .azure import AzureObjectStore

    return AzureObjectStore(location.bucket, provider_options)
