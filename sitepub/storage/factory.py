"""Factory for storage and CDN collaborators based on configuration."""

from pathlib import Path
from typing import Optional

from sitepub.config.schema import CdnBackend, CdnConfig, StorageBackend, StorageTarget
from sitepub.errors import ConfigError
from sitepub.storage.base import CdnService, StorageService


def create_storage(target: StorageTarget) -> StorageService:
    """Create the storage service for *target*.

    Args:
        target: Validated storage target configuration.

    Raises:
        ConfigError: If the backend is unsupported.
    """
    if target.backend == StorageBackend.LOCAL:
        return _create_local_storage(target)
    if target.backend == StorageBackend.S3:
        return _create_s3_storage(target)

    raise ConfigError(f"Unsupported storage backend: {target.backend!r}. Supported: local, s3")


def create_cdn(cdn: CdnConfig) -> Optional[CdnService]:
    """Create the CDN service, or None when no CDN backend is configured."""
    if cdn.backend == CdnBackend.NONE:
        return None
    if cdn.backend == CdnBackend.CLOUDFRONT:
        return _create_cloudfront(cdn)

    raise ConfigError(f"Unsupported CDN backend: {cdn.backend!r}. Supported: none, cloudfront")


def _create_local_storage(target: StorageTarget) -> StorageService:
    from sitepub.storage.local import LocalDirectoryStorage

    return LocalDirectoryStorage(Path(target.local_path))


def _create_s3_storage(target: StorageTarget) -> StorageService:
    from sitepub.storage.s3 import S3Storage

    return S3Storage(target.bucket, region=target.region, endpoint_url=target.endpoint_url)


def _create_cloudfront(cdn: CdnConfig) -> CdnService:
    from sitepub.storage.cloudfront import CloudFrontCdn

    if not cdn.distribution_id and not cdn.alias:
        raise ConfigError("cdn.distribution_id or cdn.alias is required for the cloudfront backend")
    return CloudFrontCdn(distribution_id=cdn.distribution_id, alias=cdn.alias)
