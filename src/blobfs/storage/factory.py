"""Object store construction from service configuration."""

from __future__ import annotations

import logging

from blobfs.config import ServiceConfig, StorageBackend
from blobfs.storage.filesystem_store import FilesystemObjectStore
from blobfs.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


def create_object_store(config: ServiceConfig) -> ObjectStore:
    """Build the object store selected by the configuration.

    Args:
        config: Loaded service configuration.

    Returns:
        An ObjectStore for the configured backend.
    """
    if config.backend == StorageBackend.S3:
        from blobfs.storage.s3_store import S3ObjectStore

        assert config.s3 is not None
        return S3ObjectStore(
            config.s3.bucket,
            endpoint_url=config.s3.endpoint_url,
            region=config.s3.region,
            access_key=config.s3.access_key_id,
            secret_key=config.s3.secret_access_key,
        )

    logger.info("Using filesystem object store")
    return FilesystemObjectStore(base_dir=config.base_dir)
