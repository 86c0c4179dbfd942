"""blobfs object storage abstraction.

Provides read-only access to a flat, key-addressed object store.

Backends:
- FilesystemObjectStore: Local filesystem (dev/test)
- S3ObjectStore: S3-compatible storage via boto3 (production)

Environment Variables:
    BLOBFS_OBJECT_STORE_BACKEND: "filesystem" or "s3" (default: "filesystem")
    BLOBFS_OBJECT_STORE_BASE_DIR: Base directory for filesystem backend
    BLOBFS_S3_*: Bucket, endpoint, region and credentials for the s3 backend
"""

from blobfs.storage.errors import (
    InvalidRangeError,
    ObjectNotFoundError,
    ObjectStorageError,
    PathTraversalError,
    StorageBackendError,
)
from blobfs.storage.factory import create_object_store
from blobfs.storage.models import ObjectDownload, ObjectProperties
from blobfs.storage.object_store import ObjectStore

__all__ = [
    "ObjectStore",
    "ObjectDownload",
    "ObjectProperties",
    "ObjectStorageError",
    "ObjectNotFoundError",
    "PathTraversalError",
    "InvalidRangeError",
    "StorageBackendError",
    "create_object_store",
]
