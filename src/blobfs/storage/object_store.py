"""blobfs object storage interface definition.

Provides the ObjectStore interface that all storage backends must implement.
The interface is read-only: blobfs never mutates the backing store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from blobfs.storage.models import ObjectDownload, ObjectProperties


class ObjectStore(ABC):
    """Abstract base class for flat, key-addressed object storage backends.

    Implementations:
    - FilesystemObjectStore: Local filesystem (dev/test)
    - S3ObjectStore: S3-compatible storage via boto3 (production)
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability.

        Returns:
            Backend name string (e.g., "filesystem", "s3").
        """
        ...

    @abstractmethod
    def key_exists(self, key: str) -> bool:
        """Check whether an object exists.

        Args:
            key: Flat storage key.

        Returns:
            True if an object is stored under the key.

        Raises:
            StorageBackendError: If the backend cannot answer.
        """
        ...

    @abstractmethod
    def get_properties(self, key: str) -> ObjectProperties:
        """Fetch object metadata without retrieving content.

        Args:
            key: Flat storage key.

        Returns:
            ObjectProperties for the object.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            StorageBackendError: If the backend cannot complete the operation.
        """
        ...

    @abstractmethod
    def download_range(
        self,
        key: str,
        offset: int = 0,
        size: int | None = None,
    ) -> ObjectDownload:
        """Open a download of bytes [offset, offset + size) of an object.

        Args:
            key: Flat storage key.
            offset: First byte to return.
            size: Number of bytes to return. None reads to the end.

        Returns:
            ObjectDownload whose body yields the requested bytes.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            InvalidRangeError: If the range starts past the end of the object.
            StorageBackendError: If the backend cannot complete the read.
        """
        ...
