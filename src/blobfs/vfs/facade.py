"""Read-only filesystem queries over a flat object store.

FilesystemFacade answers filesystem questions for client paths. Directory
questions are decided by the PathMapper alone and never touch storage; leaf
questions map the path to a storage key and issue exactly one store query.

Store calls are blocking, so they run in a worker thread via
asyncio.to_thread. If the awaiting request is cancelled, the query result is
abandoned.

Out-of-scope paths (outside the root) behave like missing objects: predicates
answer False and read/size raise ObjectNotFoundError.
"""

from __future__ import annotations

import asyncio
import logging

from blobfs.storage.errors import InvalidRangeError, ObjectNotFoundError
from blobfs.storage.models import ObjectDownload
from blobfs.storage.object_store import ObjectStore
from blobfs.vfs.errors import UnsupportedOperationError
from blobfs.vfs.path_mapper import PathMapper

logger = logging.getLogger(__name__)


class FilesystemFacade:
    """Filesystem-shaped query surface over an ObjectStore."""

    def __init__(self, mapper: PathMapper, store: ObjectStore) -> None:
        self._mapper = mapper
        self._store = store

    @property
    def mapper(self) -> PathMapper:
        return self._mapper

    @property
    def store(self) -> ObjectStore:
        return self._store

    def _require_key(self, path: str) -> str:
        """Map a path to a key that can be looked up in storage.

        Raises:
            ObjectNotFoundError: If the path is outside the root or is the
                root itself (which has no backing object).
        """
        key = self._mapper.convert(path)
        if not key:
            logger.debug("No storage key for path %s", path)
            raise ObjectNotFoundError()
        return key

    async def _key_exists(self, key: str) -> bool:
        try:
            return await asyncio.to_thread(self._store.key_exists, key)
        except ObjectNotFoundError:
            return False

    async def read(
        self,
        path: str,
        offset: int = 0,
        size: int | None = None,
    ) -> ObjectDownload:
        """Read bytes [offset, offset + size) of the file at path.

        Args:
            path: Client path.
            offset: First byte to read.
            size: Number of bytes to read. None reads to the end.

        Returns:
            ObjectDownload streaming the requested bytes.

        Raises:
            ObjectNotFoundError: If the path has no backing object.
            InvalidRangeError: If the range is invalid for the object.
            StorageBackendError: If the store fails.
        """
        key = self._require_key(path)
        if offset < 0 or (size is not None and size <= 0):
            raise InvalidRangeError(
                message=f"Invalid range offset={offset} size={size}",
                offset=offset,
                size=size,
            )
        return await asyncio.to_thread(self._store.download_range, key, offset, size)

    async def exists(self, path: str) -> bool:
        """Return True if path is a directory or has a backing object."""
        if self._mapper.is_dir(path):
            return True
        key = self._mapper.convert(path)
        if not key:
            return False
        return await self._key_exists(key)

    async def size(self, path: str) -> int | None:
        """Return the size in bytes of the file at path.

        Returns:
            Byte count, or None when the store reports no content length.

        Raises:
            ObjectNotFoundError: If the path has no backing object.
            StorageBackendError: If the store fails.
        """
        key = self._require_key(path)
        properties = await asyncio.to_thread(self._store.get_properties, key)
        return properties.content_length

    async def is_dir(self, path: str) -> bool:
        """Return True if path is the root or a pseudo-directory."""
        return self._mapper.is_dir(path)

    async def is_regular_file(self, path: str) -> bool:
        """Return True if path has a backing object and is not a directory."""
        if self._mapper.is_dir(path):
            return False
        key = self._mapper.convert(path)
        if not key:
            return False
        return await self._key_exists(key)

    async def is_symlink(self, path: str) -> bool:
        """Return False: object stores have no links."""
        return False

    async def is_empty(self, path: str) -> bool:
        """Return True if the file at path has no content.

        Directories are never empty.

        Raises:
            ObjectNotFoundError: If the path has no backing object.
            StorageBackendError: If the store fails.
        """
        if self._mapper.is_dir(path):
            return False
        key = self._require_key(path)
        properties = await asyncio.to_thread(self._store.get_properties, key)
        return not properties.content_length

    async def get_children(self, path: str) -> list[str]:
        """Directory enumeration is not available over a flat store.

        Raises:
            UnsupportedOperationError: Always.
        """
        raise UnsupportedOperationError(
            "getChildren",
            "Directory listing is not supported over flat object storage",
        )
