"""blobfs filesystem object storage backend.

Serves flat object keys from files beneath a base directory, for development
and testing. A key "sub/file.txt" lives at {base_dir}/sub/file.txt; a
flattened key such as "bncdata.sci" lives directly in {base_dir}.

Environment Variables:
    BLOBFS_OBJECT_STORE_BASE_DIR: Base directory for storage
        (default: tempfile.gettempdir() / blobfs_objects)
"""

from __future__ import annotations

import logging
import mimetypes
import os
import tempfile
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO

from blobfs.storage.errors import (
    InvalidRangeError,
    ObjectNotFoundError,
    PathTraversalError,
    StorageBackendError,
)
from blobfs.storage.models import DEFAULT_CONTENT_TYPE, ObjectDownload, ObjectProperties
from blobfs.storage.object_store import ObjectStore
from blobfs.storage.tracing import traced_storage_operation

logger = logging.getLogger(__name__)

BLOBFS_OBJECT_STORE_BASE_DIR_ENV = "BLOBFS_OBJECT_STORE_BASE_DIR"

CHUNK_SIZE = 64 * 1024


def _is_path_traversal(key: str) -> bool:
    """Check if a key contains path traversal sequences.

    Detects:
    - Empty keys
    - ".." segments
    - Absolute paths (starting with / or ~, or a drive letter like C:)
    - Backslashes (Windows path separators)
    - Null bytes
    """
    if not key:
        return True

    if "\x00" in key or "\\" in key:
        return True

    if key.startswith("/") or key.startswith("~"):
        return True

    if len(key) >= 2 and key[1] == ":":
        return True

    return any(segment == ".." for segment in key.split("/"))


def _iter_file(handle: BinaryIO, remaining: int | None) -> Iterator[bytes]:
    """Yield chunks from an open file, closing it when exhausted."""
    try:
        while remaining is None or remaining > 0:
            to_read = CHUNK_SIZE if remaining is None else min(CHUNK_SIZE, remaining)
            chunk = handle.read(to_read)
            if not chunk:
                break
            if remaining is not None:
                remaining -= len(chunk)
            yield chunk
    finally:
        handle.close()


class FilesystemObjectStore(ObjectStore):
    """Filesystem-based object storage implementation.

    Objects are plain files; metadata is derived from the file itself
    (size and mtime from stat, content type guessed from the extension).
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        """Initialize filesystem storage.

        Args:
            base_dir: Base directory for storage. If None, uses
                BLOBFS_OBJECT_STORE_BASE_DIR env var or OS temp directory.
        """
        if base_dir is None:
            base_dir = os.environ.get(BLOBFS_OBJECT_STORE_BASE_DIR_ENV)

        if base_dir is None:
            base_dir = Path(tempfile.gettempdir()) / "blobfs_objects"
        else:
            base_dir = Path(base_dir)

        self._base_dir = base_dir.resolve()
        logger.debug("FilesystemObjectStore initialized with base_dir=%s", self._base_dir)

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "filesystem"

    @property
    def base_dir(self) -> Path:
        """Return the base directory path."""
        return self._base_dir

    def _get_object_path(self, key: str) -> Path:
        """Map a key to its file, rejecting keys that escape base_dir."""
        if _is_path_traversal(key):
            raise PathTraversalError(
                message="Invalid key: path traversal or unsafe characters detected",
                key=key,
            )

        resolved = (self._base_dir / key).resolve()
        try:
            resolved.relative_to(self._base_dir)
        except ValueError as e:
            raise PathTraversalError(
                message="Path resolves outside storage base directory",
                key=key,
            ) from e
        return resolved

    def _stat(self, key: str) -> os.stat_result:
        path = self._get_object_path(key)
        try:
            stat = path.stat()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(key=key) from e
        except OSError as e:
            raise StorageBackendError(
                message=f"Failed to stat object: {e}",
                key=key,
                code=type(e).__name__,
                cause=e,
            ) from e

        if not path.is_file():
            raise ObjectNotFoundError(key=key)
        return stat

    @traced_storage_operation("key_exists")
    def key_exists(self, key: str) -> bool:
        """Check whether a file is stored under the key."""
        try:
            return self._get_object_path(key).is_file()
        except OSError as e:
            raise StorageBackendError(
                message=f"Failed to check object: {e}",
                key=key,
                code=type(e).__name__,
                cause=e,
            ) from e

    @traced_storage_operation("get_properties")
    def get_properties(self, key: str) -> ObjectProperties:
        """Get object metadata from the file's stat result."""
        stat = self._stat(key)
        content_type, _ = mimetypes.guess_type(key)

        return ObjectProperties(
            key=key,
            content_length=stat.st_size,
            content_type=content_type,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
        )

    @traced_storage_operation("download_range")
    def download_range(
        self,
        key: str,
        offset: int = 0,
        size: int | None = None,
    ) -> ObjectDownload:
        """Open a ranged read of the file stored under the key."""
        stat = self._stat(key)
        length = stat.st_size

        if offset < 0 or (offset > 0 and offset >= length):
            raise InvalidRangeError(
                message=f"Range start {offset} is outside object of length {length}",
                key=key,
                offset=offset,
                size=size,
            )
        if size is not None and size <= 0:
            raise InvalidRangeError(
                message=f"Range size {size} is not positive",
                key=key,
                offset=offset,
                size=size,
            )

        path = self._get_object_path(key)
        try:
            handle = path.open("rb")
        except FileNotFoundError as e:
            raise ObjectNotFoundError(key=key) from e
        except OSError as e:
            raise StorageBackendError(
                message=f"Failed to open object: {e}",
                key=key,
                code=type(e).__name__,
                cause=e,
            ) from e
        handle.seek(offset)

        available = length - offset
        range_length = available if size is None else min(size, available)
        content_type, _ = mimetypes.guess_type(key)

        logger.debug(
            "Opened range: key=%s offset=%d length=%d",
            key,
            offset,
            range_length,
        )

        return ObjectDownload(
            key=key,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            offset=offset,
            content_length=range_length,
            body=_iter_file(handle, range_length),
            closer=handle.close,
        )
