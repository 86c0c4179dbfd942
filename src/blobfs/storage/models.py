"""blobfs object storage data models."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class ObjectProperties:
    """Metadata for a stored object.

    Attributes:
        key: Flat storage key of the object.
        content_length: Size of the object in bytes. None when the backend
            did not report a length.
        content_type: MIME type recorded for the object, if any.
        etag: Backend entity tag, if any.
        last_modified: Last modification timestamp, if any.
    """

    key: str
    content_length: int | None
    content_type: str | None = None
    etag: str | None = None
    last_modified: datetime | None = None

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert properties to a dictionary for JSON serialization."""
        return {
            "key": self.key,
            "content_length": self.content_length,
            "content_type": self.content_type,
            "etag": self.etag,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
        }


@dataclass(frozen=True)
class ObjectDownload:
    """A ranged download in progress.

    Attributes:
        key: Flat storage key of the object.
        content_type: MIME type to report to the client.
        offset: First byte of the range.
        content_length: Number of bytes in the range, if known.
        body: Iterator yielding the range's bytes in chunks.
        closer: Releases the underlying handle or connection, if any.
    """

    key: str
    content_type: str
    offset: int
    content_length: int | None
    body: Iterator[bytes]
    closer: Callable[[], None] | None = None

    def read_all(self) -> bytes:
        """Drain the body iterator into a single bytes object."""
        try:
            return b"".join(self.body)
        finally:
            self.close()

    def close(self) -> None:
        """Release the download's resources. Safe to call more than once."""
        if self.closer is not None:
            self.closer()
