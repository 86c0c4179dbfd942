"""blobfs object storage error types.

Provides typed exceptions for storage operations. Backends translate their
native failures into these types so callers never handle SDK exceptions.
"""

from __future__ import annotations


class ObjectStorageError(Exception):
    """Base exception for object storage operations.

    Attributes:
        message: Human-readable error message.
        key: Object key associated with the operation (if applicable).
    """

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key

    def __str__(self) -> str:
        if self.key:
            return f"{self.message} key={self.key}"
        return self.message


class ObjectNotFoundError(ObjectStorageError):
    """Raised when an object does not exist in storage."""

    def __init__(self, message: str = "Object not found", *, key: str | None = None) -> None:
        super().__init__(message, key=key)


class PathTraversalError(ObjectNotFoundError):
    """Raised when an object key tries to escape the storage sandbox.

    Subclasses ObjectNotFoundError: a key that escapes the store is reported
    to clients exactly like a key that does not exist.
    """

    def __init__(
        self,
        message: str = "Invalid key: path traversal detected",
        *,
        key: str | None = None,
    ) -> None:
        super().__init__(message, key=key)


class InvalidRangeError(ObjectStorageError):
    """Raised when a requested byte range cannot be satisfied.

    Attributes:
        offset: Requested start offset.
        size: Requested byte count (None means "to the end").
    """

    def __init__(
        self,
        message: str = "Requested range not satisfiable",
        *,
        key: str | None = None,
        offset: int | None = None,
        size: int | None = None,
    ) -> None:
        super().__init__(message, key=key)
        self.offset = offset
        self.size = size


class StorageBackendError(ObjectStorageError):
    """Raised when the storage backend cannot complete an operation.

    Covers transport, authentication, throttling and I/O failures, as opposed
    to logical errors like a missing object.

    Attributes:
        code: Backend diagnostic code (e.g. "AccessDenied", "SlowDown").
        status_code: HTTP status reported by the backend, if any.
        cause: Underlying exception.
    """

    def __init__(
        self,
        message: str = "Storage backend error",
        *,
        key: str | None = None,
        code: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, key=key)
        self.code = code
        self.status_code = status_code
        self.cause = cause
