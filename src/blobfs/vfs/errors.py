"""blobfs virtual filesystem error types."""

from __future__ import annotations


class UnsupportedOperationError(Exception):
    """Raised for filesystem operations a flat object store cannot serve.

    Attributes:
        operation: Name of the rejected operation.
        message: Human-readable error message.
    """

    def __init__(self, operation: str, message: str | None = None) -> None:
        self.operation = operation
        self.message = message or f"{operation} is not supported by this filesystem"
        super().__init__(self.message)
