"""blobfs API error handling.

Maps every failure onto the error envelope built by make_error_response:

- ObjectNotFoundError (including out-of-scope paths and traversal keys): 404
- InvalidRangeError: 416
- StorageBackendError: the backend's HTTP status (502 when it has none)
- UnsupportedOperationError: 501
- BlobfsHttpError: as raised by a route
- Starlette HTTP exceptions (router 404/405) and request validation errors
- anything else: 500, without internals
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException

from blobfs.api.error_model import (
    format_error_message,
    get_error_code_for_status,
    make_error_response,
)
from blobfs.storage.errors import (
    InvalidRangeError,
    ObjectNotFoundError,
    StorageBackendError,
)
from blobfs.vfs.errors import UnsupportedOperationError

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = format_error_message("ObjectNotFoundError", "Object not found")


class ErrorResponse(BaseModel):
    """Error envelope schema."""

    code: str
    message: str
    details: dict[str, Any] | None = None
    request_id: str | None = None


class BlobfsHttpError(Exception):
    """Error raised by a route with an explicit status and code.

    Attributes:
        status_code: HTTP status code.
        code: Machine-readable error code.
        message: Human-readable error message.
        details: Optional additional context.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


def backend_http_status(exc: StorageBackendError) -> int:
    """Pick the response status for a backend failure."""
    if exc.status_code is not None and 400 <= exc.status_code < 600:
        return exc.status_code
    return 502


async def blobfs_http_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, BlobfsHttpError)

    return make_error_response(
        request,
        code=exc.code,
        message=exc.message,
        http_status=exc.status_code,
        details=exc.details,
    )


async def object_not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report a missing object.

    The storage key is not echoed back, so clients cannot tell an
    out-of-scope path from a missing file.
    """
    assert isinstance(exc, ObjectNotFoundError)

    logger.info("Not found: %s", request.url.path)
    return make_error_response(
        request,
        code="NOT_FOUND",
        message=NOT_FOUND_MESSAGE,
        http_status=404,
    )


async def invalid_range_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, InvalidRangeError)

    logger.info("Invalid range for %s: %s", request.url.path, exc.message)
    return make_error_response(
        request,
        code="RANGE_NOT_SATISFIABLE",
        message=format_error_message("InvalidRangeError", exc.message),
        http_status=416,
        details={"offset": exc.offset, "size": exc.size},
    )


async def storage_backend_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Surface a backend failure with its diagnostic code."""
    assert isinstance(exc, StorageBackendError)

    backend_code = exc.code or "Unknown"
    logger.error("Storage backend failure on %s: %s", request.url.path, exc)
    return make_error_response(
        request,
        code="STORAGE_BACKEND_ERROR",
        message=format_error_message("StorageBackendError", backend_code),
        http_status=backend_http_status(exc),
        details={"backend_code": backend_code},
    )


async def unsupported_operation_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, UnsupportedOperationError)

    logger.warning("Unsupported operation %s requested: %s", exc.operation, request.url.path)
    return make_error_response(
        request,
        code="NOT_IMPLEMENTED",
        message=format_error_message("UnsupportedOperationError", exc.message),
        http_status=501,
        details={"operation": exc.operation},
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, HTTPException)

    return make_error_response(
        request,
        code=get_error_code_for_status(exc.status_code),
        message=str(exc.detail) if exc.detail else f"HTTP {exc.status_code}",
        http_status=exc.status_code,
    )


async def request_validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report invalid query parameters by field name and message only."""
    assert isinstance(exc, RequestValidationError)

    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]) or "request",
            "message": error.get("msg", "Validation error"),
        }
        for error in exc.errors()
    ]
    return make_error_response(
        request,
        code="REQUEST_VALIDATION_FAILED",
        message="Request validation failed",
        http_status=422,
        details={"errors": errors} if errors else None,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fail closed: 500 with a generic message, full traceback in the log."""
    logger.exception(
        "Unhandled %s on %s request_id=%s",
        type(exc).__name__,
        request.url.path,
        getattr(request.state, "request_id", None),
    )
    return make_error_response(
        request,
        code="INTERNAL_ERROR",
        message="An internal error occurred",
        http_status=500,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install all blobfs exception handlers on the application."""
    app.add_exception_handler(BlobfsHttpError, blobfs_http_error_handler)
    app.add_exception_handler(ObjectNotFoundError, object_not_found_handler)
    app.add_exception_handler(InvalidRangeError, invalid_range_handler)
    app.add_exception_handler(StorageBackendError, storage_backend_error_handler)
    app.add_exception_handler(UnsupportedOperationError, unsupported_operation_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
