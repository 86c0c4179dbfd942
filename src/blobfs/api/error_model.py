"""Error envelope construction for the blobfs API.

Every failure is reported as:
- code: machine-readable error code (e.g., "NOT_FOUND")
- message: "<Kind>: <detail>", the failure kind plus its diagnostic
- details: optional context (never storage keys or credentials)
- request_id: correlation ID, also returned in the X-Request-Id header
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

REQUEST_ID_HEADER = "X-Request-Id"
MAX_REQUEST_ID_LENGTH = 128


def resolve_request_id(header_value: str | None) -> str:
    """Reuse a caller-supplied request ID when usable, else generate one.

    Blank, oversized or non-printable values are replaced so they cannot
    pollute log lines.
    """
    if header_value:
        candidate = header_value.strip()
        if candidate and len(candidate) <= MAX_REQUEST_ID_LENGTH and candidate.isprintable():
            return candidate
    return str(uuid.uuid4())


def _get_request_id(request: Request) -> str:
    request_id: str | None = getattr(request.state, "request_id", None)
    if request_id is not None:
        return str(request_id)
    return resolve_request_id(request.headers.get(REQUEST_ID_HEADER))


def format_error_message(kind: str, detail: str) -> str:
    """Join a failure kind and its diagnostic into a readable message."""
    return f"{kind}: {detail}"


def make_error_response(
    request: Request,
    *,
    code: str,
    message: str,
    http_status: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build an error JSON response.

    Args:
        request: The incoming request (for request_id extraction).
        code: Machine-readable error code.
        message: Human-readable error message.
        http_status: HTTP status code.
        details: Optional additional context.

    Returns:
        JSONResponse with the error envelope and X-Request-Id header.
    """
    request_id = _get_request_id(request)

    content: dict[str, Any] = {
        "code": code,
        "message": message,
        "details": details,
        "request_id": request_id,
    }
    return JSONResponse(
        status_code=http_status,
        content=content,
        headers={REQUEST_ID_HEADER: request_id},
    )


HTTP_STATUS_TO_CODE: dict[int, str] = {
    400: "BAD_REQUEST",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    416: "RANGE_NOT_SATISFIABLE",
    422: "UNPROCESSABLE_ENTITY",
    500: "INTERNAL_ERROR",
    501: "NOT_IMPLEMENTED",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
    504: "GATEWAY_TIMEOUT",
}


def get_error_code_for_status(status_code: int) -> str:
    """Get the error code for an HTTP status, "ERROR" when unmapped."""
    return HTTP_STATUS_TO_CODE.get(status_code, "ERROR")
