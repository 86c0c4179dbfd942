"""Health check endpoint for the blobfs API."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from blobfs import __version__

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    time: str
    version: str
    backend: str


@router.get("/health", response_model=HealthResponse)
def get_health(request: Request) -> HealthResponse:
    """Health check endpoint.

    Does not contact the object store; it only reports which backend is
    configured.

    Args:
        request: The incoming request (used for app state access).

    Returns:
        HealthResponse with status "ok", current time, version and backend.
    """
    context = request.app.state.context
    return HealthResponse(
        status="ok",
        time=datetime.now(UTC).isoformat(),
        version=__version__,
        backend=context.store.backend_name,
    )
