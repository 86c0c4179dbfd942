"""blobfs FastAPI application factory.

This module provides the create_app() factory for bootstrapping the blobfs API.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from blobfs import __version__
from blobfs.api.errors import register_exception_handlers
from blobfs.api.middleware.request_id import RequestIdMiddleware
from blobfs.api.routes.filesystem import router as filesystem_router
from blobfs.api.routes.health import router as health_router
from blobfs.config import load_service_config
from blobfs.context import ServiceContext, build_context
from blobfs.observability.tracing import configure_tracing, instrument_fastapi

logger = logging.getLogger(__name__)


def create_app(context: ServiceContext | None = None) -> FastAPI:
    """Create and configure the blobfs FastAPI application.

    This factory:
    - Builds the service context from the environment when none is given
    - Registers the request ID middleware
    - Registers the exception handlers that produce the error envelope
    - Mounts the health and filesystem routers

    Args:
        context: Pre-built service context (tests inject one with an
            in-memory store). If None, loads config from the environment.

    Returns:
        Configured FastAPI application instance.

    Raises:
        ConfigError: If context is None and the environment config is invalid.
    """
    if context is None:
        context = build_context(load_service_config())

    app = FastAPI(
        title="blobfs",
        description="Filesystem-shaped HTTP interface over flat object storage",
        version=__version__,
    )
    app.state.context = context

    configure_tracing()

    app.add_middleware(RequestIdMiddleware)

    instrument_fastapi(app)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(filesystem_router)

    logger.debug("blobfs app created for root %s", context.mapper.root_dir)
    return app
