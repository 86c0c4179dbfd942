"""Service context wiring.

All long-lived collaborators are built once at startup into a ServiceContext
and passed explicitly to the API layer; there are no module-level clients.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from blobfs.config import ServiceConfig
from blobfs.storage.factory import create_object_store
from blobfs.storage.object_store import ObjectStore
from blobfs.vfs.facade import FilesystemFacade
from blobfs.vfs.path_mapper import PathMapper

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceContext:
    """Collaborators shared by every request.

    Attributes:
        config: Service configuration.
        store: Object store backend.
        mapper: Path mapper for the configured root.
        facade: Filesystem query surface.
    """

    config: ServiceConfig
    store: ObjectStore
    mapper: PathMapper
    facade: FilesystemFacade


def build_context(config: ServiceConfig, store: ObjectStore | None = None) -> ServiceContext:
    """Build the service context from configuration.

    Args:
        config: Loaded service configuration.
        store: Optional store override (tests use an in-memory store).

    Returns:
        Fully wired ServiceContext.
    """
    if store is None:
        store = create_object_store(config)

    mapper = PathMapper(
        config.root_dir,
        config.pseudo_directories,
        path_style=config.path_style,
    )

    logger.info(
        "Serving root %s from %s backend (%d pseudo-directories)",
        mapper.root_dir,
        store.backend_name,
        len(mapper.pseudo_directories),
    )

    return ServiceContext(
        config=config,
        store=store,
        mapper=mapper,
        facade=FilesystemFacade(mapper, store),
    )
