"""blobfs API middleware package."""

from blobfs.api.middleware.request_id import RequestIdMiddleware

__all__ = ["RequestIdMiddleware"]
