"""blobfs observability module.

Provides the OpenTelemetry tracing baseline and logging setup.
"""

from blobfs.observability.logging import configure_logging
from blobfs.observability.tracing import configure_tracing, is_tracing_enabled

__all__ = ["configure_logging", "configure_tracing", "is_tracing_enabled"]
