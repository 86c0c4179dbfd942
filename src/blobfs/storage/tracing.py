"""blobfs object storage OpenTelemetry tracing integration.

Provides a tracing decorator for storage operations.

Security:
    - Never export absolute filesystem paths in span attributes
    - Object keys are exported as SHA256 digests only
    - No secrets or credentials in any span attribute
"""

from __future__ import annotations

import functools
import hashlib
import logging
from collections.abc import Callable
from typing import Any, TypeVar, cast

from blobfs.observability.tracing import is_tracing_enabled
from blobfs.storage.models import ObjectDownload, ObjectProperties

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def traced_storage_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace storage operations with OpenTelemetry.

    Args:
        operation: Operation name (e.g., "key_exists", "download_range").

    Returns:
        Decorated function that emits OTel spans when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, key: str, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return func(self, key, *args, **kwargs)

            from opentelemetry import trace

            tracer = trace.get_tracer("blobfs.object_store")

            with tracer.start_as_current_span(f"blobfs.object_store.{operation}") as span:
                key_sha256 = hashlib.sha256(key.encode("utf-8")).hexdigest()
                span.set_attribute("blobfs.object_key_sha256", key_sha256)
                span.set_attribute("storage.backend", getattr(self, "backend_name", "unknown"))

                try:
                    result = func(self, key, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

                _add_result_attributes(span, result)
                return result

        return cast(F, wrapper)

    return decorator


def _add_result_attributes(span: Any, result: Any) -> None:
    """Add result-based attributes to span safely."""
    if isinstance(result, bool):
        span.set_attribute("blobfs.object_exists", result)
    elif isinstance(result, ObjectProperties):
        if result.content_length is not None:
            span.set_attribute("blobfs.object_size_bytes", result.content_length)
        if result.content_type:
            span.set_attribute("blobfs.object_content_type", result.content_type)
    elif isinstance(result, ObjectDownload):
        span.set_attribute("blobfs.range_offset", result.offset)
        if result.content_length is not None:
            span.set_attribute("blobfs.range_length", result.content_length)
