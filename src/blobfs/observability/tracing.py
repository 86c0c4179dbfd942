"""OpenTelemetry tracing setup for blobfs.

Tracing is off by default. When enabled, request spans come from the FastAPI
instrumentation and storage spans from traced_storage_operation. Object keys
are only ever exported as digests.

Environment Variables:
    BLOBFS_OTEL_ENABLED: "1" to enable tracing
    BLOBFS_REQUIRE_OTEL: "1" to fail startup if tracing cannot be set up
    BLOBFS_OTEL_SERVICE_NAME: service.name resource attribute (default: "blobfs")
    BLOBFS_OTEL_EXPORTER: "otlp" or "console" (default: "otlp")
    BLOBFS_OTEL_EXPORTER_OTLP_ENDPOINT: OTLP/HTTP endpoint (default: SDK default)
    BLOBFS_OTEL_TEST_CAPTURE: "1" to keep spans in memory for tests
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan, SpanProcessor, TracerProvider

logger = logging.getLogger(__name__)

ENV_OTEL_ENABLED: Final[str] = "BLOBFS_OTEL_ENABLED"
ENV_REQUIRE_OTEL: Final[str] = "BLOBFS_REQUIRE_OTEL"
ENV_OTEL_SERVICE_NAME: Final[str] = "BLOBFS_OTEL_SERVICE_NAME"
ENV_OTEL_EXPORTER: Final[str] = "BLOBFS_OTEL_EXPORTER"
ENV_OTEL_ENDPOINT: Final[str] = "BLOBFS_OTEL_EXPORTER_OTLP_ENDPOINT"
ENV_OTEL_TEST_CAPTURE: Final[str] = "BLOBFS_OTEL_TEST_CAPTURE"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})

# The global TracerProvider can only be installed once per process.
_tracer_provider: TracerProvider | None = None
_test_exporter: Any = None


class TracingConfigError(Exception):
    """Raised when tracing is required but cannot be configured."""


@dataclass(frozen=True)
class TracingConfig:
    """Tracing settings read from the environment."""

    enabled: bool = False
    required: bool = False
    service_name: str = "blobfs"
    exporter: str = "otlp"
    otlp_endpoint: str | None = None
    test_capture: bool = False


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUE_VALUES


def load_tracing_config() -> TracingConfig:
    """Read tracing settings from BLOBFS_OTEL_* variables."""
    return TracingConfig(
        enabled=_env_flag(ENV_OTEL_ENABLED),
        required=_env_flag(ENV_REQUIRE_OTEL),
        service_name=os.environ.get(ENV_OTEL_SERVICE_NAME, "").strip() or "blobfs",
        exporter=os.environ.get(ENV_OTEL_EXPORTER, "").strip().lower() or "otlp",
        otlp_endpoint=os.environ.get(ENV_OTEL_ENDPOINT, "").strip() or None,
        test_capture=_env_flag(ENV_OTEL_TEST_CAPTURE),
    )


def is_tracing_enabled() -> bool:
    """Check if OpenTelemetry tracing is enabled."""
    return _env_flag(ENV_OTEL_ENABLED)


def _build_span_processor(config: TracingConfig) -> SpanProcessor:
    """Create the span processor for the configured exporter."""
    global _test_exporter

    from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor

    if config.test_capture:
        from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
            InMemorySpanExporter,
        )

        _test_exporter = InMemorySpanExporter()
        return SimpleSpanProcessor(_test_exporter)

    if config.exporter == "console":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        return SimpleSpanProcessor(ConsoleSpanExporter())

    if config.exporter != "otlp":
        raise ValueError(f"Unknown exporter '{config.exporter}' (expected otlp or console)")

    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

    if config.otlp_endpoint:
        return BatchSpanProcessor(OTLPSpanExporter(endpoint=config.otlp_endpoint))
    return BatchSpanProcessor(OTLPSpanExporter())


def configure_tracing(config: TracingConfig | None = None) -> bool:
    """Install the global TracerProvider if tracing is enabled.

    Safe to call repeatedly; only the first successful call installs a
    provider.

    Args:
        config: Tracing settings. Read from the environment when None.

    Returns:
        True if tracing is active after the call.

    Raises:
        TracingConfigError: If setup fails and tracing is required.
    """
    global _tracer_provider

    if config is None:
        config = load_tracing_config()

    if not config.enabled:
        logger.debug("Tracing disabled (%s not set)", ENV_OTEL_ENABLED)
        return False

    if _tracer_provider is not None:
        return True

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider

        provider = TracerProvider(resource=Resource.create({"service.name": config.service_name}))
        provider.add_span_processor(_build_span_processor(config))
        trace.set_tracer_provider(provider)
    except Exception as e:
        logger.error("Tracing setup failed: %s", e)
        if config.required:
            raise TracingConfigError(f"Tracing is required but setup failed: {e}") from e
        return False

    _tracer_provider = provider
    logger.info(
        "Tracing enabled: service=%s exporter=%s",
        config.service_name,
        "in-memory" if config.test_capture else config.exporter,
    )
    return True


def instrument_fastapi(app: Any) -> None:
    """Attach the OpenTelemetry FastAPI instrumentation when tracing is on.

    /health is excluded so health checks do not flood the trace backend.
    """
    if not is_tracing_enabled():
        return

    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(app, excluded_urls="health")
    except Exception as e:
        logger.warning("FastAPI instrumentation unavailable: %s", e)


def get_test_spans() -> list[ReadableSpan]:
    """Return spans captured by the in-memory exporter."""
    if _test_exporter is None:
        return []
    return list(_test_exporter.get_finished_spans())


def clear_test_spans() -> None:
    """Drop spans captured by the in-memory exporter."""
    if _test_exporter is not None:
        _test_exporter.clear()
