"""Tests for OpenTelemetry spans around object storage operations.

With tracing enabled and the in-memory exporter, each store call emits a
span carrying the key's SHA256 digest but never the raw key.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from blobfs.observability import tracing as tracing_module
from blobfs.observability.tracing import (
    TracingConfig,
    TracingConfigError,
    clear_test_spans,
    configure_tracing,
    get_test_spans,
    is_tracing_enabled,
    load_tracing_config,
)
from blobfs.storage.errors import ObjectNotFoundError
from blobfs.storage.filesystem_store import FilesystemObjectStore


@pytest.fixture
def traced_store(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> FilesystemObjectStore:
    """Enable in-memory span capture and return a populated store."""
    monkeypatch.setenv("BLOBFS_OTEL_ENABLED", "1")
    monkeypatch.setenv("BLOBFS_OTEL_TEST_CAPTURE", "1")
    configure_tracing()
    clear_test_spans()

    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "file.txt").write_bytes(b"hello world")
    return FilesystemObjectStore(base_dir=tmp_path)


def _spans_named(suffix: str) -> list:
    return [span for span in get_test_spans() if span.name.endswith(suffix)]


def test_tracing_disabled_by_default() -> None:
    """Tracing is off unless BLOBFS_OTEL_ENABLED is set."""
    assert is_tracing_enabled() is False
    assert configure_tracing() is False


def test_key_exists_span(traced_store: FilesystemObjectStore) -> None:
    """key_exists emits a span with hashed key and result."""
    key = "sub/file.txt"

    traced_store.key_exists(key)

    spans = _spans_named("object_store.key_exists")
    assert len(spans) == 1
    attrs = dict(spans[0].attributes or {})
    assert attrs["blobfs.object_key_sha256"] == hashlib.sha256(key.encode("utf-8")).hexdigest()
    assert attrs["storage.backend"] == "filesystem"
    assert attrs["blobfs.object_exists"] is True
    assert key not in [str(value) for value in attrs.values()]


def test_get_properties_span_has_size(traced_store: FilesystemObjectStore) -> None:
    """get_properties records the object size."""
    traced_store.get_properties("sub/file.txt")

    spans = _spans_named("object_store.get_properties")
    assert len(spans) == 1
    assert dict(spans[0].attributes or {})["blobfs.object_size_bytes"] == 11


def test_download_range_span(traced_store: FilesystemObjectStore) -> None:
    """download_range records the range offset and length."""
    traced_store.download_range("sub/file.txt", offset=6, size=5).read_all()

    spans = _spans_named("object_store.download_range")
    assert len(spans) == 1
    attrs = dict(spans[0].attributes or {})
    assert attrs["blobfs.range_offset"] == 6
    assert attrs["blobfs.range_length"] == 5


def test_failed_operation_marks_error(traced_store: FilesystemObjectStore) -> None:
    """A failing call records the error type on its span."""
    with pytest.raises(ObjectNotFoundError):
        traced_store.get_properties("sub/missing.txt")

    spans = _spans_named("object_store.get_properties")
    assert len(spans) == 1
    attrs = dict(spans[0].attributes or {})
    assert attrs["error"] is True
    assert attrs["error.type"] == "ObjectNotFoundError"


def test_load_tracing_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """BLOBFS_OTEL_* variables are read into TracingConfig."""
    monkeypatch.setenv("BLOBFS_OTEL_ENABLED", "true")
    monkeypatch.setenv("BLOBFS_OTEL_SERVICE_NAME", "blobfs-test")
    monkeypatch.setenv("BLOBFS_OTEL_EXPORTER", "Console")
    monkeypatch.setenv("BLOBFS_OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4318/v1/traces")

    assert load_tracing_config() == TracingConfig(
        enabled=True,
        service_name="blobfs-test",
        exporter="console",
        otlp_endpoint="http://collector:4318/v1/traces",
    )


def test_unknown_exporter_fails_when_required(monkeypatch: pytest.MonkeyPatch) -> None:
    """A required tracing setup that cannot be built fails startup."""
    monkeypatch.setattr(tracing_module, "_tracer_provider", None)
    config = TracingConfig(enabled=True, required=True, exporter="zipkin")

    with pytest.raises(TracingConfigError):
        configure_tracing(config)


def test_unknown_exporter_is_tolerated_when_optional(monkeypatch: pytest.MonkeyPatch) -> None:
    """Optional tracing degrades to disabled."""
    monkeypatch.setattr(tracing_module, "_tracer_provider", None)

    assert configure_tracing(TracingConfig(enabled=True, exporter="zipkin")) is False
