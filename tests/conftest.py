"""Pytest configuration and fixtures for blobfs tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient

from blobfs.api.main import create_app
from blobfs.config import PathStyle, ServiceConfig
from blobfs.context import ServiceContext, build_context
from blobfs.testing import InMemoryObjectStore
from blobfs.vfs.path_mapper import PathMapper

TEST_ROOT_DIR = "/models"
TEST_PSEUDO_DIRS = ("bnc",)


@pytest.fixture(autouse=True)
def clear_blobfs_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove BLOBFS_* variables so the host environment cannot leak into tests.

    Tests that need a variable set it themselves with monkeypatch.
    """
    for key in list(os.environ):
        if key.startswith("BLOBFS_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mapper() -> PathMapper:
    """PathMapper rooted at /models with "bnc" registered as a pseudo-directory."""
    return PathMapper(TEST_ROOT_DIR, TEST_PSEUDO_DIRS, path_style=PathStyle.POSIX)


@pytest.fixture
def memory_store() -> InMemoryObjectStore:
    """In-memory store seeded with the objects used across API tests."""
    return InMemoryObjectStore(
        {
            "bncdata.sci": b"0123456789",
            "sub/file.txt": b"hello world",
            "sub/empty.bin": b"",
        },
        content_types={"sub/file.txt": "text/plain"},
    )


@pytest.fixture
def service_config() -> ServiceConfig:
    """Service configuration matching the mapper fixture."""
    return ServiceConfig(
        root_dir=TEST_ROOT_DIR,
        pseudo_directories=TEST_PSEUDO_DIRS,
        path_style=PathStyle.POSIX,
    )


@pytest.fixture
def context(service_config: ServiceConfig, memory_store: InMemoryObjectStore) -> ServiceContext:
    """Service context wired to the in-memory store."""
    return build_context(service_config, store=memory_store)


@pytest.fixture
def client(context: ServiceContext) -> TestClient:
    """Create a test client for the blobfs API."""
    return TestClient(create_app(context))
