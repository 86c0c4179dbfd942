"""blobfs testing utilities."""

from blobfs.testing.memory_store import InMemoryObjectStore

__all__ = ["InMemoryObjectStore"]
