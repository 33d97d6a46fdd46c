"""Service components for the task2model server."""

from .store import BlobStore, JsonFileStore, MemoryStore

__all__ = ["BlobStore", "JsonFileStore", "MemoryStore"]
