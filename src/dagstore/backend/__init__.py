"""Backend bindings a DagStore can be constructed with."""

from dagstore.backend.backend_interface import DagBackend
from dagstore.backend.memorybackend import MemoryDagBackend
from dagstore.backend.httpbackend import HttpDagBackend

__all__ = ("DagBackend", "MemoryDagBackend", "HttpDagBackend")
