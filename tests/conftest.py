"""Pytest overall configuration file for fixtures"""

import pytest
from dagstore.apidagstore import ApiDagStore
from dagstore.backend.memorybackend import MemoryDagBackend


@pytest.fixture(name="props")
def init_props():
    """Properties to initialize ApiDagStore."""
    properties = {
        "object_max_size": 100,
        "request_timeout": 2000,
        "encoding": "base58",
    }
    return properties


@pytest.fixture(name="backend")
def init_backend():
    """Create an in-memory backend for all tests."""
    return MemoryDagBackend(chunk_size=64)


@pytest.fixture(name="store")
def init_store(backend, props):
    """Create ApiDagStore instance for all tests."""
    store = ApiDagStore(backend, props)
    return store


@pytest.fixture(name="graph")
def init_graph():
    """Shared test harness data, values stored to build a small graph:
    root -first-> middle -second-> leaf
    """
    test_graph = {
        "root": {"name": "root", "kind": "directory"},
        "middle": {"name": "middle", "kind": "directory"},
        "leaf": {"name": "leaf", "values": [1, 2, 3]},
    }
    return test_graph
