"""Test module for the in-memory DagBackend binding."""

import asyncio
import pytest
from dagstore.backend.memorybackend import MemoryDagBackend
from dagstore.dagstore import DagLink
from dagstore.dagstore_exceptions import NodeNotFound
from dagstore.dagaddress import is_multihash


async def read_file(backend, address):
    stream = await backend.get_file(address)
    return [chunk async for chunk in stream]


def test_init_invalid_chunk_size():
    """Chunk size must be a positive integer."""
    with pytest.raises(ValueError):
        MemoryDagBackend(chunk_size=0)
    with pytest.raises(ValueError):
        MemoryDagBackend(chunk_size="64")


def test_put_object(backend):
    """An object is addressed by a multihash and can be read back."""
    node = asyncio.run(backend.put_object(b"payload"))
    assert is_multihash(node.address)
    assert node.data == b"payload"
    assert node.links == ()
    assert asyncio.run(backend.get_object(node.address)) == node


def test_put_object_deduplicates(backend):
    """Identical nodes share an address and are stored once."""
    first = asyncio.run(backend.put_object(b"same"))
    second = asyncio.run(backend.put_object(b"same"))
    assert first.address == second.address
    assert len(backend.nodes) == 1


def test_put_object_with_links(backend):
    """Cumulative size includes the size of the linked nodes."""
    child = asyncio.run(backend.put_object(b"child"))
    parent = asyncio.run(
        backend.put_object(b"parent", [DagLink("child", child.address, child.size)])
    )
    assert parent.size == len(backend.blocks[parent.address]) + child.size
    assert parent.address != asyncio.run(backend.put_object(b"parent")).address


def test_put_object_requires_bytes(backend):
    """Only bytes can be stored."""
    with pytest.raises(TypeError):
        asyncio.run(backend.put_object("text"))


def test_put_object_unsupported_encoding(backend):
    """Unsupported address encodings are rejected."""
    with pytest.raises(ValueError):
        asyncio.run(backend.put_object(b"data", encoding="base32"))


def test_put_file_single_chunk(backend):
    """A small file is a single leaf node."""
    files = asyncio.run(backend.put_file(b"TEST"))
    assert len(files) == 1
    assert files[0].links == ()
    assert asyncio.run(read_file(backend, files[0].address)) == [b"TEST"]


def test_put_file_chunks(backend):
    """A large file is split into chunk_size leaves streamed in order."""
    data = b"".join(bytes([i]) * backend.chunk_size for i in range(3)) + b"tail"
    root = asyncio.run(backend.put_file(data))[0]
    assert len(root.links) == 4
    chunks = asyncio.run(read_file(backend, root.address))
    assert [len(chunk) for chunk in chunks] == [64, 64, 64, 4]
    assert b"".join(chunks) == data


def test_put_file_and_object_differ(backend):
    """The same bytes stored as a file and as an object get different addresses."""
    file_node = asyncio.run(backend.put_file(b"TEST"))[0]
    object_node = asyncio.run(backend.put_object(b"TEST"))
    assert file_node.address != object_node.address


def test_get_object_not_found(backend):
    """Unknown addresses raise NodeNotFound."""
    with pytest.raises(NodeNotFound):
        asyncio.run(backend.get_object("QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"))


def test_get_file_not_a_file(backend):
    """Objects cannot be read through the file api."""
    node = asyncio.run(backend.put_object(b"object"))
    with pytest.raises(ValueError):
        asyncio.run(backend.get_file(node.address))


def test_stat_object(backend):
    """Statistics describe the stored block."""
    child = asyncio.run(backend.put_object(b"child"))
    parent = asyncio.run(
        backend.put_object(b"parent", [DagLink("child", child.address, child.size)])
    )
    stats = asyncio.run(backend.stat_object(parent.address))
    assert stats["Hash"] == parent.address
    assert stats["NumLinks"] == 1
    assert stats["DataSize"] == len(b"parent")
    assert stats["BlockSize"] == stats["DataSize"] + stats["LinksSize"]
    assert stats["CumulativeSize"] == parent.size


def test_patch_add_link(backend):
    """Patching appends a link to a new node and keeps the old one."""
    root = asyncio.run(backend.put_object(b"root"))
    child = asyncio.run(backend.put_object(b"child"))
    link = DagLink("child", child.address, child.size)
    patched = asyncio.run(backend.patch_add_link(root.address, link))
    assert patched.address != root.address
    assert patched.links == (link,)
    assert asyncio.run(backend.list_links(root.address)) == []
    assert asyncio.run(backend.list_links(patched.address)) == [link]


def test_patch_add_link_missing_target(backend):
    """The link target must exist."""
    root = asyncio.run(backend.put_object(b"root"))
    link = DagLink("ghost", "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG", 1)
    with pytest.raises(NodeNotFound):
        asyncio.run(backend.patch_add_link(root.address, link))


def test_patch_set_data(backend):
    """Setting data creates a new node with the same links."""
    child = asyncio.run(backend.put_object(b"child"))
    link = DagLink("child", child.address, child.size)
    root = asyncio.run(backend.put_object(b"old", [link]))
    patched = asyncio.run(backend.patch_set_data(root.address, b"new"))
    assert patched.data == b"new"
    assert patched.links == (link,)
    assert asyncio.run(backend.get_object(root.address)).data == b"old"
