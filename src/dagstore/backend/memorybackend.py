"""In-process DagBackend binding"""
import asyncio
import base64
import json
import logging
from dagstore import dagstore_config
from dagstore.backend.backend_interface import DagBackend
from dagstore.dagstore import DagLink, DagNode
from dagstore.dagstore_exceptions import NodeNotFound
from dagstore.dagaddress import sha256_address


class MemoryDagBackend(DagBackend):
    """MemoryDagBackend keeps an append-only, content-addressed node store in memory.

    Each node is serialized deterministically (payload plus links) and addressed by the
    base58 sha2-256 multihash of that serialization, so identical nodes share an address
    and nodes are never modified once stored. Files are split into leaves of
    `chunk_size` bytes linked from a root node and are read back as a stream of chunks.

    :param int chunk_size: Size of the leaves a file is split into.
    :param float latency: Seconds every operation waits before answering (optional).
    """

    def __init__(self, chunk_size=dagstore_config.CHUNK_SIZE, latency=0):
        if not isinstance(chunk_size, int) or chunk_size < 1:
            exception_string = (
                "MemoryDagBackend - chunk_size must be an integer > 0."
                + f" chunk_size: {chunk_size}"
            )
            logging.error(exception_string)
            raise ValueError(exception_string)
        self.chunk_size = chunk_size
        self.latency = latency
        self.nodes = {}
        self.blocks = {}
        self.files = set()

    async def put_object(self, data, links=None, encoding=DagBackend.default_encoding):
        await self._wait()
        self._check_encoding(encoding, "put_object")
        self._check_bytes(data, "put_object")
        node = self._put_node(data, links or [])
        logging.debug(
            "MemoryDagBackend - put_object: Stored node: %s (%s links)",
            node.address,
            len(node.links),
        )
        return node

    async def put_file(self, data):
        await self._wait()
        self._check_bytes(data, "put_file")
        chunks = [
            data[i : i + self.chunk_size] for i in range(0, len(data), self.chunk_size)
        ]
        if len(chunks) <= 1:
            root = self._put_node(data, [], is_file=True)
        else:
            leaves = [self._put_node(chunk, [], is_file=True) for chunk in chunks]
            root = self._put_node(
                b"",
                [DagLink("", leaf.address, leaf.size) for leaf in leaves],
                is_file=True,
            )
        logging.debug(
            "MemoryDagBackend - put_file: Stored file: %s (%s chunks)",
            root.address,
            len(chunks),
        )
        return [root]

    async def get_object(self, address, encoding=DagBackend.default_encoding):
        await self._wait()
        self._check_encoding(encoding, "get_object")
        return self._get_node(address, "get_object")

    async def get_file(self, address):
        await self._wait()
        node = self._get_node(address, "get_file")
        if address not in self.files:
            exception_string = (
                f"MemoryDagBackend - get_file: Node is not a file: {address}"
            )
            logging.error(exception_string)
            raise ValueError(exception_string)
        return self._read_chunks(node)

    async def stat_object(self, address, encoding=DagBackend.default_encoding):
        await self._wait()
        self._check_encoding(encoding, "stat_object")
        node = self._get_node(address, "stat_object")
        block_size = len(self.blocks[address])
        return {
            "Hash": node.address,
            "NumLinks": len(node.links),
            "BlockSize": block_size,
            "LinksSize": block_size - len(node.data),
            "DataSize": len(node.data),
            "CumulativeSize": node.size,
        }

    async def list_links(self, address, encoding=DagBackend.default_encoding):
        await self._wait()
        self._check_encoding(encoding, "list_links")
        return list(self._get_node(address, "list_links").links)

    async def patch_add_link(self, root, link, encoding=DagBackend.default_encoding):
        await self._wait()
        self._check_encoding(encoding, "patch_add_link")
        root_node = self._get_node(root, "patch_add_link")
        # The link target must be part of the store
        self._get_node(link.address, "patch_add_link")
        node = self._put_node(root_node.data, list(root_node.links) + [link])
        logging.debug(
            "MemoryDagBackend - patch_add_link: Linked '%s' on %s, new node: %s",
            link.name,
            root,
            node.address,
        )
        return node

    async def patch_set_data(self, root, data, encoding=DagBackend.default_encoding):
        await self._wait()
        self._check_encoding(encoding, "patch_set_data")
        self._check_bytes(data, "patch_set_data")
        root_node = self._get_node(root, "patch_set_data")
        node = self._put_node(data, root_node.links)
        logging.debug(
            "MemoryDagBackend - patch_set_data: Patched %s, new node: %s",
            root,
            node.address,
        )
        return node

    async def _read_chunks(self, node):
        """Yield the contents of a file node leaf by leaf, in link order."""
        if not node.links:
            yield node.data
            return
        for link in node.links:
            await self._wait()
            async for chunk in self._read_chunks(self.nodes[link.address]):
                yield chunk

    def _put_node(self, data, links, is_file=False):
        """Serialize, address and record a node. Storing an existing node is a no-op."""
        links = [DagLink(*link) for link in links]
        block = self._serialize(data, links, is_file)
        address = sha256_address(block)
        if address not in self.nodes:
            size = len(block) + sum(link.size for link in links)
            self.nodes[address] = DagNode(address, data, links, size)
            self.blocks[address] = block
            if is_file:
                self.files.add(address)
        return self.nodes[address]

    @staticmethod
    def _serialize(data, links, is_file):
        block = {
            "Data": base64.b64encode(data).decode("ascii"),
            "Links": [[link.name, link.address, link.size] for link in links],
        }
        if is_file:
            block["Type"] = "file"
        return json.dumps(block, sort_keys=True, separators=(",", ":")).encode("utf-8")

    def _get_node(self, address, method):
        node = self.nodes.get(address)
        if node is None:
            exception_string = (
                f"MemoryDagBackend - {method}: No node found for address: {address}"
            )
            logging.error(exception_string)
            raise NodeNotFound(exception_string)
        return node

    @staticmethod
    def _check_bytes(data, method):
        if not isinstance(data, bytes):
            exception_string = (
                f"MemoryDagBackend - {method}: Data must be bytes."
                + f" data type supplied: {type(data)}"
            )
            logging.error(exception_string)
            raise TypeError(exception_string)

    @staticmethod
    def _check_encoding(encoding, method):
        if encoding not in dagstore_config.SUPPORTED_ENCODINGS:
            exception_string = (
                f"MemoryDagBackend - {method}: Unsupported address encoding: {encoding}."
                + f" Must be one of: {', '.join(dagstore_config.SUPPORTED_ENCODINGS)}"
            )
            logging.error(exception_string)
            raise ValueError(exception_string)

    async def _wait(self):
        await asyncio.sleep(self.latency)
