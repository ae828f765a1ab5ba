"""DagBackend Interface"""
from abc import ABC, abstractmethod
from dagstore import dagstore_config


class DagBackend(ABC):
    """DagBackend is the adapter a `DagStore` uses to reach a content-addressable node
    store. A binding is selected and constructed once by the caller; the store only ever
    talks to it through the coroutines below.

    Every operation that exchanges content addresses accepts an `encoding` selector
    (default "base58").
    """

    default_encoding = dagstore_config.ENCODING

    @abstractmethod
    async def put_object(self, data, links=None, encoding=default_encoding):
        """Store `data` (and optional outgoing links) as a single node.

        :param bytes data: Payload of the node.
        :param list links: `DagLink` entries (optional).
        :param str encoding: Address encoding.

        :return: DagNode - The stored node, including its address and size.
        """
        raise NotImplementedError()

    @abstractmethod
    async def put_file(self, data):
        """Store `data` through the file api, splitting it into chunks as needed.

        :param bytes data: File contents.

        :return: list - Descriptors (`DagNode`) of the stored files, a single entry for a
            non-directory input.
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_object(self, address, encoding=default_encoding):
        """Get the node stored at `address`.

        :param str address: Content address.
        :param str encoding: Address encoding.

        :return: DagNode - The stored node.
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_file(self, address):
        """Get the contents of a file.

        :param str address: Content address of the file.

        :return: mixed - Either the complete contents as bytes or an (async) iterable
            yielding the contents chunk by chunk.
        """
        raise NotImplementedError()

    @abstractmethod
    async def stat_object(self, address, encoding=default_encoding):
        """Get the statistics of the node stored at `address`.

        :param str address: Content address.
        :param str encoding: Address encoding.

        :return: dict - Node statistics ("Hash", "NumLinks", "BlockSize", "LinksSize",
            "DataSize", "CumulativeSize").
        """
        raise NotImplementedError()

    @abstractmethod
    async def list_links(self, address, encoding=default_encoding):
        """List the outgoing links of the node stored at `address`.

        :param str address: Content address.
        :param str encoding: Address encoding.

        :return: list - `DagLink` entries in node order.
        """
        raise NotImplementedError()

    @abstractmethod
    async def patch_add_link(self, root, link, encoding=default_encoding):
        """Create a new node from `root` with `link` appended to its links.

        :param str root: Content address of the node to patch.
        :param DagLink link: Link to append.
        :param str encoding: Address encoding.

        :return: DagNode - The new node.
        """
        raise NotImplementedError()

    @abstractmethod
    async def patch_set_data(self, root, data, encoding=default_encoding):
        """Create a new node from `root` with its payload replaced by `data`.

        :param str root: Content address of the node to patch.
        :param bytes data: New payload.
        :param str encoding: Address encoding.

        :return: DagNode - The new node.
        """
        raise NotImplementedError()
