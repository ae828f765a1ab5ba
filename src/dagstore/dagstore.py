"""DagStore Interface"""
from abc import ABC, abstractmethod
from collections import namedtuple
import importlib.metadata
import importlib.util

# Storage classes a payload can be routed to
OBJECT_KIND = "object"
FILE_KIND = "file"


class DagStore(ABC):
    """DagStore is a helper layer above a content-addressable, DAG-structured object store.
    It decides how application data is stored (as a single inline object or as a chunked
    file), returns the content address produced by the backend, retrieves data back and
    maintains named links between stored nodes so that application-level graphs can be
    built and traversed on top of the raw store.

    Nodes are immutable: adding a link or updating data always produces a new node with a
    new address and leaves the original node untouched.
    """

    @staticmethod
    def version():
        """Return the version number"""
        __version__ = importlib.metadata.version("dagstore")
        return __version__

    @abstractmethod
    async def store(self, data, is_file):
        """Store application data and return its content address. Data that is not already
        a byte sequence is encoded as JSON first. The encoded payload is stored through the
        file api when `is_file` is set or when it is larger than the configured
        `object_max_size`, and as a single inline object otherwise. Both storage classes
        return the same `StoreResult` shape so callers can treat them interchangeably.

        :param mixed data: Bytes or any JSON serializable value.
        :param bool is_file: Force storage through the file api.

        :return: StoreResult - Storage class used, content address and size.
        """
        raise NotImplementedError()

    @abstractmethod
    async def retrieve(self, address, is_file, raw):
        """Retrieve the data stored at a content address. Objects are decoded back to the
        value that was stored; files are returned as a single bytes buffer once every
        chunk has been received. With `raw` set, an object is returned as the backend's
        `DagNode` instead of being decoded.

        :param str address: Content address.
        :param bool is_file: Retrieve through the file api.
        :param bool raw: Return the object's `DagNode` undecoded.

        :return: mixed - Decoded value, `DagNode` or file contents.
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_stats(self, address):
        """Get the statistics (size, number of links, etc.) of a node.

        :param str address: Content address.

        :return: dict - Node statistics as reported by the backend.
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_links(self, address, encoding):
        """List the outgoing links of a node in backend order.

        :param str address: Content address.
        :param str encoding: Address encoding.

        :return: list - `DagLink` entries.
        """
        raise NotImplementedError()

    @abstractmethod
    async def update_object(self, address, new_data, encoding):
        """Shallow-merge `new_data` over the value stored at `address` and store the
        result as a new node. Keys of `new_data` win on conflict. This is a
        read-modify-write without compare-and-swap: two updates of the same address
        produce two independent nodes and the last writer's result is the one the
        caller keeps.

        :param str address: Content address of the node to update.
        :param dict new_data: Fields to merge.
        :param str encoding: Address encoding.

        :return: DagNode - The new node.
        """
        raise NotImplementedError()

    @abstractmethod
    async def create_node(self, data, links):
        """Store a new node holding `data` and the given outgoing links.

        :param mixed data: Bytes or any JSON serializable value.
        :param list links: `DagLink` entries.

        :return: StoreResult - Content address and size of the node.
        """
        raise NotImplementedError()

    @abstractmethod
    async def find_links(self, address, names):
        """Find the links of a node whose name is one of `names`.

        :param str address: Content address.
        :param list names: Link names to keep. A single string is one name.

        :return: list - Matching `DagLink` entries in backend order.
        """
        raise NotImplementedError()

    @abstractmethod
    async def find_link_path(self, start, path):
        """Walk the graph from `start` following one named link per entry of `path`.
        Each hop continues from the first link matching the hop's name. Resolution stops
        at the first hop without a match, in which case an empty list is returned.

        :param str start: Content address to start from.
        :param list path: Ordered link names.

        :raises InvalidPath: If `start` is not a content address or `path` is empty.

        :return: list - Links matched by the last hop.
        """
        raise NotImplementedError()

    @abstractmethod
    async def add_link_from(self, data, name, root, encoding):
        """Store `data` and link it under `name` on the node at `root`.

        :param mixed data: Bytes or any JSON serializable value.
        :param str name: Link name.
        :param str root: Content address of the node receiving the link.
        :param str encoding: Address encoding.

        :return: DagNode - The new root node.
        """
        raise NotImplementedError()

    @abstractmethod
    async def add_link(self, link, root, encoding):
        """Patch the node at `root` with a new link. The original node is left untouched
        and the returned node has a new address.

        :param DagLink link: Link to add (name, address, size).
        :param str root: Content address of the node receiving the link.
        :param str encoding: Address encoding.

        :return: DagNode - The new root node.
        """
        raise NotImplementedError()


class DagStoreFactory:
    """A factory class for creating `DagStore`-like objects.

    The `DagStoreFactory` class serves as a factory for creating `DagStore`-like objects,
    which are classes that implement the 'DagStore' abstract methods.

    This factory class provides a method to retrieve a `DagStore` object based on a given
    module (e.g., "dagstore.apidagstore") and class name (e.g., "ApiDagStore").
    """

    @staticmethod
    def get_dagstore(module_name, class_name, backend, properties=None):
        """Get a `DagStore`-like object based on the specified `module_name` and `class_name`.

        :param str module_name: Name of the package (e.g., "dagstore.apidagstore").
        :param str class_name: Name of the class in the given module (e.g., "ApiDagStore").
        :param DagBackend backend: Backend binding the store talks to.
        :param dict properties: Desired DagStore properties (optional). If `None`, default
            values will be used. Example Properties Dictionary:
            {
                "object_max_size": 262144,
                "request_timeout": 60000,
                "encoding": "base58"
            }

        :return: DagStore - A dag store object based on the given `module_name` and
            `class_name`.

        :raises ModuleNotFoundError: If the module is not found.
        :raises AttributeError: If the class does not exist within the module.
        """
        # Validate module
        if importlib.util.find_spec(module_name) is None:
            raise ModuleNotFoundError(f"No module found for '{module_name}'")

        # Get DagStore
        imported_module = importlib.import_module(module_name)

        # If class is not part of module, raise error
        if hasattr(imported_module, class_name):
            dagstore_class = getattr(imported_module, class_name)
            return dagstore_class(backend, properties=properties)
        raise AttributeError(
            f"Class name '{class_name}' is not an attribute of module '{module_name}'"
        )


class DagLink(namedtuple("DagLink", ["name", "address", "size"])):
    """Represents a named, sized reference from one node to another.

    :param str name: Link name. Names are not required to be unique within a node.
    :param str address: Content address of the target node.
    :param int size: Cumulative size of the target node in bytes.
    """

    def __new__(cls, name, address, size=0):
        return super(DagLink, cls).__new__(cls, name, address, size)


class DagNode(namedtuple("DagNode", ["address", "data", "links", "size"])):
    """Represents a node as returned by the backend.

    :param str address: Content address of the node.
    :param bytes data: Payload of the node.
    :param tuple links: Outgoing `DagLink` entries in backend order.
    :param int size: Cumulative size of the node (serialized node plus linked nodes).
    """

    # Default value to prevent dangerous default value
    def __new__(cls, address, data=b"", links=None, size=None):
        links = tuple(links) if links is not None else ()
        return super(DagNode, cls).__new__(cls, address, data, links, size)


class StoreResult(namedtuple("StoreResult", ["kind", "address", "size"])):
    """Represents the outcome of storing a payload.

    :param str kind: Storage class used, `OBJECT_KIND` or `FILE_KIND`.
    :param str address: Content address produced by the backend.
    :param int size: Size reported by the backend.
    """
