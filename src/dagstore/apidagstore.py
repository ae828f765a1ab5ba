"""Core module for ApiDagStore"""

import asyncio
import logging
import os
from collections.abc import AsyncIterable, Mapping
import yaml
from dagstore import dagstore_config, payload
from dagstore.dagstore import DagStore, DagLink, StoreResult, FILE_KIND, OBJECT_KIND
from dagstore.dagstore_exceptions import InvalidPath, ProtocolError, RequestTimeout
from dagstore.dagaddress import is_multihash


class ApiDagStore(DagStore):
    """ApiDagStore is a DagStore that reaches its content-addressable node store through a
    `DagBackend` binding (ex. `MemoryDagBackend` or `HttpDagBackend`).

    ApiDagStore initializes using a backend and an optional properties dictionary (see
    Args). Missing properties take their default value from `dagstore_config`. The
    properties are plain attributes of the instance: reassigning one (ex.
    `store.object_max_size = 100`) only affects the calls made afterwards on that
    instance, and two instances never share configuration.

    Every backend call is bounded by `request_timeout`; when it expires the caller gets a
    `RequestTimeout` while the backend request itself may still complete. Nothing is
    retried and multi-step operations never return partial results.

    :param DagBackend backend: Backend binding to store nodes with.
    :param dict properties: A Python dictionary with the following keys (and values):
        - object_max_size (int): Largest encoded payload, in bytes, stored as an inline
          object. Larger payloads are stored through the file api.
        - request_timeout (int): Time in milliseconds to wait on a backend call.
        - encoding (str): Encoding of the content addresses exchanged with the backend.
    """

    # Property (dagstore configuration) keys and their defaults
    property_keys = [
        "object_max_size",
        "request_timeout",
        "encoding",
    ]
    default_properties = {
        "object_max_size": dagstore_config.OBJECT_MAX_SIZE,
        "request_timeout": dagstore_config.REQUEST_TIMEOUT,
        "encoding": dagstore_config.ENCODING,
    }

    def __init__(self, backend, properties=None):
        if backend is None:
            exception_string = "ApiDagStore - A backend must be supplied."
            logging.error(exception_string)
            raise ValueError(exception_string)
        checked_properties = self._validate_properties(properties)
        (
            self.object_max_size,
            self.request_timeout,
            self.encoding,
        ) = [checked_properties[property_name] for property_name in self.property_keys]
        self.backend = backend
        logging.debug(
            "ApiDagStore - Initialization success. Backend: %s, properties: %s",
            type(backend).__name__,
            checked_properties,
        )

    @property
    def ENCODING(self):
        return self.encoding

    @property
    def OBJECT_MAX_SIZE(self):
        return self.object_max_size

    @property
    def REQUEST_TIMEOUT(self):
        return self.request_timeout

    # Configuration and Related Methods

    @staticmethod
    def load_properties(dagstore_yaml_path):
        """Get and return the DagStore properties found in a 'dagstore.yaml' file.

        :param str dagstore_yaml_path: Path to the configuration file.

        :return: DagStore properties present in the file.
        :rtype: dict
        """
        if not os.path.exists(dagstore_yaml_path):
            exception_string = (
                "ApiDagStore - load_properties: configuration file not found at: "
                + str(dagstore_yaml_path)
            )
            logging.critical(exception_string)
            raise FileNotFoundError(exception_string)

        with open(dagstore_yaml_path, "r", encoding="utf-8") as ds_yaml_file:
            yaml_data = yaml.safe_load(ds_yaml_file) or {}

        dagstore_yaml_dict = {}
        for key in ApiDagStore.property_keys:
            if key in yaml_data:
                dagstore_yaml_dict[key] = yaml_data[key]
        logging.debug(
            "ApiDagStore - load_properties: Successfully retrieved 'dagstore.yaml' properties."
        )
        return dagstore_yaml_dict

    @classmethod
    def write_properties(cls, dagstore_yaml_path, properties):
        """Write a 'dagstore.yaml' configuration file with the given properties. Missing
        properties are written with their default value.

        :param str dagstore_yaml_path: Path of the configuration file to write.
        :param dict properties: DagStore properties.
        """
        if os.path.exists(dagstore_yaml_path):
            exception_string = (
                "ApiDagStore - write_properties: configuration file already exists at: "
                + str(dagstore_yaml_path)
            )
            logging.error(exception_string)
            raise FileExistsError(exception_string)
        checked_properties = cls._validate_properties(properties)

        dagstore_configuration_yaml = cls._build_dagstore_yaml_string(
            *[checked_properties[property_name] for property_name in cls.property_keys]
        )
        with open(dagstore_yaml_path, "w", encoding="utf-8") as ds_yaml_file:
            ds_yaml_file.write(dagstore_configuration_yaml)

        logging.debug(
            "ApiDagStore - write_properties: Configuration file written to: %s",
            dagstore_yaml_path,
        )

    @staticmethod
    def _build_dagstore_yaml_string(object_max_size, request_timeout, encoding):
        """Build a YAML string representing the configuration for a DagStore.

        :param int object_max_size: Largest payload stored as an inline object.
        :param int request_timeout: Backend call timeout in milliseconds.
        :param str encoding: Address encoding.

        :return: A YAML string representing the configuration for a DagStore.
        :rtype: str
        """
        dagstore_configuration_yaml = f"""
        # Configuration variables for DagStore

        ############### Storage Routing ###############
        # Encoded payloads larger than this many bytes are stored through the file api
        object_max_size: {object_max_size}

        ############### Backend Requests ###############
        # Time in milliseconds to wait on any backend call before giving up
        request_timeout: {request_timeout}

        ############### Addresses ###############
        encoding: "{encoding}"
        """
        return dagstore_configuration_yaml

    @classmethod
    def _validate_properties(cls, properties):
        """Validate a properties dictionary and fill in the defaults of missing keys.

        :param dict properties: Dictionary containing dagstore properties.

        :raises KeyError: If a key is not a DagStore property.
        :raises ValueError: If a value is missing or invalid.

        :return: The validated properties, including defaults.
        :rtype: dict
        """
        if properties is None:
            properties = {}
        if not isinstance(properties, dict):
            exception_string = (
                "ApiDagStore - _validate_properties: Invalid argument -"
                + " expected a dictionary."
            )
            logging.debug(exception_string)
            raise ValueError(exception_string)

        checked_properties = dict(cls.default_properties)
        for key, value in properties.items():
            if key not in cls.property_keys:
                exception_string = (
                    f"ApiDagStore - _validate_properties: Unknown property: {key}."
                )
                logging.debug(exception_string)
                raise KeyError(exception_string)
            if value is None:
                exception_string = (
                    f"ApiDagStore - _validate_properties: Value for key: {key} is none."
                )
                logging.debug(exception_string)
                raise ValueError(exception_string)
            checked_properties[key] = value

        for key in ["object_max_size", "request_timeout"]:
            try:
                checked_properties[key] = int(checked_properties[key])
            except (TypeError, ValueError) as err:
                exception_string = (
                    f"ApiDagStore - _validate_properties: {key} must be an integer."
                    + f" {key}: {checked_properties[key]}"
                )
                logging.debug(exception_string)
                raise ValueError(exception_string) from err
            if checked_properties[key] < 1:
                exception_string = (
                    f"ApiDagStore - _validate_properties: {key} must be > 0."
                    + f" {key}: {checked_properties[key]}"
                )
                logging.debug(exception_string)
                raise ValueError(exception_string)

        if checked_properties["encoding"] not in dagstore_config.SUPPORTED_ENCODINGS:
            exception_string = (
                "ApiDagStore - _validate_properties: Unsupported address encoding: "
                + f"{checked_properties['encoding']}. Must be one of: "
                + ", ".join(dagstore_config.SUPPORTED_ENCODINGS)
            )
            logging.debug(exception_string)
            raise ValueError(exception_string)
        return checked_properties

    # Public API / DagStore Interface Methods

    async def store(self, data, is_file=False):
        data_buffer = payload.to_data_buffer(data)
        # Use the file api for files and big objects
        if is_file or len(data_buffer) > self.object_max_size:
            logging.debug(
                "ApiDagStore - store: Routing %s bytes to file storage (is_file: %s).",
                len(data_buffer),
                is_file,
            )
            return await self.store_file(data_buffer)
        logging.debug(
            "ApiDagStore - store: Routing %s bytes to object storage.", len(data_buffer)
        )
        return await self.store_object(data_buffer)

    async def store_object(self, data):
        """Store bytes as a single inline object.

        :param bytes data: Payload to store.

        :return: StoreResult - Content address and size of the object.
        """
        dag_node = await self._call(
            "store_object", self.backend.put_object(data, encoding=self.encoding)
        )
        store_result = self._store_result(OBJECT_KIND, dag_node, "store_object")
        logging.info(
            "ApiDagStore - store_object: Successfully stored object: %s",
            store_result.address,
        )
        return store_result

    async def store_file(self, data):
        """Store bytes through the file api.

        :param bytes data: Payload to store.

        :return: StoreResult - Content address and size of the file.
        """
        files = await self._call("store_file", self.backend.put_file(data))
        if not files:
            exception_string = (
                "ApiDagStore - store_file: Backend returned no file descriptor."
            )
            logging.error(exception_string)
            raise ProtocolError(exception_string)
        store_result = self._store_result(FILE_KIND, files[0], "store_file")
        logging.info(
            "ApiDagStore - store_file: Successfully stored file: %s",
            store_result.address,
        )
        return store_result

    async def retrieve(self, address, is_file=False, raw=False):
        if is_file:
            return await self.retrieve_file(address)
        return await self.retrieve_object(address, raw=raw)

    async def retrieve_object(self, address, raw=False, encoding=None):
        """Get the data of an object. Returns the value that was stored, or the backend's
        `DagNode` untouched when `raw` is set (ex. to read its links).

        :param str address: Content address.
        :param bool raw: Return the backend node instead of the decoded value.
        :param str encoding: Address encoding, defaults to the store's encoding.

        :return: mixed - Decoded value or `DagNode`.
        """
        logging.debug(
            "ApiDagStore - retrieve_object: Request to retrieve object: %s", address
        )
        dag_node = await self._call(
            "retrieve_object",
            self.backend.get_object(address, encoding=encoding or self.encoding),
            address,
        )
        if raw:
            return dag_node
        return payload.from_raw_data(dag_node)

    async def retrieve_file(self, address):
        """Get the contents of a file. The contents are only returned once every chunk
        has been received; a failure while reading discards what was received so far.

        :param str address: Content address of the file.

        :return: bytes - File contents.
        """
        logging.debug("ApiDagStore - retrieve_file: Request to retrieve file: %s", address)
        file_contents = await self._call(
            "retrieve_file", self._read_file(address), address
        )
        logging.info(
            "ApiDagStore - retrieve_file: Retrieved %s bytes for file: %s",
            len(file_contents),
            address,
        )
        return file_contents

    async def get_stats(self, address):
        return await self._call(
            "get_stats",
            self.backend.stat_object(address, encoding=self.encoding),
            address,
        )

    async def get_links(self, address, encoding=None):
        return await self._call(
            "get_links",
            self.backend.list_links(address, encoding=encoding or self.encoding),
            address,
        )

    async def update_object(self, address, new_data, encoding=None):
        logging.debug("ApiDagStore - update_object: Request to update: %s", address)
        if not isinstance(new_data, Mapping):
            exception_string = (
                "ApiDagStore - update_object: new_data must be a mapping."
                + f" new_data type supplied: {type(new_data)}"
            )
            logging.error(exception_string)
            raise TypeError(exception_string)
        current_data = await self.retrieve_object(address, encoding=encoding)
        if not isinstance(current_data, Mapping):
            exception_string = (
                f"ApiDagStore - update_object: Object at {address} does not hold a"
                + f" mapping, found: {type(current_data)}"
            )
            logging.error(exception_string)
            raise TypeError(exception_string)
        updated_data = {**current_data, **new_data}
        data_buffer = payload.to_data_buffer(updated_data)
        dag_node = await self._call(
            "update_object",
            self.backend.patch_set_data(
                address, data_buffer, encoding=encoding or self.encoding
            ),
            address,
        )
        self._check_node(dag_node, "update_object")
        logging.info(
            "ApiDagStore - update_object: Updated %s, new object: %s",
            address,
            dag_node.address,
        )
        return dag_node

    async def create_node(self, data, links):
        dag_links = [self._to_link(link) for link in links]
        dag_node = await self._call(
            "create_node",
            self.backend.put_object(
                payload.to_data_buffer(data), links=dag_links, encoding=self.encoding
            ),
        )
        store_result = self._store_result(OBJECT_KIND, dag_node, "create_node")
        logging.info(
            "ApiDagStore - create_node: Stored node %s with %s links.",
            store_result.address,
            len(dag_links),
        )
        return store_result

    async def find_links(self, address, names):
        links = await self._call(
            "find_links",
            self.backend.list_links(address, encoding=self.encoding),
            address,
        )
        if isinstance(names, str):
            names = [names]
        wanted = set(names)
        return [link for link in links if link.name in wanted]

    async def find_link_path(self, start, path):
        logging.debug(
            "ApiDagStore - find_link_path: Request to resolve %s from: %s", path, start
        )
        if path is not None and not isinstance(path, str):
            path = list(path)
        if not is_multihash(start) or not isinstance(path, list) or not path:
            exception_string = (
                f"ApiDagStore - find_link_path: Invalid path. start: {start},"
                + f" path: {path}"
            )
            logging.error(exception_string)
            raise InvalidPath(exception_string)

        index = 0
        current_path = await self._find_hop(start, path, index)
        index += 1
        while index < len(path) and current_path:
            current_path = await self._find_hop(current_path[0].address, path, index)
            index += 1

        if current_path:
            logging.info(
                "ApiDagStore - find_link_path: Resolved %s from %s to: %s",
                path,
                start,
                current_path[0].address,
            )
        else:
            logging.info(
                "ApiDagStore - find_link_path: No link found for '%s' (hop %s) from: %s",
                path[index - 1],
                index - 1,
                start,
            )
        return current_path

    async def add_link_from(self, data, name, root, encoding=None):
        store_result = await self.store(data)
        return await self.add_link(
            DagLink(name, store_result.address, store_result.size), root, encoding
        )

    async def add_link(self, link, root, encoding=None):
        dag_link = self._to_link(link)
        logging.debug(
            "ApiDagStore - add_link: Request to link '%s' (%s) on: %s",
            dag_link.name,
            dag_link.address,
            root,
        )
        dag_node = await self._call(
            "add_link",
            self.backend.patch_add_link(
                root, dag_link, encoding=encoding or self.encoding
            ),
            root,
        )
        self._check_node(dag_node, "add_link")
        logging.info(
            "ApiDagStore - add_link: Linked '%s' on %s, new root: %s",
            dag_link.name,
            root,
            dag_node.address,
        )
        return dag_node

    # DagStore Core Methods

    async def _call(self, method, awaitable, address=None):
        """Await a backend call, bounded by `request_timeout`.

        :param str method: Name of the calling method, used for logging.
        :param awaitable: Backend coroutine to await.
        :param str address: Address the call is about, used for logging (optional).

        :raises RequestTimeout: If the call does not complete in time.

        :return: Result of the backend call.
        """
        try:
            return await asyncio.wait_for(awaitable, self.request_timeout / 1000)
        except asyncio.TimeoutError as err:
            exception_string = (
                f"ApiDagStore - {method}: Backend call timed out after"
                + f" {self.request_timeout} ms. Address: {address}"
            )
            logging.error(exception_string)
            raise RequestTimeout(exception_string) from err

    async def _read_file(self, address):
        """Get a file from the backend and accumulate its chunks in arrival order."""
        file_contents = await self.backend.get_file(address)
        if isinstance(file_contents, (bytes, bytearray)):
            return bytes(file_contents)

        chunks = []
        try:
            if isinstance(file_contents, AsyncIterable):
                async for chunk in file_contents:
                    chunks.append(chunk)
            else:
                for chunk in file_contents:
                    chunks.append(chunk)
        except Exception as err:
            exception_string = (
                f"ApiDagStore - _read_file: Reading file {address} failed after"
                + f" {sum(len(chunk) for chunk in chunks)} bytes. Unexpected error: "
                + str(err)
            )
            logging.error(exception_string)
            raise err
        return b"".join(chunks)

    async def _find_hop(self, address, path, index):
        """Resolve a single hop of a link path."""
        if not is_multihash(address):
            exception_string = (
                f"ApiDagStore - find_link_path: Hop {index} ('{path[index]}') reached a"
                + f" malformed address: {address}"
            )
            logging.error(exception_string)
            raise ProtocolError(exception_string)
        try:
            return await self.find_links(address, [path[index]])
        except RequestTimeout as err:
            exception_string = (
                f"ApiDagStore - find_link_path: Timed out on hop {index}"
                + f" ('{path[index]}') at address: {address}"
            )
            logging.error(exception_string)
            raise RequestTimeout(exception_string) from err

    @staticmethod
    def _store_result(kind, descriptor, method):
        """Build a `StoreResult` from a backend node or file descriptor."""
        address = getattr(descriptor, "address", None)
        size = getattr(descriptor, "size", None)
        if address is None or size is None:
            exception_string = (
                f"ApiDagStore - {method}: Backend response is missing an address or"
                + f" size. Response: {descriptor}"
            )
            logging.error(exception_string)
            raise ProtocolError(exception_string)
        return StoreResult(kind, address, size)

    @staticmethod
    def _check_node(dag_node, method):
        if getattr(dag_node, "address", None) is None:
            exception_string = (
                f"ApiDagStore - {method}: Backend response is missing an address."
                + f" Response: {dag_node}"
            )
            logging.error(exception_string)
            raise ProtocolError(exception_string)

    @staticmethod
    def _to_link(link):
        """Build a `DagLink` from a `DagLink` or a mapping with the keys "name", "size"
        and "address" (or "hash")."""
        if isinstance(link, DagLink):
            return link
        if isinstance(link, Mapping):
            address = link.get("address", link.get("hash"))
            name = link.get("name")
            if name is None or address is None:
                exception_string = (
                    f"ApiDagStore - _to_link: A link needs a name and an address: {link}"
                )
                logging.error(exception_string)
                raise ValueError(exception_string)
            return DagLink(name, address, link.get("size", 0))
        exception_string = (
            f"ApiDagStore - _to_link: Unsupported link type supplied: {type(link)}"
        )
        logging.error(exception_string)
        raise TypeError(exception_string)
