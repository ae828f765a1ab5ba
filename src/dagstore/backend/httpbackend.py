"""DagBackend binding for an IPFS daemon's HTTP API"""
import asyncio
import base64
import json
import logging
import requests
from dagstore import dagstore_config
from dagstore.backend.backend_interface import DagBackend
from dagstore.dagstore import DagLink, DagNode


class HttpDagBackend(DagBackend):
    """HttpDagBackend talks to an IPFS daemon through its HTTP api (`/api/v0`). Requests
    are made with a `requests.Session` on a worker thread so the event loop is never
    blocked. HTTP and connection errors are raised as `requests` exceptions.

    :param str api_url: Base url of the api, ex. "http://127.0.0.1:5001/api/v0".
    :param requests.Session session: Session to use (optional).
    :param float timeout: Socket timeout in seconds passed to `requests` (optional).
    """

    def __init__(self, api_url="http://127.0.0.1:5001/api/v0", session=None, timeout=None):
        self.api_url = api_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    async def put_object(self, data, links=None, encoding=DagBackend.default_encoding):
        self._check_encoding(encoding, "put_object")
        node_json = {
            "Data": base64.b64encode(data).decode("ascii"),
            "Links": [
                {"Name": link.name, "Hash": link.address, "Size": link.size}
                for link in links or []
            ],
        }
        body = await self._post_json(
            "object/put",
            params=[("inputenc", "json"), ("datafieldenc", "base64")],
            files={"file": json.dumps(node_json).encode("utf-8")},
        )
        address = body.get("Hash")
        size = await self._cumulative_size(address)
        return DagNode(address, data, links or [], size)

    async def put_file(self, data):
        response = await self._post("add", files={"file": data})
        descriptors = []
        # The add endpoint answers with one JSON document per line
        for line in response.text.splitlines():
            if not line.strip():
                continue
            entry = json.loads(line)
            size = entry.get("Size")
            descriptors.append(
                DagNode(entry.get("Hash"), size=int(size) if size is not None else None)
            )
        return descriptors

    async def get_object(self, address, encoding=DagBackend.default_encoding):
        self._check_encoding(encoding, "get_object")
        body = await self._post_json(
            "object/get", params=[("arg", address), ("data-encoding", "base64")]
        )
        data = base64.b64decode(body.get("Data") or "")
        links = [self._link_from_json(link) for link in body.get("Links") or []]
        size = await self._cumulative_size(address)
        return DagNode(address, data, links, size)

    async def get_file(self, address):
        response = await self._post("cat", params=[("arg", address)])
        return response.content

    async def stat_object(self, address, encoding=DagBackend.default_encoding):
        self._check_encoding(encoding, "stat_object")
        return await self._post_json("object/stat", params=[("arg", address)])

    async def list_links(self, address, encoding=DagBackend.default_encoding):
        self._check_encoding(encoding, "list_links")
        body = await self._post_json("object/links", params=[("arg", address)])
        return [self._link_from_json(link) for link in body.get("Links") or []]

    async def patch_add_link(self, root, link, encoding=DagBackend.default_encoding):
        self._check_encoding(encoding, "patch_add_link")
        body = await self._post_json(
            "object/patch/add-link",
            params=[("arg", root), ("arg", link.name), ("arg", link.address)],
        )
        return await self.get_object(body.get("Hash"), encoding)

    async def patch_set_data(self, root, data, encoding=DagBackend.default_encoding):
        self._check_encoding(encoding, "patch_set_data")
        body = await self._post_json(
            "object/patch/set-data", params=[("arg", root)], files={"data": data}
        )
        return await self.get_object(body.get("Hash"), encoding)

    async def _cumulative_size(self, address):
        if address is None:
            return None
        stats = await self.stat_object(address)
        return stats.get("CumulativeSize")

    async def _post_json(self, endpoint, params=None, files=None):
        response = await self._post(endpoint, params=params, files=files)
        return response.json()

    async def _post(self, endpoint, params=None, files=None):
        url = f"{self.api_url}/{endpoint}"
        logging.debug("HttpDagBackend - _post: Request to %s, params: %s", url, params)
        return await asyncio.to_thread(self._send, url, params, files)

    def _send(self, url, params, files):
        response = self.session.post(
            url, params=params, files=files, timeout=self.timeout
        )
        try:
            response.raise_for_status()
        except requests.HTTPError as err:
            logging.error(
                "HttpDagBackend - _send: Request to %s failed: %s", url, str(err)
            )
            raise err
        return response

    @staticmethod
    def _link_from_json(link):
        return DagLink(link.get("Name"), link.get("Hash"), link.get("Size"))

    @staticmethod
    def _check_encoding(encoding, method):
        if encoding not in dagstore_config.SUPPORTED_ENCODINGS:
            exception_string = (
                f"HttpDagBackend - {method}: Unsupported address encoding: {encoding}."
                + f" Must be one of: {', '.join(dagstore_config.SUPPORTED_ENCODINGS)}"
            )
            logging.error(exception_string)
            raise ValueError(exception_string)
