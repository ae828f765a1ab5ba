"""Conversion between application values and node payloads.

Byte sequences are stored as they are. Every other value is serialized to
compact JSON text (keys keep their insertion order, non-ASCII characters are
\\u escaped) and stored as UTF-8 bytes.

Decoding is total: payloads that do not parse as JSON are handed back
unchanged. A consequence is that a payload which was stored as raw bytes but
happens to be valid JSON text (ex. b'{"a": 1}' or b"42") comes back as the
parsed value.
"""
import json


def to_data_buffer(data):
    """Encode a value into the bytes stored in a node.

    :param mixed data: Bytes or any JSON serializable value.

    :return: Payload bytes.
    :rtype: bytes
    """
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    return json.dumps(data, separators=(",", ":")).encode("utf-8")


def from_raw_data(raw_data):
    """Extract the value held by a node (or by a raw payload).

    :param mixed raw_data: A `DagNode` or payload bytes.

    :return: The parsed JSON value, or the payload unchanged if it is not JSON.
    """
    data = getattr(raw_data, "data", raw_data)
    try:
        return json.loads(data)
    except (TypeError, ValueError):
        return data


def from_raw_object(raw_object):
    """Return a JSON friendly view of a node.

    :param DagNode raw_object: Node returned by the backend.

    :return: Dictionary with the keys "multihash", "data", "links" and "size".
    :rtype: dict
    """
    return {
        "multihash": raw_object.address,
        "data": raw_object.data,
        "links": [
            {"name": link.name, "multihash": link.address, "size": link.size}
            for link in raw_object.links
        ],
        "size": raw_object.size,
    }
