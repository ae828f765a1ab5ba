"""Test module for the payload encoder."""

from dagstore.dagstore import DagLink, DagNode
from dagstore.payload import from_raw_data, from_raw_object, to_data_buffer


def test_to_data_buffer_bytes_identity():
    """Bytes are returned unchanged."""
    data = b"\x00\x01raw bytes\xff"
    assert to_data_buffer(data) is data


def test_to_data_buffer_bytearray():
    """Bytes-like values are returned as bytes with the same content."""
    assert to_data_buffer(bytearray(b"TEST")) == b"TEST"


def test_to_data_buffer_keeps_key_order():
    """Structured values are JSON encoded without reordering keys."""
    assert to_data_buffer({"b": 1, "a": 2}) == b'{"b":1,"a":2}'


def test_to_data_buffer_unicode():
    """Non-ASCII text is escaped and decodes back to the same value."""
    buffer = to_data_buffer({"name": "café"})
    assert buffer == b'{"name":"caf\\u00e9"}'
    assert from_raw_data(buffer) == {"name": "café"}


def test_to_data_buffer_lone_surrogate():
    """Strings holding a lone surrogate can still be encoded."""
    buffer = to_data_buffer({"a": "\ud800"})
    assert buffer == b'{"a":"\\ud800"}'
    assert from_raw_data(buffer) == {"a": "\ud800"}


def test_to_data_buffer_is_idempotent():
    """Encoding already encoded data yields the same bytes."""
    encoded = to_data_buffer({"a": 1})
    assert to_data_buffer(encoded) == encoded


def test_from_raw_data_round_trip():
    """Decoding an encoded structured value returns an equal value."""
    values = [{"a": 1, "b": 2}, [1, "two", None], "text", 42, {"nested": {"x": [1]}}]
    for value in values:
        assert from_raw_data(to_data_buffer(value)) == value


def test_from_raw_data_node():
    """The payload of a node is decoded."""
    node = DagNode("QmAddress", b'{"data":"{}"}', [], 10)
    assert from_raw_data(node) == {"data": "{}"}


def test_from_raw_data_not_json():
    """Payloads that are not JSON are returned unchanged."""
    assert from_raw_data(b"not json") == b"not json"
    assert from_raw_data(b"\x89PNG\r\n") == b"\x89PNG\r\n"


def test_from_raw_data_json_looking_bytes():
    """Raw bytes that happen to be JSON text come back parsed."""
    assert from_raw_data(to_data_buffer(b"42")) == 42


def test_from_raw_object():
    """A node is converted to a JSON friendly dictionary."""
    link = DagLink("child", "QmChild", 12)
    node = DagNode("QmParent", b"data", [link], 40)
    raw_object = from_raw_object(node)
    assert raw_object == {
        "multihash": "QmParent",
        "data": b"data",
        "links": [{"name": "child", "multihash": "QmChild", "size": 12}],
        "size": 40,
    }
