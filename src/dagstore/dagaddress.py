"""Content address helpers for base58 encoded multihashes.

A multihash is a self-describing digest: the hash function code, the digest length
and the digest itself. Addresses exchanged with the backend are the base58 (bitcoin
alphabet) encoding of a multihash, ex. "QmPZ9gcCEpqKTo6aq61g2nXGUhM4iCL3ewB6LDXZCtioEB".
"""
import hashlib
import base58
import multihash


def sha256_address(data):
    """Return the base58 sha2-256 multihash address of `data`.

    :param bytes data: Content to address.

    :return: str
    """
    digest = hashlib.sha256(data).digest()
    return base58.b58encode(multihash.encode(digest, "sha2-256")).decode("ascii")


def decode_address(address):
    """Decode a base58 address into its multihash parts.

    :param str address: Base58 encoded multihash.

    :return: multihash.Multihash with `code`, `name`, `length` and `digest`.
    :raises ValueError: When the address is not base58 or not a multihash.
    """
    return multihash.decode(base58.b58decode(address))


def is_multihash(address):
    """Check that `address` is a well-formed base58 multihash."""
    if not isinstance(address, str) or address.strip() == "":
        return False
    try:
        decode_address(address)
    except (ValueError, TypeError, EOFError):
        return False
    return True
