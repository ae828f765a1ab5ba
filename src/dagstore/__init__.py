"""DagStore is a helper layer above a content-addressable, DAG-structured object store
(an IPFS-like backend) for building application-level graphs out of immutable nodes.

Some properties:

- Application values are stored as JSON, byte sequences are stored as they are
- Small payloads are stored as a single inline object, payloads larger than
    `object_max_size` (or flagged as files) are stored through the chunking file api
- Nodes are immutable and addressed by a multihash of their content; adding a link
    or updating data produces a new node with a new address
- Named links between nodes can be added and resolved hop by hop, ex. following
    ["first", "second"] from a root node
- The backend is reached through an explicit `DagBackend` binding chosen by the caller
"""

from dagstore.dagstore import (
    DagStore,
    DagStoreFactory,
    DagLink,
    DagNode,
    StoreResult,
)
from dagstore.apidagstore import ApiDagStore

__all__ = (
    "DagStore",
    "DagStoreFactory",
    "DagLink",
    "DagNode",
    "StoreResult",
    "ApiDagStore",
)
__version__ = "1.0.0"
