"""neuraltree.serialization
==========================
Self-describing persistence for trees.

Every object is stored as a blob ``{"type": <tag>, "data": <payload>}``. A
node's payload is a list whose last entry is its network blob and whose other
entries are child-node blobs, in child order. Bytes are written with
``torch.save`` and read back with ``weights_only=True``, so loading never runs
arbitrary pickled code.

Decoding is total: any malformed input raises :class:`DecodeError`.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Callable, Dict

import torch

from neuraltree.errors import DecodeError
from neuraltree.model import DenseScoringNetwork, ScoringNetwork
from neuraltree.tree_node import TreeNode

logger = logging.getLogger(__name__)

Decoder = Callable[[object, "Registry"], object]


class Registry:
    """Maps type tags to decoder functions ``fn(payload, registry)``.

    Registries are passed explicitly to :func:`deserialize`; nothing is
    registered globally.
    """

    def __init__(self):
        self._decoders: Dict[str, Decoder] = {}

    def register(self, tag: str, decoder: Decoder) -> None:
        if tag in self._decoders:
            raise ValueError(f"type tag already registered: {tag!r}")
        self._decoders[tag] = decoder

    def __contains__(self, tag) -> bool:
        return tag in self._decoders

    def decode(self, blob) -> object:
        if not isinstance(blob, dict):
            raise DecodeError(f"expected a typed blob, got {type(blob).__name__}")
        tag = blob.get("type")
        if not isinstance(tag, str):
            raise DecodeError("blob has no string 'type' tag")
        if "data" not in blob:
            raise DecodeError(f"blob {tag!r} has no 'data'")
        decoder = self._decoders.get(tag)
        if decoder is None:
            raise DecodeError(f"unknown type tag: {tag!r}")
        return decoder(blob["data"], self)


def _decode_dense(payload, registry: Registry) -> DenseScoringNetwork:
    return DenseScoringNetwork.deserialize(payload)


def _decode_node(payload, registry: Registry) -> TreeNode:
    if not isinstance(payload, list) or len(payload) == 0:
        raise DecodeError("invalid node payload: expected a non-empty list")

    network = registry.decode(payload[-1])
    if not isinstance(network, ScoringNetwork):
        raise DecodeError(
            f"invalid node payload: last element decoded to {type(network).__name__}, not a network"
        )
    child_nodes = []
    for i, item in enumerate(payload[:-1]):
        child = registry.decode(item)
        if not isinstance(child, TreeNode):
            raise DecodeError(
                f"invalid node payload: element {i} decoded to {type(child).__name__}, not a node"
            )
        child_nodes.append(child)
    return TreeNode(network, child_nodes)


def default_registry() -> Registry:
    """A fresh registry that knows :class:`TreeNode` and :class:`DenseScoringNetwork`."""
    registry = Registry()
    registry.register(TreeNode.serializer_type, _decode_node)
    registry.register(DenseScoringNetwork.serializer_type, _decode_dense)
    return registry


# -----------------------------------------------------------------------------
# bytes
# -----------------------------------------------------------------------------

def serialize(node: TreeNode) -> bytes:
    buf = io.BytesIO()
    torch.save({"type": node.serializer_type, "data": node.serialize()}, buf)
    return buf.getvalue()


def deserialize(data: bytes, registry: Registry | None = None) -> TreeNode:
    """Rebuild a tree from :func:`serialize` output, or raise :class:`DecodeError`."""
    if registry is None:
        registry = default_registry()
    if not isinstance(data, (bytes, bytearray)) or len(data) == 0:
        raise DecodeError("no data to decode")

    try:
        blob = torch.load(io.BytesIO(data), map_location="cpu", weights_only=True)
    except Exception as exc:
        logger.debug("torch.load rejected %d bytes: %s", len(data), exc)
        raise DecodeError(f"unreadable tree data: {exc}") from exc

    node = registry.decode(blob)
    if not isinstance(node, TreeNode):
        raise DecodeError(f"top-level blob decoded to {type(node).__name__}, not a node")
    return node


# -----------------------------------------------------------------------------
# files
# -----------------------------------------------------------------------------

def save_tree(path: str | Path, node: TreeNode) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(serialize(node))
    logger.info("saved tree (%d nodes) to %s", node.num_nodes(), path)


def load_tree(path: str | Path, registry: Registry | None = None) -> TreeNode:
    return deserialize(Path(path).read_bytes(), registry)
