"""neuraltree.tree_node
=======================
A tree of small scoring networks that acts as one differentiable classifier.

Leaves output ``log P(class | x)``. Branches output ``log P(child | x)`` and
mix their children's outputs as::

    log P(c | x) = logsumexp_i( log P(child=i | x) + log P(c | x, child=i) )

The recursion depth equals the tree depth.
"""

from __future__ import annotations

from typing import Mapping, Sequence

import torch
import torch.nn as nn
from torch.func import functional_call

from neuraltree.errors import TreeStructureError
from neuraltree.logexp import log_exp_sum
from neuraltree.model import ScoringNetwork


def _blob(obj) -> dict:
    return {"type": obj.serializer_type, "data": obj.serialize()}


class TreeNode(nn.Module):
    """One node of the tree, owning its network and its child subtrees."""

    serializer_type = "neuraltree.TreeNode"

    def __init__(self, network: ScoringNetwork, child_nodes: Sequence["TreeNode"] = ()):
        super().__init__()
        # Registration order fixes parameters(): own network first, then children.
        self.network = network
        self.child_nodes = nn.ModuleList(child_nodes)

    # Convenience helpers
    def is_leaf(self) -> bool:
        return len(self.child_nodes) == 0

    def num_nodes(self) -> int:
        return 1 + sum(child.num_nodes() for child in self.child_nodes)

    def depth(self) -> int:
        if self.is_leaf():
            return 0
        return 1 + max(child.depth() for child in self.child_nodes)

    # ------------------------------------------------------------------ forward
    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """Log-probabilities over classes for ``x`` of shape (in,) or (B, in)."""
        scores = self.network(x)
        if self.is_leaf():
            return scores
        if scores.shape[-1] != len(self.child_nodes):
            raise TreeStructureError(
                f"child node count ({len(self.child_nodes)}) must match "
                f"network output size ({scores.shape[-1]})"
            )

        res = None
        for i, child in enumerate(self.child_nodes):
            weight = scores[..., i:i + 1]
            weighted = child(x) + weight
            res = weighted if res is None else log_exp_sum(res, weighted)
        return res

    @torch.no_grad()
    def evaluate(self, x) -> torch.Tensor:
        """Value-only evaluation; accepts tensors or nested lists."""
        ref = next(self.parameters(), None)
        if ref is None:
            return self(torch.as_tensor(x, dtype=torch.get_default_dtype()))
        x = torch.as_tensor(x, dtype=ref.dtype, device=ref.device)
        return self(x)

    def jvp(self, x: torch.Tensor, tangents: Mapping[str, torch.Tensor]):
        """Forward-mode derivative of the output along a parameter direction.

        ``tangents`` maps every name from ``named_parameters()`` to a tensor of
        the same shape. Returns ``(output, d_output)``.
        """
        params = {name: p.detach() for name, p in self.named_parameters()}
        missing = sorted(set(params) - set(tangents))
        if missing:
            raise ValueError(f"missing tangents for parameters: {missing}")
        directions = {name: tangents[name] for name in params}

        def run(p):
            return functional_call(self, p, (x,))

        return torch.func.jvp(run, (params,), (directions,))

    # ------------------------------------------------------------------ serialization
    def serialize(self) -> list:
        """Children's blobs in order, followed by this node's network blob."""
        return [_blob(child) for child in self.child_nodes] + [_blob(self.network)]

    def extra_repr(self) -> str:
        return f"num_children={len(self.child_nodes)}"
