"""neuraltree.logexp
====================
Log-space combination of probability vectors.

Both helpers work on plain tensors, so the same code serves inference under
``torch.no_grad()`` and training with autograd.
"""

from __future__ import annotations

from typing import Sequence

import torch


def _shared_shift(v1: torch.Tensor, v2: torch.Tensor) -> torch.Tensor:
    """Largest absolute value seen in either vector, one scalar per row."""
    m1 = v1.detach().abs().amax(dim=-1, keepdim=True)
    m2 = v2.detach().abs().amax(dim=-1, keepdim=True)
    return torch.maximum(m1, m2)


def log_exp_sum(v1: torch.Tensor, v2: torch.Tensor) -> torch.Tensor:
    """Compute ``log(exp(v1) + exp(v2))`` element-wise.

    A single shift ``m`` per vector (the max absolute value across both
    inputs) is subtracted before exponentiating and added back after the log.
    This is looser than a per-element maximum: when entries of the *same*
    vector differ by more than the float range of ``exp``, the small entries
    underflow to ``-inf``.
    """
    if v1.shape != v2.shape:
        raise ValueError(f"shape mismatch: {tuple(v1.shape)} vs {tuple(v2.shape)}")
    m = _shared_shift(v1, v2)
    exp1 = torch.exp(v1 - m)
    exp2 = torch.exp(v2 - m)
    return torch.log(exp1 + exp2) + m


def log_exp_sum_all(vectors: Sequence[torch.Tensor]) -> torch.Tensor:
    """Fold :func:`log_exp_sum` over ``vectors`` left to right, in index order."""
    if len(vectors) == 0:
        raise ValueError("log_exp_sum_all() needs at least one vector")
    res = vectors[0]
    for v in vectors[1:]:
        res = log_exp_sum(res, v)
    return res
