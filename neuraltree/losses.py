"""neuraltree.losses
====================
Classification objectives on tree outputs.
The tree already emits log-probabilities, so no extra softmax is applied here.
"""

from __future__ import annotations

import torch
import torch.nn.functional as F


def classification_loss(log_probs: torch.Tensor, targets: torch.Tensor) -> torch.Tensor:
    """Mean negative log-likelihood of the target classes.

    Args
    -----
    log_probs : (batch, class_count) or (class_count,) tree output.
    targets : (batch,) integer class ids, or a 0-D id for a single example.
    """
    if log_probs.dim() == 1:
        log_probs = log_probs.unsqueeze(0)
        targets = targets.reshape(1)
    return F.nll_loss(log_probs, targets)


@torch.no_grad()
def accuracy(log_probs: torch.Tensor, targets: torch.Tensor) -> float:
    if log_probs.dim() == 1:
        log_probs = log_probs.unsqueeze(0)
        targets = targets.reshape(1)
    return (log_probs.argmax(dim=-1) == targets).float().mean().item()
