# neuraltree/logger.py
from pathlib import Path

from torch import nn
from torch.utils.tensorboard import SummaryWriter


class TBLogger:
    """TensorBoard sink for training metrics; nothing else touches SummaryWriter."""

    def __init__(self, run_name: str = "neuraltree", root: str = "runs"):
        self.log_dir = Path(root) / run_name
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.w = SummaryWriter(log_dir=str(self.log_dir))

    def log(self, step: int, **scalars):
        """log(loss=..., accuracy=..., ...)"""
        for k, v in scalars.items():
            self.w.add_scalar(k, float(v), step)

    def log_parameters(self, step: int, tree: nn.Module):
        # one histogram per parameter, tagged by its path in the tree
        for name, p in tree.named_parameters():
            self.w.add_histogram(f"params/{name}", p.detach().cpu(), step)

    def close(self):
        self.w.flush()
        self.w.close()
