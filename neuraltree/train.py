"""neuraltree.train
==================
Supervised training of a neural decision tree on (features, class) pairs.
The whole tree is optimized jointly: every node's parameters come from
``tree.parameters()`` and receive gradients through the log-space mixture.
"""
from __future__ import annotations

import logging
from pathlib import Path
from types import SimpleNamespace
import sys

import torch
from torch.utils.data import DataLoader, TensorDataset
from tqdm.auto import tqdm

# Allow running as `python neuraltree/train.py` without installing the package.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from neuraltree.builder import build_binary_tree
from neuraltree.losses import accuracy, classification_loss
from neuraltree.logger import TBLogger
from neuraltree.serialization import load_tree, save_tree
from neuraltree.tree_node import TreeNode

logger = logging.getLogger(__name__)

DEFAULTS = {
    "depth": 2,
    "input_size": 4,
    "hidden_size": 8,
    "class_count": 3,
    "learning_rate": 1e-3,
    "batch_size": 32,
    "epochs": 10,
    "grad_clip": 1.0,
    "seed": 0,
    "device": "auto",
    "dataset_path": "data/dataset.pt",
    "run_name": "neuraltree",
    "checkpoint_dir": "checkpoints",
}

# -----------------------------------------------------------------------------
# helpers
# -----------------------------------------------------------------------------

def _load_config(path: str | Path) -> SimpleNamespace:
    import yaml
    with open(path, "r", encoding="utf8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"config {path} must be a mapping, got {type(raw).__name__}")
    cfg = SimpleNamespace(**{**DEFAULTS, **raw})

    for key in ("depth", "input_size", "hidden_size", "class_count", "batch_size", "epochs", "seed"):
        setattr(cfg, key, int(getattr(cfg, key)))
    cfg.learning_rate = float(cfg.learning_rate)
    cfg.grad_clip = None if cfg.grad_clip is None else float(cfg.grad_clip)

    if cfg.depth < 0:
        raise ValueError(f"depth must be >= 0, got {cfg.depth}")
    for key in ("input_size", "hidden_size", "class_count", "batch_size"):
        if getattr(cfg, key) <= 0:
            raise ValueError(f"{key} must be positive, got {getattr(cfg, key)}")
    return cfg


def _pick_device(requested: str) -> torch.device:
    """Honor the requested device, but fall back gracefully on 'auto'."""
    req = requested.lower()
    if req == "auto":
        if torch.cuda.is_available():
            return torch.device("cuda")
        if torch.backends.mps.is_available():
            return torch.device("mps")
        return torch.device("cpu")
    if req == "cuda":
        if not torch.cuda.is_available():
            raise RuntimeError("cfg.device set to 'cuda' but torch.cuda.is_available() is False")
        return torch.device("cuda")
    if req == "mps":
        if not torch.backends.mps.is_available():
            raise RuntimeError("cfg.device set to 'mps' but torch.backends.mps.is_available() is False")
        return torch.device("mps")
    return torch.device("cpu")


def _load_dataset(path: str | Path) -> TensorDataset:
    d = torch.load(path, map_location="cpu", weights_only=True)
    return TensorDataset(d["inputs"].float(), d["targets"].long())


# -----------------------------------------------------------------------------
# training
# -----------------------------------------------------------------------------

def train_step(tree: TreeNode, optim: torch.optim.Optimizer, inputs: torch.Tensor,
               targets: torch.Tensor, grad_clip: float | None = None) -> float:
    """One gradient step on a batch (or a single example); returns the loss."""
    optim.zero_grad(set_to_none=True)
    loss = classification_loss(tree(inputs), targets)
    loss.backward()
    if grad_clip is not None:
        torch.nn.utils.clip_grad_norm_(tree.parameters(), grad_clip)
    optim.step()
    return loss.item()


def fit(tree: TreeNode, dataset: TensorDataset, cfg: SimpleNamespace,
        tb: TBLogger | None = None, device: torch.device | None = None) -> TreeNode:
    device = device or torch.device("cpu")
    tree.to(device)
    loader = DataLoader(
        dataset,
        batch_size=cfg.batch_size,
        shuffle=True,
        pin_memory=device.type == "cuda",
    )
    optim = torch.optim.Adam(tree.parameters(), lr=cfg.learning_rate)
    global_step = 0

    # ------------------------------------------------------------------ epochs
    for epoch in range(cfg.epochs):
        tree.train()
        pbar = tqdm(loader, desc=f"epoch {epoch+1}/{cfg.epochs}")
        for inputs, targets in pbar:
            inputs, targets = inputs.to(device), targets.to(device)
            loss = train_step(tree, optim, inputs, targets, grad_clip=cfg.grad_clip)

            if tb is not None:
                tb.log(global_step, loss=loss)
            global_step += 1
            pbar.set_postfix(loss=f"{loss:.4f}")

        inputs, targets = dataset.tensors
        out = tree.evaluate(inputs.to(device))
        epoch_loss = classification_loss(out, targets.to(device)).item()
        epoch_acc = accuracy(out, targets.to(device))
        logger.info("epoch %d: nll=%.4f acc=%.3f", epoch + 1, epoch_loss, epoch_acc)
        if tb is not None:
            tb.log(epoch + 1, epoch_nll=epoch_loss, epoch_accuracy=epoch_acc)
            tb.log_parameters(epoch + 1, tree)

        # checkpoint each epoch
        save_tree(Path(cfg.checkpoint_dir) / f"tree_epoch{epoch+1}.pt", tree)

    return tree


# -----------------------------------------------------------------------------
# main
# -----------------------------------------------------------------------------

def train(cfg_path: str | Path = "configs/config.yaml", resume: str | None = None) -> TreeNode:
    cfg = _load_config(cfg_path)
    logger.info("Using config: %s", cfg)
    torch.manual_seed(cfg.seed)
    device = _pick_device(cfg.device)

    dataset = _load_dataset(cfg.dataset_path)
    if dataset.tensors[0].shape[-1] != cfg.input_size:
        raise ValueError(
            f"dataset has {dataset.tensors[0].shape[-1]} features but config says input_size={cfg.input_size}"
        )

    if resume is not None:
        tree = load_tree(resume)
        logger.info("Resumed from %s (%d nodes)", resume, tree.num_nodes())
    else:
        tree = build_binary_tree(cfg.depth, cfg.input_size, cfg.hidden_size, cfg.class_count)

    tb = TBLogger(run_name=f"{cfg.run_name}_d{cfg.depth}_lr{cfg.learning_rate}")
    try:
        fit(tree, dataset, cfg, tb=tb, device=device)
    finally:
        tb.close()
    return tree


if __name__ == "__main__":
    import argparse
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", type=str, default="configs/config.yaml")
    parser.add_argument("--resume", type=str, default=None,
                        help="Path to a saved tree to keep training.")
    args = parser.parse_args()
    train(args.config, resume=args.resume)
