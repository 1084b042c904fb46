# scripts/evaluate.py
import argparse
from pathlib import Path
import sys

import torch
from torch.utils.tensorboard import SummaryWriter

# Allow running as `python scripts/evaluate.py` without installing the package.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from neuraltree.losses import accuracy, classification_loss
from neuraltree.serialization import load_tree
from neuraltree.tree_node import TreeNode


def evaluate(tree: TreeNode, inputs: torch.Tensor, targets: torch.Tensor):
    """Return (accuracy, mean NLL) of ``tree`` on the given examples."""
    log_probs = tree.evaluate(inputs)
    return accuracy(log_probs, targets), classification_loss(log_probs, targets).item()


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--checkpoint", required=True)
    parser.add_argument("--data", default="data/dataset.pt")
    parser.add_argument("--logdir", default="runs/eval")
    args = parser.parse_args()

    tree = load_tree(args.checkpoint)
    d = torch.load(args.data, map_location="cpu", weights_only=True)
    acc, nll = evaluate(tree, d["inputs"].float(), d["targets"].long())
    print(f"Nodes:    {tree.num_nodes()} (depth {tree.depth()})")
    print(f"Accuracy: {acc*100:.1f} %")
    print(f"Mean NLL: {nll:.4f}")

    # TensorBoard
    writer = SummaryWriter(log_dir=args.logdir)
    writer.add_scalar("accuracy", acc, 0)
    writer.add_scalar("nll", nll, 0)
    writer.close()
