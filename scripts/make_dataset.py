"""make_dataset.py
===================
Creates a synthetic **Gaussian-blob classification dataset** compatible with
`neuraltree.train`: one cluster centre per class, isotropic noise around it.
Run:
    python scripts/make_dataset.py --samples 3000 --features 4 --classes 3
"""

from __future__ import annotations

from argparse import ArgumentParser
from pathlib import Path

import torch


def generate_dataset(samples: int, features: int, classes: int, spread: float,
                     out_path: Path, seed: int = 0):
    gen = torch.Generator().manual_seed(seed)
    centres = torch.randn(classes, features, generator=gen) * 2.0
    targets = torch.randint(0, classes, (samples,), generator=gen)
    inputs = centres[targets] + spread * torch.randn(samples, features, generator=gen)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    torch.save({"inputs": inputs, "targets": targets}, out_path)
    print(f"Saved {samples} samples ({features} features, {classes} classes) → {out_path}")


# -----------------------------------------------------------------------------
# CLI
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    parser = ArgumentParser()
    parser.add_argument("--samples", type=int, default=3000)
    parser.add_argument("--features", type=int, default=4)
    parser.add_argument("--classes", type=int, default=3)
    parser.add_argument("--spread", type=float, default=0.75,
                        help="standard deviation of the noise around each centre")
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--out", type=str, default="data/dataset.pt")
    args = parser.parse_args()

    generate_dataset(args.samples, args.features, args.classes, args.spread,
                     Path(args.out), seed=args.seed)
