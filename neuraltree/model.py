from __future__ import annotations

import torch
import torch.nn as nn

from neuraltree.errors import DecodeError


class ScoringNetwork(nn.Module):
    """Base class for the small network that sits at every tree node.

    Subclasses map an input vector to log-probabilities: one per class at a
    leaf, one per child at a branch. ``parameters()`` comes from ``nn.Module``.
    """

    serializer_type: str = ""

    @property
    def output_size(self) -> int:
        raise NotImplementedError

    def randomize(self) -> None:
        raise NotImplementedError

    def serialize(self) -> dict:
        raise NotImplementedError

    @classmethod
    def deserialize(cls, payload) -> "ScoringNetwork":
        raise NotImplementedError


class DenseScoringNetwork(ScoringNetwork):
    """Linear -> Tanh -> Linear -> LogSoftmax."""

    serializer_type = "neuraltree.DenseScoringNetwork"

    def __init__(self, input_size: int, hidden_size: int, output_size: int):
        super().__init__()
        self.input_size = input_size
        self.hidden_size = hidden_size
        self._output_size = output_size
        self.model = nn.Sequential(
            nn.Linear(input_size, hidden_size),
            nn.Tanh(),
            nn.Linear(hidden_size, output_size),
            nn.LogSoftmax(dim=-1),
        )

    @property
    def output_size(self) -> int:
        return self._output_size

    def forward(self, x):
        return self.model(x)

    def randomize(self) -> None:
        for layer in self.model:
            if hasattr(layer, "reset_parameters"):
                layer.reset_parameters()

    def serialize(self) -> dict:
        return {
            "input_size": self.input_size,
            "hidden_size": self.hidden_size,
            "output_size": self._output_size,
            "state": {k: v.detach().cpu().clone() for k, v in self.state_dict().items()},
        }

    @classmethod
    def deserialize(cls, payload) -> "DenseScoringNetwork":
        if not isinstance(payload, dict):
            raise DecodeError("dense network payload must be a dict")
        sizes = []
        for key in ("input_size", "hidden_size", "output_size"):
            val = payload.get(key)
            if not isinstance(val, int) or isinstance(val, bool) or val <= 0:
                raise DecodeError(f"dense network field {key!r} must be a positive int, got {val!r}")
            sizes.append(val)
        state = payload.get("state")
        if not isinstance(state, dict) or not all(isinstance(v, torch.Tensor) for v in state.values()):
            raise DecodeError("dense network state must be a dict of tensors")

        in_size, hidden, out = sizes
        expected = {
            "model.0.weight": (hidden, in_size),
            "model.0.bias": (hidden,),
            "model.2.weight": (out, hidden),
            "model.2.bias": (out,),
        }
        if set(state) != set(expected):
            raise DecodeError(f"dense network state keys {sorted(state)} != {sorted(expected)}")
        for key, shape in expected.items():
            if not state[key].is_floating_point():
                raise DecodeError(f"dense network tensor {key!r} must be floating point")
            if tuple(state[key].shape) != shape:
                raise DecodeError(
                    f"dense network tensor {key!r} has shape {tuple(state[key].shape)}, expected {shape}"
                )

        net = cls(*sizes)
        net.load_state_dict(state, strict=True)
        return net

    def __repr__(self):
        return (
            f"DenseScoringNetwork(in={self.input_size}, hidden={self.hidden_size}, "
            f"out={self._output_size})"
        )
