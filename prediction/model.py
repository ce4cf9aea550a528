"""
prediction/model.py
===================
Immutable feed-forward network description.

A :class:`Model` is an ordered tuple of :class:`Layer` objects.  Shapes are
validated once, when the model is built; the weight and bias arrays are
then flagged read-only so a loaded model can be shared between threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple

import numpy as np

from prediction.errors import ModelLoadFailure


class Activation(str, Enum):
    """Activation applied to a layer's output."""
    IDENTITY = "identity"
    RELU = "relu"
    SIGMOID = "sigmoid"
    TANH = "tanh"
    SOFTMAX = "softmax"

    @classmethod
    def parse(cls, name) -> "Activation":
        if isinstance(name, Activation):
            return name
        try:
            return cls(str(name).lower())
        except ValueError:
            raise ModelLoadFailure(f"Unknown activation {name!r}") from None


def _frozen_array(values, ndim: int, what: str) -> np.ndarray:
    arr = np.array(values, dtype=float)
    if arr.ndim != ndim:
        raise ModelLoadFailure(f"{what} must be {ndim}-D, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ModelLoadFailure(f"{what} contains non-finite values")
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class Layer:
    """One dense layer: ``activation(bias + input · weights)``.

    Parameters
    ----------
    weights : array-like, shape (rows, columns)
        Rows = previous layer width, columns = this layer width.
    bias : array-like, shape (columns,)
    activation : Activation or str
    """

    weights: np.ndarray
    bias: np.ndarray
    activation: Activation = Activation.IDENTITY

    def __post_init__(self) -> None:
        weights = _frozen_array(self.weights, 2, "layer weights")
        bias = _frozen_array(self.bias, 1, "layer bias")
        if weights.shape[0] == 0 or weights.shape[1] == 0:
            raise ModelLoadFailure(f"layer weights have empty shape {weights.shape}")
        if bias.shape[0] != weights.shape[1]:
            raise ModelLoadFailure(
                f"bias length {bias.shape[0]} != weight columns {weights.shape[1]}"
            )
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "bias", bias)
        object.__setattr__(self, "activation", Activation.parse(self.activation))

    @property
    def dim_input(self) -> int:
        return self.weights.shape[0]

    @property
    def dim_output(self) -> int:
        return self.weights.shape[1]


@dataclass(frozen=True, eq=False)
class Model:
    """Ordered layers of a pretrained network."""

    layers: Tuple[Layer, ...]

    def __post_init__(self) -> None:
        layers = tuple(self.layers)
        if not layers:
            raise ModelLoadFailure("model has no layers")
        for i, (prev, nxt) in enumerate(zip(layers, layers[1:])):
            if prev.dim_output != nxt.dim_input:
                raise ModelLoadFailure(
                    f"layer {i} outputs {prev.dim_output} values but layer "
                    f"{i + 1} expects {nxt.dim_input}"
                )
        object.__setattr__(self, "layers", layers)

    @classmethod
    def from_arrays(
        cls,
        weights: Sequence,
        biases: Sequence,
        activations: Sequence,
    ) -> "Model":
        if not (len(weights) == len(biases) == len(activations)):
            raise ModelLoadFailure(
                f"{len(weights)} weight blocks, {len(biases)} bias blocks and "
                f"{len(activations)} activations"
            )
        return cls(tuple(
            Layer(w, b, a) for w, b, a in zip(weights, biases, activations)
        ))

    @property
    def dim_input(self) -> int:
        return self.layers[0].dim_input

    @property
    def dim_output(self) -> int:
        return self.layers[-1].dim_output

    @property
    def num_layer(self) -> int:
        return len(self.layers)
