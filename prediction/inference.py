"""
prediction/inference.py
=======================
Forward pass of a :class:`~prediction.model.Model`.

Pure evaluation: no state, no learning.  An input whose length differs
from the model's declared input width yields an empty result, which the
caller treats as "no prediction".
"""

from __future__ import annotations

import logging
from typing import Callable, Dict

import numpy as np

from prediction.errors import ModelDimensionMismatch
from prediction.model import Activation, Layer, Model

log = logging.getLogger("inference")


def relu(x: np.ndarray) -> np.ndarray:
    return np.maximum(0.0, x)


def sigmoid(x: np.ndarray) -> np.ndarray:
    # exp overflow for very negative x still yields the correct limit 0.
    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-x))


def softmax(x: np.ndarray) -> np.ndarray:
    """Softmax over the whole vector, with max subtraction for stability."""
    shifted = np.exp(x - np.max(x))
    return shifted / np.sum(shifted)


_ACTIVATIONS: Dict[Activation, Callable[[np.ndarray], np.ndarray]] = {
    Activation.IDENTITY: lambda x: x,
    Activation.RELU: relu,
    Activation.SIGMOID: sigmoid,
    Activation.TANH: np.tanh,
    Activation.SOFTMAX: softmax,
}


def forward_layer(layer: Layer, layer_input: np.ndarray) -> np.ndarray:
    """Apply one layer; raises :class:`ModelDimensionMismatch` on a bad width."""
    if layer_input.shape != (layer.dim_input,):
        raise ModelDimensionMismatch(
            f"layer expects {layer.dim_input} inputs, got shape {layer_input.shape}"
        )
    output = layer.bias + layer_input @ layer.weights
    return _ACTIVATIONS[layer.activation](output)


def infer(vector, model: Model) -> np.ndarray:
    """Run *model* over *vector* and return the last layer's output.

    Parameters
    ----------
    vector : array-like of float
        Encoded features (see :class:`~prediction.feature_encoder.FeatureVector`).
    model : Model

    Returns
    -------
    np.ndarray
        Output of the last layer, or an empty array when the vector does
        not match ``model.dim_input``.
    """
    values = np.asarray(vector, dtype=float)
    if values.ndim != 1 or values.shape[0] != model.dim_input:
        log.debug("Model input dim = %d; feature value size = %s",
                  model.dim_input, values.shape)
        return np.empty(0)

    for layer in model.layers:
        values = forward_layer(layer, values)
    return values
