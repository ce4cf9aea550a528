"""
prediction/model_repository.py
==============================
Load and save :class:`~prediction.model.Model` files.

Supported formats (chosen by file suffix):

``.json``
    ``{"dim_input": 79, "layers": [{"weights": [[...]], "bias": [...],
    "activation": "relu"}, ...]}``
``.npz``
    ``layer_<i>_weights`` / ``layer_<i>_bias`` arrays plus an
    ``activations`` string array.
``.pkl`` / ``.joblib``
    A joblib dump of either a :class:`Model` or a fitted scikit-learn
    ``MLPClassifier`` / ``MLPRegressor``.

Every failure surfaces as :class:`~prediction.errors.ModelLoadFailure`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import joblib
import numpy as np

from prediction.errors import ModelLoadFailure
from prediction.model import Activation, Layer, Model

log = logging.getLogger("model_repository")

PathLike = Union[str, Path]

_JOBLIB_SUFFIXES = (".pkl", ".joblib")

# scikit-learn activation names → ours
_SKLEARN_ACTIVATIONS: Dict[str, Activation] = {
    "identity": Activation.IDENTITY,
    "relu": Activation.RELU,
    "logistic": Activation.SIGMOID,
    "tanh": Activation.TANH,
    "softmax": Activation.SOFTMAX,
}


def model_from_sklearn(estimator: Any) -> Model:
    """Convert a fitted scikit-learn MLP into a :class:`Model`.

    Hidden layers share ``estimator.activation``; the output layer uses
    ``estimator.out_activation_``.
    """
    try:
        coefs = list(estimator.coefs_)
        intercepts = list(estimator.intercepts_)
        hidden = _SKLEARN_ACTIVATIONS[estimator.activation]
        output = _SKLEARN_ACTIVATIONS[estimator.out_activation_]
    except AttributeError as exc:
        raise ModelLoadFailure(f"estimator is not a fitted MLP: {exc}") from exc
    except KeyError as exc:
        raise ModelLoadFailure(f"unsupported scikit-learn activation {exc}") from exc
    activations = [hidden] * (len(coefs) - 1) + [output]
    return Model.from_arrays(coefs, intercepts, activations)


def _refreeze(model: Model) -> Model:
    """Re-run validation on an unpickled model (unpickling skips __post_init__)."""
    return Model(tuple(Layer(l.weights, l.bias, l.activation) for l in model.layers))


class ModelRepository:
    """Reads and writes pretrained network files."""

    def load(self, path: PathLike) -> Model:
        """Load the model at *path*.

        Raises
        ------
        ModelLoadFailure
            Missing file, unknown format, malformed content or layer
            dimensions that do not chain.
        """
        model_path = Path(path)
        if not model_path.is_file():
            raise ModelLoadFailure(f"Model not found: {model_path.resolve()}")

        suffix = model_path.suffix.lower()
        try:
            if suffix == ".json":
                model = self._load_json(model_path)
            elif suffix == ".npz":
                model = self._load_npz(model_path)
            elif suffix in _JOBLIB_SUFFIXES:
                model = self._load_joblib(model_path)
            else:
                raise ModelLoadFailure(f"Unsupported model format '{suffix}'")
        except ModelLoadFailure:
            raise
        except (OSError, ValueError, KeyError, TypeError, EOFError) as exc:
            raise ModelLoadFailure(f"Unable to load model file {model_path}: {exc}") from exc

        log.info("Succeeded in loading the model file: %s (%d layers, %d inputs)",
                 model_path, model.num_layer, model.dim_input)
        return model

    def dump(self, model: Model, path: PathLike) -> Path:
        """Write *model* to *path* in the format implied by its suffix."""
        model_path = Path(path)
        model_path.parent.mkdir(parents=True, exist_ok=True)
        suffix = model_path.suffix.lower()
        if suffix == ".json":
            with model_path.open("w", encoding="utf-8") as fh:
                json.dump(self._to_dict(model), fh)
        elif suffix == ".npz":
            arrays: Dict[str, np.ndarray] = {
                "activations": np.array([l.activation.value for l in model.layers]),
            }
            for i, layer in enumerate(model.layers):
                arrays[f"layer_{i}_weights"] = layer.weights
                arrays[f"layer_{i}_bias"] = layer.bias
            np.savez(model_path, **arrays)
        elif suffix in _JOBLIB_SUFFIXES:
            joblib.dump(model, model_path)
        else:
            raise ValueError(f"Unsupported model format '{suffix}'")
        return model_path

    # ── formats ───────────────────────────────────────────────────────────

    @staticmethod
    def _to_dict(model: Model) -> Dict[str, Any]:
        return {
            "dim_input": model.dim_input,
            "layers": [
                {
                    "weights": layer.weights.tolist(),
                    "bias": layer.bias.tolist(),
                    "activation": layer.activation.value,
                }
                for layer in model.layers
            ],
        }

    @staticmethod
    def _load_json(path: Path) -> Model:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        layers: List[Dict[str, Any]] = data["layers"]
        model = Model.from_arrays(
            [l["weights"] for l in layers],
            [l["bias"] for l in layers],
            [l.get("activation", "identity") for l in layers],
        )
        declared = data.get("dim_input")
        if declared is not None and int(declared) != model.dim_input:
            raise ModelLoadFailure(
                f"declared dim_input {declared} != first layer rows {model.dim_input}"
            )
        return model

    @staticmethod
    def _load_npz(path: Path) -> Model:
        with np.load(path, allow_pickle=False) as data:
            activations = [str(a) for a in data["activations"]]
            weights = [data[f"layer_{i}_weights"] for i in range(len(activations))]
            biases = [data[f"layer_{i}_bias"] for i in range(len(activations))]
        return Model.from_arrays(weights, biases, activations)

    @staticmethod
    def _load_joblib(path: Path) -> Model:
        obj = joblib.load(path)
        if isinstance(obj, Model):
            return _refreeze(obj)
        return model_from_sklearn(obj)
