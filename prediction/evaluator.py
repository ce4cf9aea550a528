"""
prediction/evaluator.py
=======================
Junction exit evaluator: Encode → Infer-or-Fallback → Redistribute.

:class:`JunctionMLPEvaluator` owns the immutable pretrained model and the
three pipeline stages.  For every obstacle near a junction it writes

* ``latest_feature.junction_mlp_probability`` (one value per bin), and
* ``LaneSequence.probability`` for each sequence ending on a known exit.

Errors are isolated per obstacle: a malformed obstacle is logged and left
untouched.  Only a model that fails to load is fatal, at construction.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

import numpy as np

from prediction.entities import EgoPoseProvider, Obstacle
from prediction.errors import (
    JunctionEvaluationError,
    ModelDimensionMismatch,
    ModelLoadFailure,
)
from prediction.feature_encoder import FeatureEncoder, FeatureVector
from prediction.feature_output import FeatureOutput
from prediction.inference import infer
from prediction.model import Model
from prediction.model_repository import ModelRepository
from prediction.policy import DEFAULT_POLICY, JunctionMLPPolicy
from prediction.redistributor import ProbabilityRedistributor, fallback_probabilities

log = logging.getLogger("evaluator")


class JunctionMLPEvaluator:
    """Predict junction exits for obstacles and score their lane sequences.

    Parameters
    ----------
    model : Model or None
        Pretrained network.  Required unless *model_path* is given.
    model_path : str or None
        File loaded through *repository* when *model* is omitted.
    repository : ModelRepository or None
        Loader used for *model_path* and :meth:`reload`.
    ego_pose_provider : EgoPoseProvider or None
        Injected into the feature encoder.
    policy : JunctionMLPPolicy
        Feature layout and smoothing constants.
    feature_output : FeatureOutput or None
        When set, :meth:`evaluate` only records encoded vectors (offline
        dataset collection) and does not compute probabilities.
    """

    def __init__(
        self,
        model: Optional[Model] = None,
        *,
        model_path: Optional[str] = None,
        repository: Optional[ModelRepository] = None,
        ego_pose_provider: Optional[EgoPoseProvider] = None,
        policy: JunctionMLPPolicy = DEFAULT_POLICY,
        feature_output: Optional[FeatureOutput] = None,
    ) -> None:
        self.repository = repository or ModelRepository()
        if model is None:
            if model_path is None:
                raise ModelLoadFailure("either a model or a model_path is required")
            model = self.repository.load(model_path)
        if not isinstance(model, Model):
            raise ModelLoadFailure(f"expected a Model, got {type(model).__name__}")

        self.policy = policy
        self.encoder = FeatureEncoder(policy, ego_pose_provider)
        self.redistributor = ProbabilityRedistributor(policy)
        self.feature_output = feature_output

        self._reload_lock = threading.Lock()
        self._model = model
        self._check_model_layout(model)

    # ── model ─────────────────────────────────────────────────────────────

    @property
    def model(self) -> Model:
        return self._model

    def reload(self, model_path: str) -> Model:
        """Load a new model and publish it in one reference swap.

        In-flight evaluations keep the model they already read.  A failing
        load raises :class:`ModelLoadFailure` and keeps the current model.
        """
        with self._reload_lock:
            model = self.repository.load(model_path)
            self._check_model_layout(model)
            self._model = model
        log.info("Model reloaded from %s", model_path)
        return model

    def _check_model_layout(self, model: Model) -> None:
        if model.dim_input != self.policy.feature_size:
            log.warning("Model input dim %d differs from feature size %d; "
                        "multi-exit obstacles will get no prediction.",
                        model.dim_input, self.policy.feature_size)
        if model.dim_output != self.policy.num_direction_bins:
            log.warning("Model output dim %d differs from %d direction bins.",
                        model.dim_output, self.policy.num_direction_bins)

    # ── pipeline stages ───────────────────────────────────────────────────

    def encode_features(self, obstacle: Obstacle, with_cost: bool = True) -> FeatureVector:
        """Encode *obstacle*; see :meth:`FeatureEncoder.encode`."""
        return self.encoder.encode(obstacle, with_cost)

    def infer(self, vector) -> np.ndarray:
        """Forward pass of the current model (empty array on width mismatch)."""
        if isinstance(vector, FeatureVector):
            vector = vector.to_array()
        return infer(vector, self._model)

    # ── entry points ──────────────────────────────────────────────────────

    def evaluate(self, obstacle: Obstacle) -> None:
        """Write bin and lane-sequence probabilities onto *obstacle*.

        Never raises for a malformed obstacle; it is logged and skipped.
        """
        try:
            self._evaluate(obstacle)
        except JunctionEvaluationError:
            log.exception("Obstacle [%s] evaluation failed", obstacle.id)

    def _evaluate(self, obstacle: Obstacle) -> bool:
        obstacle_id = obstacle.id
        feature = obstacle.latest_feature
        if feature is None:
            log.error("Obstacle [%s] has no latest feature.", obstacle_id)
            return False
        if feature.junction_feature is None or not feature.junction_feature.junction_exits:
            log.debug("Obstacle [%s] has no junction_exit.", obstacle_id)
            return False

        multi_exit = len(feature.junction_feature.junction_exits) > 1
        try:
            vector = self.encode_features(
                obstacle, with_cost=multi_exit or self.feature_output is not None)
        except JunctionEvaluationError as exc:
            log.error("Obstacle [%s] skipped: %s", obstacle_id, exc)
            return False

        if self.feature_output is not None:
            self.feature_output.insert(
                obstacle_id, feature.junction_feature.junction_id, vector)
            log.debug("Saved extracted features of obstacle [%s] for learning.",
                      obstacle_id)
            return False

        if multi_exit:
            try:
                probabilities = self.infer(vector)
            except ModelDimensionMismatch as exc:
                log.error("Obstacle [%s] skipped: %s", obstacle_id, exc)
                return False
        else:
            probabilities = np.asarray(fallback_probabilities(vector.junction))

        if probabilities.shape != (self.policy.num_direction_bins,):
            log.error("Obstacle [%s] got %d probabilities, expected %d; no prediction.",
                      obstacle_id, probabilities.size, self.policy.num_direction_bins)
            return False

        feature.junction_mlp_probability = [float(p) for p in probabilities]

        if not feature.lane_graph.lane_sequences:
            log.error("Obstacle [%s] has no lane sequences.", obstacle_id)
            return True

        exit_probabilities = self.redistributor.exit_probabilities(feature, probabilities)
        assigned = self.redistributor.assign(feature.lane_graph, exit_probabilities)
        log.debug("Obstacle [%s]: %d of %d lane sequences assigned.", obstacle_id,
                  assigned, len(feature.lane_graph.lane_sequences))
        return True

    def evaluate_all(self, obstacles: Iterable[Obstacle]) -> int:
        """Evaluate every obstacle; one failure never stops the others.

        Returns the number of obstacles that received bin probabilities.
        """
        evaluated = 0
        for obstacle in obstacles:
            try:
                if self._evaluate(obstacle):
                    evaluated += 1
            except JunctionEvaluationError:
                log.exception("Obstacle [%s] evaluation failed", obstacle.id)
        return evaluated
