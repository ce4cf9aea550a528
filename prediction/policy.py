"""
prediction/policy.py
====================
Tunable constants of the junction evaluator.  Every value lives in the
frozen :class:`JunctionMLPPolicy` dataclass so that a different pretrained
model (or a different sampling resolution) can be used without touching
code.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class JunctionMLPPolicy:
    """Immutable bag of every evaluator parameter.

    Groups: feature layout, trajectory sampling, ego sentinel,
    probability smoothing.
    """

    # ── Feature layout ────────────────────────────────────────────────────
    num_direction_bins: int = 12
    """Number of 30° sectors around the obstacle heading."""

    obstacle_feature_size: int = 3
    """speed, acceleration, junction range."""

    ego_vehicle_feature_size: int = 4
    """Relative position x/y and rotated relative velocity x/y."""

    junction_bin_size: int = 6
    """Fields per direction bin (see :class:`~prediction.feature_encoder.JunctionBin`)."""

    # ── Trajectory sampling ───────────────────────────────────────────────
    trajectory_time_resolution_s: float = 0.1
    """Time step between curvature samples along the fitted cubic."""

    min_speed_mps: float = 0.1
    """Speed floor used when computing the travel time to an exit."""

    max_trajectory_samples: int = 100_000
    """Hard cap on curvature samples per exit.

    Covers about 10 km at the speed floor with the default step.  When a
    travel time needs more, the capped samples are spread evenly over the
    whole trajectory.
    """

    # ── Ego vehicle ───────────────────────────────────────────────────────
    ego_unknown_offset_m: float = 100.0
    """Relative x/y written when no ego pose is available."""

    # ── Probability smoothing ─────────────────────────────────────────────
    smoothing_center_weight: float = 0.5
    """Weight of the exit's own bin."""

    smoothing_neighbor_weight: float = 0.25
    """Weight of each adjacent bin (previous and next, circular)."""

    def __post_init__(self) -> None:
        step = self.trajectory_time_resolution_s
        if not math.isfinite(step) or step <= 0.0:
            raise ValueError(
                f"trajectory_time_resolution_s must be positive, got {step}"
            )
        if self.max_trajectory_samples < 1:
            raise ValueError("max_trajectory_samples must be at least 1")
        if self.num_direction_bins < 3:
            raise ValueError("num_direction_bins must be at least 3")
        total = self.smoothing_center_weight + 2.0 * self.smoothing_neighbor_weight
        if abs(total - 1.0) > 1e-12:
            raise ValueError(f"smoothing weights sum to {total}, expected 1.0")

    @property
    def junction_feature_size(self) -> int:
        return self.num_direction_bins * self.junction_bin_size

    @property
    def feature_size(self) -> int:
        """Total length of the encoded feature vector (79 by default)."""
        return (
            self.obstacle_feature_size
            + self.ego_vehicle_feature_size
            + self.junction_feature_size
        )


DEFAULT_POLICY = JunctionMLPPolicy()
