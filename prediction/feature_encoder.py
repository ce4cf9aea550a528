"""
prediction/feature_encoder.py
=============================
Feature extraction for the junction exit model.

:class:`FeatureEncoder` converts an obstacle's latest feature, its junction
context and the (optional) ego pose into the fixed-length numeric vector
consumed by the pretrained network.

Layout (79 floats with the default policy)::

    [0..2]    obstacle: speed, acc, junction_range
    [3..6]    ego:      relative x, y; relative vx, vy (obstacle frame)
    [7..78]   junction: 12 bins × (exists, dx, dy, distance,
                                     heading_diff, cost)
"""

from __future__ import annotations

import logging
import math
from dataclasses import astuple, dataclass, fields
from typing import List, Optional

import numpy as np

from prediction.entities import EgoPoseProvider, JunctionExit, Obstacle, ObstacleFeature
from prediction.errors import FeatureSizeMismatch, MissingFeatureData
from prediction.geometry import Vec2, angle_diff, direction_bin, to_local_frame
from prediction.policy import DEFAULT_POLICY, JunctionMLPPolicy
from prediction.trajectory_cost import TrajectoryCostModel

log = logging.getLogger("feature_encoder")

OBSTACLE_COLUMNS = ("speed", "acc", "junction_range")
EGO_COLUMNS = ("ego_rel_x", "ego_rel_y", "ego_rel_vx", "ego_rel_vy")


@dataclass
class JunctionBin:
    """Encoded state of one 30° sector around the obstacle.

    The defaults mean "no exit in this direction" without pulling the
    network toward zero offsets.
    """

    exists: float = 0.0
    dx: float = 1.0
    dy: float = 1.0
    distance: float = 1.0
    heading_diff: float = 0.0
    cost: float = 0.0

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def values(self) -> List[float]:
        return list(astuple(self))


@dataclass
class FeatureVector:
    """Encoded obstacle, ego and junction blocks."""

    obstacle: List[float]
    ego: List[float]
    junction: List[JunctionBin]

    def to_list(self) -> List[float]:
        values = list(self.obstacle) + list(self.ego)
        for junction_bin in self.junction:
            values.extend(junction_bin.values())
        return values

    def to_array(self) -> np.ndarray:
        return np.asarray(self.to_list(), dtype=float)

    def __len__(self) -> int:
        return len(self.to_list())

    @staticmethod
    def column_names(num_bins: int = 12) -> List[str]:
        """Names of the flattened columns, in vector order."""
        names = list(OBSTACLE_COLUMNS) + list(EGO_COLUMNS)
        for k in range(num_bins):
            names.extend(f"bin{k}_{name}" for name in JunctionBin.field_names())
        return names


def localize_exit(feature: ObstacleFeature, junction_exit: JunctionExit) -> Vec2:
    """Exit offset in the obstacle frame (x axis along the raw velocity).

    Shared with :mod:`prediction.redistributor` so that encoding and
    smoothing always agree on an exit's bin.
    """
    offset = junction_exit.exit_position - feature.position
    return to_local_frame(offset, feature.raw_velocity_heading())


class FeatureEncoder:
    """Build the fixed-length input vector for an obstacle.

    Parameters
    ----------
    policy : JunctionMLPPolicy
        Block sizes, bin count and sampling constants.
    ego_pose_provider : EgoPoseProvider or None
        Source of the ego pose; ``None`` behaves like a provider that
        never knows the pose.
    cost_model : TrajectoryCostModel or None
        Curvature scorer; built from *policy* when omitted.
    """

    def __init__(
        self,
        policy: JunctionMLPPolicy = DEFAULT_POLICY,
        ego_pose_provider: Optional[EgoPoseProvider] = None,
        cost_model: Optional[TrajectoryCostModel] = None,
    ) -> None:
        self.policy = policy
        self.ego_pose_provider = ego_pose_provider
        self.cost_model = cost_model or TrajectoryCostModel(policy)

    # ── public API ────────────────────────────────────────────────────────

    def encode(self, obstacle: Obstacle, with_cost: bool = True) -> FeatureVector:
        """Return the feature vector of *obstacle*.

        With *with_cost* false the trajectory cost is not computed and every
        ``cost`` field stays 0 (used for single-exit junctions, where only
        the distances are consumed).

        Raises
        ------
        MissingFeatureData
            The obstacle has no latest feature, or one of its kinematic or
            junction values is NaN or infinite.
        FeatureSizeMismatch
            A block has the wrong length (e.g. the position is unknown).
            No partial vector is returned.
        """
        feature = obstacle.latest_feature
        if feature is None:
            raise MissingFeatureData(f"Obstacle [{obstacle.id}] has no latest feature.")
        self._check_finite(obstacle.id, feature)

        obstacle_values = self.obstacle_values(feature)
        self._check_size("obstacle", len(obstacle_values),
                         self.policy.obstacle_feature_size, obstacle.id)

        ego_values = self.ego_values(feature)
        self._check_size("ego vehicle", len(ego_values),
                         self.policy.ego_vehicle_feature_size, obstacle.id)

        junction_bins = self.junction_bins(feature, with_cost)
        self._check_size("junction",
                         len(junction_bins) * len(JunctionBin.field_names()),
                         self.policy.junction_feature_size, obstacle.id)

        return FeatureVector(obstacle_values, ego_values, junction_bins)

    # ── blocks ────────────────────────────────────────────────────────────

    def obstacle_values(self, feature: ObstacleFeature) -> List[float]:
        if feature.position is None:
            return []
        junction_range = (
            feature.junction_feature.junction_range
            if feature.junction_feature is not None else 0.0
        )
        return [feature.speed, feature.acc, junction_range]

    def ego_values(self, feature: ObstacleFeature) -> List[float]:
        pose = (
            self.ego_pose_provider.current_pose()
            if self.ego_pose_provider is not None else None
        )
        if pose is None or feature.position is None:
            sentinel = self.policy.ego_unknown_offset_m
            return [sentinel, sentinel, 0.0, 0.0]

        rel_position = pose.position - feature.position
        rel_velocity = pose.velocity.rotate(-feature.velocity_heading)
        log.debug("ego relative pos = (%.3f, %.3f) vel = (%.3f, %.3f)",
                  rel_position.x, rel_position.y, rel_velocity.x, rel_velocity.y)
        return [rel_position.x, rel_position.y, rel_velocity.x, rel_velocity.y]

    def junction_bins(self, feature: ObstacleFeature,
                      with_cost: bool = True) -> List[JunctionBin]:
        """One :class:`JunctionBin` per sector; empty when data is missing.

        Exits sharing a sector overwrite each other; the last one wins.
        """
        if feature.position is None or feature.junction_feature is None:
            return []
        junction = feature.junction_feature
        if junction.junction_range <= 0.0:
            raise MissingFeatureData(
                f"Junction [{junction.junction_id}] has non-positive range "
                f"{junction.junction_range}."
            )

        heading = feature.raw_velocity_heading()
        bins = [JunctionBin() for _ in range(self.policy.num_direction_bins)]
        for junction_exit in junction.junction_exits:
            local = localize_exit(feature, junction_exit)
            idx = direction_bin(local.x, local.y, self.policy.num_direction_bins)
            diff_heading = angle_diff(heading, junction_exit.exit_heading)
            distance = local.norm()
            cost = (
                self.cost_model.cost(local.x, local.y, diff_heading, feature.speed)
                if with_cost else 0.0
            )
            bins[idx] = JunctionBin(
                exists=1.0,
                dx=local.x / junction.junction_range,
                dy=local.y / junction.junction_range,
                distance=distance / junction.junction_range,
                heading_diff=diff_heading,
                cost=cost,
            )
        return bins

    # ── helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _check_finite(obstacle_id, feature: ObstacleFeature) -> None:
        """Raise :class:`MissingFeatureData` on any NaN or infinite input.

        A missing position is left to the obstacle block size check.
        """
        values = {
            "raw_velocity": feature.raw_velocity.as_tuple(),
            "velocity_heading": (feature.velocity_heading,),
            "speed": (feature.speed,),
            "acc": (feature.acc,),
        }
        if feature.position is not None:
            values["position"] = feature.position.as_tuple()
        junction = feature.junction_feature
        if junction is not None:
            values["junction_range"] = (junction.junction_range,)
            for junction_exit in junction.junction_exits:
                values[f"exit {junction_exit.exit_lane_id}"] = (
                    junction_exit.exit_position.as_tuple() + (junction_exit.exit_heading,)
                )
        for name, numbers in values.items():
            if not all(math.isfinite(n) for n in numbers):
                raise MissingFeatureData(
                    f"Obstacle [{obstacle_id}] has a non-finite {name}: {numbers}."
                )

    @staticmethod
    def _check_size(block: str, actual: int, expected: int, obstacle_id) -> None:
        if actual != expected:
            log.error("Obstacle [%s] has %d %s feature values, expected %d.",
                      obstacle_id, actual, block, expected)
            raise FeatureSizeMismatch(block, expected, actual, obstacle_id)
