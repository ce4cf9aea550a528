"""
prediction/redistributor.py
===========================
Map the network's per-bin probabilities onto concrete lane sequences.

Each junction exit gets the probability of its own bin blended with its
two circular neighbours; every lane sequence then takes the smoothed
probability of the *last* of its segments that starts a known exit.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from prediction.entities import LaneGraph, ObstacleFeature
from prediction.feature_encoder import JunctionBin, localize_exit
from prediction.geometry import direction_bin
from prediction.policy import DEFAULT_POLICY, JunctionMLPPolicy

log = logging.getLogger("redistributor")


def fallback_probabilities(junction_bins: Sequence[JunctionBin]) -> List[float]:
    """Per-bin probabilities for a single-exit junction.

    Classifying a single exit is meaningless, so each bin's normalised
    ``distance`` field is used directly.
    """
    return [junction_bin.distance for junction_bin in junction_bins]


class ProbabilityRedistributor:
    """Smooths bin probabilities and writes them onto lane sequences."""

    def __init__(self, policy: JunctionMLPPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy

    def smooth(self, probabilities: Sequence[float], idx: int) -> float:
        """Weighted mean of bin *idx* and its circular neighbours."""
        n = self.policy.num_direction_bins
        prev_idx = (idx - 1) % n
        post_idx = (idx + 1) % n
        return (
            self.policy.smoothing_center_weight * probabilities[idx]
            + self.policy.smoothing_neighbor_weight * probabilities[prev_idx]
            + self.policy.smoothing_neighbor_weight * probabilities[post_idx]
        )

    def exit_probabilities(
        self,
        feature: ObstacleFeature,
        probabilities: Sequence[float],
    ) -> Dict[str, float]:
        """Smoothed probability keyed by ``exit_lane_id``.

        The bin of each exit is recomputed with the encoder's frame helper
        so both stages agree on where an exit lies.
        """
        if len(probabilities) != self.policy.num_direction_bins:
            raise ValueError(
                f"expected {self.policy.num_direction_bins} bin probabilities, "
                f"got {len(probabilities)}"
            )
        result: Dict[str, float] = {}
        for junction_exit in feature.junction_feature.junction_exits:
            local = localize_exit(feature, junction_exit)
            idx = direction_bin(local.x, local.y, self.policy.num_direction_bins)
            result[junction_exit.exit_lane_id] = self.smooth(probabilities, idx)
        return result

    @staticmethod
    def assign(lane_graph: LaneGraph, exit_probabilities: Dict[str, float]) -> int:
        """Write probabilities onto *lane_graph* in place.

        This is the only mutation of the caller's graph: a sequence's
        ``probability`` is set from its last segment whose lane id is a known
        exit lane.  Sequences without such a segment are left untouched.

        Returns
        -------
        int
            Number of lane sequences that received a probability.
        """
        assigned = 0
        for lane_sequence in lane_graph.lane_sequences:
            matched = None
            for lane_id in lane_sequence.lane_ids:
                if lane_id in exit_probabilities:
                    matched = lane_id
            if matched is not None:
                lane_sequence.probability = exit_probabilities[matched]
                assigned += 1
        return assigned
