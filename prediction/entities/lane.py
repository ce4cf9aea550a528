"""
prediction/entities/lane.py
===========================
Candidate paths (lane sequences) of an obstacle.

The graph is owned by the caller.  The evaluator writes exactly one field,
:attr:`LaneSequence.probability`, on the sequences that end on a known
junction exit lane.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class LaneSegment:
    lane_id: str


@dataclass
class LaneSequence:
    """Ordered list of lane segments plus a mutable probability."""

    lane_segments: List[LaneSegment] = field(default_factory=list)
    probability: float = 0.0

    @property
    def lane_ids(self) -> List[str]:
        return [seg.lane_id for seg in self.lane_segments]


@dataclass
class LaneGraph:
    lane_sequences: List[LaneSequence] = field(default_factory=list)
