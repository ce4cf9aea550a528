"""
prediction/entities/obstacle.py
===============================
Latest kinematic feature of a tracked obstacle.

Not to be confused with a perception track: this class only carries the
fields the junction evaluator reads, plus the two outputs it writes
(``junction_mlp_probability`` and the lane-sequence probabilities).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from prediction.entities.junction import JunctionFeature
from prediction.entities.lane import LaneGraph
from prediction.geometry import Vec2


@dataclass
class ObstacleFeature:
    """Kinematic state of an obstacle at its latest timestamp.

    Attributes
    ----------
    position : Vec2 or None
        World-space position.  ``None`` when perception did not provide one.
    raw_velocity : Vec2
        Velocity vector (m/s); its direction defines the junction frame.
    velocity_heading : float
        Smoothed heading (radians) used to rotate the ego velocity.
    speed, acc : float
        Scalar speed (m/s) and acceleration (m/s²).
    junction_feature : JunctionFeature or None
        Junction context, absent when the obstacle is not near a junction.
    lane_graph : LaneGraph
        Candidate paths, written in place by the evaluator.
    junction_mlp_probability : list[float]
        Per-bin probabilities written by the evaluator.
    """

    position: Optional[Vec2] = None
    raw_velocity: Vec2 = field(default_factory=Vec2)
    velocity_heading: float = 0.0
    speed: float = 0.0
    acc: float = 0.0
    junction_feature: Optional[JunctionFeature] = None
    lane_graph: LaneGraph = field(default_factory=LaneGraph)
    junction_mlp_probability: List[float] = field(default_factory=list)

    def raw_velocity_heading(self) -> float:
        """Heading of the raw velocity vector; the junction-frame x axis."""
        return self.raw_velocity.angle()


@dataclass
class Obstacle:
    id: int
    latest_feature: Optional[ObstacleFeature] = None
