"""
prediction/entities/junction.py
===============================
Junction context of an obstacle: the junction range used to normalise
offsets and the ordered list of exits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from prediction.geometry import Vec2


@dataclass(frozen=True)
class JunctionExit:
    """A point where a road leaves the junction.

    Parameters
    ----------
    exit_position : Vec2
        World-space position of the exit.
    exit_heading : float
        Travel direction at the exit (radians).
    exit_lane_id : str
        Lane that starts at the exit; matched against lane sequences.
    """

    exit_position: Vec2
    exit_heading: float
    exit_lane_id: str


@dataclass
class JunctionFeature:
    """Junction the obstacle is in or approaching."""

    junction_id: str
    junction_range: float
    junction_exits: List[JunctionExit] = field(default_factory=list)
