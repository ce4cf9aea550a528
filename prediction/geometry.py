"""
prediction/geometry.py
======================
Planar helpers shared by the feature encoder and the probability
redistributor.

Both stages must agree on the obstacle frame and on the angular binning,
so the rotation and the bin computation live here and nowhere else.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Vec2:
    """A 2-D point or vector in world metres."""

    x: float = 0.0
    y: float = 0.0

    def __sub__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x - other.x, self.y - other.y)

    def norm(self) -> float:
        return math.hypot(self.x, self.y)

    def angle(self) -> float:
        """Direction of the vector, ``atan2(y, x)``."""
        return math.atan2(self.y, self.x)

    def rotate(self, angle: float) -> "Vec2":
        """Return the vector rotated counter-clockwise by *angle* radians."""
        c, s = math.cos(angle), math.sin(angle)
        return Vec2(c * self.x - s * self.y, s * self.x + c * self.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


def normalize_angle(angle: float) -> float:
    """Wrap *angle* into ``[-pi, pi)``."""
    a = math.fmod(angle + math.pi, 2.0 * math.pi)
    if a < 0.0:
        a += 2.0 * math.pi
    return a - math.pi


def angle_diff(from_angle: float, to_angle: float) -> float:
    """Signed smallest rotation taking *from_angle* onto *to_angle*."""
    return normalize_angle(to_angle - from_angle)


def direction_bin(dx: float, dy: float, num_bins: int = 12) -> int:
    """Sector index of the direction ``(dx, dy)``.

    Sector 0 starts at angle 0 and sectors grow counter-clockwise, so an
    angle just below zero falls in the last sector.  The result is always
    in ``[0, num_bins - 1]``, including the float edge where
    ``d + num_bins`` rounds up to ``num_bins``.
    """
    d_idx = math.atan2(dy, dx) / (2.0 * math.pi) * num_bins
    if d_idx < 0.0:
        d_idx += num_bins
    idx = int(math.floor(d_idx))
    return min(max(idx, 0), num_bins - 1)


def to_local_frame(offset: Vec2, heading: float) -> Vec2:
    """Express a world-frame *offset* in a frame whose x axis is *heading*."""
    return offset.rotate(-heading)
