"""
prediction/trajectory_cost.py
=============================
Curvature cost of a short cubic trajectory from the obstacle to an exit.

Everything is expressed in the obstacle frame: the obstacle starts at the
origin moving along +x at its current speed and must arrive at the exit
offset with the exit's heading.  Each coordinate is a two-point Hermite
cubic (positions and velocities at both ends, no acceleration constraint).
The cost is the maximum over the sampled trajectory of
``|x'·y'' − y'·x''| / hypot(x', y')``, i.e. curvature times speed squared
divided by speed.
"""

from __future__ import annotations

import logging
import math
from typing import Tuple

import numpy as np

from prediction.policy import DEFAULT_POLICY, JunctionMLPPolicy

log = logging.getLogger("trajectory_cost")


def hermite_cubic(
    start: Tuple[float, float],
    end: Tuple[float, float],
    duration: float,
) -> np.ndarray:
    """Coefficients ``[a0, a1, a2, a3]`` of ``p(t) = Σ a_k t^k``.

    Parameters
    ----------
    start, end : (position, velocity)
        Boundary conditions at ``t = 0`` and ``t = duration``.
    duration : float
        Time at which *end* must be reached.  A non-positive duration
        degenerates to the linear motion ``p0 + v0·t``.
    """
    p0, v0 = start
    p1, v1 = end
    if duration <= 0.0:
        return np.array([p0, v0, 0.0, 0.0])
    t = duration
    a2 = (3.0 * (p1 - p0) - (2.0 * v0 + v1) * t) / (t * t)
    a3 = (2.0 * (p0 - p1) + (v0 + v1) * t) / (t * t * t)
    return np.array([p0, v0, a2, a3])


def evaluate_cubic(coeffs: np.ndarray, t, order: int = 0):
    """Value of the *order*-th derivative of the cubic at *t* (scalar or array)."""
    poly = np.polynomial.Polynomial(coeffs)
    if order:
        poly = poly.deriv(order)
    return poly(t)


class TrajectoryCostModel:
    """Scores how sharply an obstacle must turn to reach an exit."""

    def __init__(self, policy: JunctionMLPPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy

    def sample_times(self, travel_time: float) -> np.ndarray:
        """Sample instants ``0, step, 2·step, … ≤ travel_time``.

        When the count exceeds ``policy.max_trajectory_samples`` the capped
        number of samples is spread evenly over ``[0, travel_time]``, so the
        end of the trajectory is always sampled.  A non-finite travel time
        yields the single sample ``t = 0``.
        """
        step = self.policy.trajectory_time_resolution_s
        if not math.isfinite(travel_time) or travel_time <= 0.0:
            return np.zeros(1)
        count = int(math.floor(travel_time / step + 1e-9)) + 1
        cap = self.policy.max_trajectory_samples
        if count > cap:
            log.debug("travel_time=%.2f s needs %d samples, spreading %d",
                      travel_time, count, cap)
            if cap == 1:
                return np.zeros(1)
            return np.linspace(0.0, travel_time, cap)
        return np.arange(count, dtype=float) * step

    def cost(self, dx: float, dy: float, heading_diff: float, speed: float) -> float:
        """Maximum curvature proxy toward the exit at ``(dx, dy)``.

        Parameters
        ----------
        dx, dy : float
            Exit offset in the obstacle frame (metres).
        heading_diff : float
            Exit heading relative to the obstacle heading (radians).
        speed : float
            Obstacle speed (m/s), floored at ``policy.min_speed_mps``.
        """
        speed = max(self.policy.min_speed_mps, speed)
        travel_time = math.hypot(dx, dy) / speed

        x_coeffs = hermite_cubic(
            (0.0, speed), (dx, math.cos(heading_diff) * speed), travel_time)
        y_coeffs = hermite_cubic(
            (0.0, 0.0), (dy, math.sin(heading_diff) * speed), travel_time)

        t = self.sample_times(travel_time)
        x_1 = evaluate_cubic(x_coeffs, t, 1)
        x_2 = evaluate_cubic(x_coeffs, t, 2)
        y_1 = evaluate_cubic(y_coeffs, t, 1)
        y_2 = evaluate_cubic(y_coeffs, t, 2)

        numerator = np.abs(x_1 * y_2 - y_1 * x_2)
        velocity = np.hypot(x_1, y_1)
        # Samples where the fitted trajectory momentarily stops contribute 0.
        ratio = np.divide(numerator, velocity,
                          out=np.zeros_like(numerator), where=velocity > 1e-12)
        return float(np.max(ratio))
