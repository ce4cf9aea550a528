"""
prediction/entities/ego.py
==========================
Ego-vehicle pose and the providers injected into the feature encoder.

A provider returning ``None`` is a valid state: the encoder then writes
the "unknown / far" sentinel instead of failing.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from prediction.geometry import Vec2


@dataclass(frozen=True)
class EgoPose:
    position: Vec2
    velocity: Vec2


class EgoPoseProvider:
    """Interface of anything that knows the current ego pose."""

    def current_pose(self) -> Optional[EgoPose]:
        raise NotImplementedError


class FixedEgoPoseProvider(EgoPoseProvider):
    """Always returns the same pose (or ``None``)."""

    def __init__(self, pose: Optional[EgoPose] = None) -> None:
        self._pose = pose

    def current_pose(self) -> Optional[EgoPose]:
        return self._pose


class MutableEgoPoseProvider(EgoPoseProvider):
    """Holds the latest pose pushed by a localization source.

    Updates and reads may come from different threads; the pose is
    immutable so publishing it is a single reference swap.
    """

    def __init__(self, pose: Optional[EgoPose] = None) -> None:
        self._lock = threading.Lock()
        self._pose = pose

    def update(self, pose: Optional[EgoPose]) -> None:
        with self._lock:
            self._pose = pose

    def current_pose(self) -> Optional[EgoPose]:
        return self._pose
