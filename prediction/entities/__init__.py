"""
prediction/entities: data classes read and written by the evaluator
====================================================================

Classes
-------
ObstacleFeature, Obstacle
    Latest kinematic state of a tracked object and its id.
JunctionExit, JunctionFeature
    The junction the obstacle is approaching and its exits.
LaneSegment, LaneSequence, LaneGraph
    Candidate paths; ``LaneSequence.probability`` is written in place.
EgoPose, EgoPoseProvider
    Optional pose of the ego vehicle, injected into the encoder.
"""

from .ego import EgoPose, EgoPoseProvider, FixedEgoPoseProvider, MutableEgoPoseProvider
from .junction import JunctionExit, JunctionFeature
from .lane import LaneGraph, LaneSegment, LaneSequence
from .obstacle import Obstacle, ObstacleFeature

__all__ = [
    "EgoPose",
    "EgoPoseProvider",
    "FixedEgoPoseProvider",
    "MutableEgoPoseProvider",
    "JunctionExit",
    "JunctionFeature",
    "LaneGraph",
    "LaneSegment",
    "LaneSequence",
    "Obstacle",
    "ObstacleFeature",
]
