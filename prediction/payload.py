"""
prediction/payload.py
=====================
Conversion between plain JSON-like dicts and the ``prediction.entities``
classes, used by the CLI (:mod:`main`) and the HTTP API.

Obstacle payload::

    {
      "id": 7,
      "position": {"x": 0, "y": 0},          # optional
      "raw_velocity": {"x": 5, "y": 0},
      "velocity_heading": 0.0,
      "speed": 5.0, "acc": 0.0,
      "junction": {
        "junction_id": "J1", "junction_range": 20.0,
        "exits": [{"position": {"x": 10, "y": 1}, "heading": 0.0,
                   "lane_id": "L_A"}]
      },
      "lane_sequences": [["L_IN", "L_A"], ["L_IN", "L_B"]]
    }
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from prediction.entities import (
    EgoPose,
    JunctionExit,
    JunctionFeature,
    LaneGraph,
    LaneSegment,
    LaneSequence,
    Obstacle,
    ObstacleFeature,
)
from prediction.geometry import Vec2


def parse_vec2(data: Optional[Dict[str, Any]]) -> Optional[Vec2]:
    """``{"x": .., "y": ..}`` → :class:`Vec2`; ``None`` stays ``None``."""
    if data is None:
        return None
    return Vec2(float(data.get("x", 0.0)), float(data.get("y", 0.0)))


def junction_from_dict(data: Dict[str, Any]) -> JunctionFeature:
    exits = [
        JunctionExit(
            exit_position=parse_vec2(e.get("position")) or Vec2(),
            exit_heading=float(e.get("heading", 0.0)),
            exit_lane_id=str(e["lane_id"]),
        )
        for e in data.get("exits", [])
    ]
    return JunctionFeature(
        junction_id=str(data.get("junction_id", "")),
        junction_range=float(data.get("junction_range", 0.0)),
        junction_exits=exits,
    )


def obstacle_from_dict(data: Dict[str, Any]) -> Obstacle:
    """Build an :class:`Obstacle` from its JSON payload (see module doc)."""
    junction = data.get("junction")
    lane_graph = LaneGraph([
        LaneSequence([LaneSegment(str(lane_id)) for lane_id in lane_ids])
        for lane_ids in data.get("lane_sequences", [])
    ])
    feature = ObstacleFeature(
        position=parse_vec2(data.get("position")),
        raw_velocity=parse_vec2(data.get("raw_velocity")) or Vec2(),
        velocity_heading=float(data.get("velocity_heading", 0.0)),
        speed=float(data.get("speed", 0.0)),
        acc=float(data.get("acc", 0.0)),
        junction_feature=junction_from_dict(junction) if junction else None,
        lane_graph=lane_graph,
    )
    return Obstacle(id=data.get("id", 0), latest_feature=feature)


def ego_pose_from_dict(data: Optional[Dict[str, Any]]) -> Optional[EgoPose]:
    if not data:
        return None
    return EgoPose(
        position=parse_vec2(data.get("position")) or Vec2(),
        velocity=parse_vec2(data.get("velocity")) or Vec2(),
    )


def obstacle_result(obstacle: Obstacle) -> Dict[str, Any]:
    """Evaluation outputs of *obstacle* as a JSON-serialisable dict."""
    feature = obstacle.latest_feature
    if feature is None or not feature.junction_mlp_probability:
        return {"id": obstacle.id, "status": "skipped"}
    return {
        "id": obstacle.id,
        "status": "success",
        "junction_mlp_probability": list(feature.junction_mlp_probability),
        "lane_sequences": [
            {"lane_ids": seq.lane_ids, "probability": seq.probability}
            for seq in feature.lane_graph.lane_sequences
        ],
    }
