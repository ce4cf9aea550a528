"""
prediction/api.py
=================
Optional FastAPI server that exposes the junction evaluator as a REST
endpoint.

Start the server::

    python main.py --serve            # → http://localhost:8000/evaluate

Endpoints
---------
``GET /health``
    Model dimensions.
``POST /ego_pose``
    Latest ego pose (position, velocity); used by later evaluations.
``POST /evaluate``
    One obstacle; returns the bin probabilities and the probability of
    each lane sequence, or ``status: "skipped"``.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import FastAPI
from pydantic import BaseModel, Field

from prediction.entities import MutableEgoPoseProvider
from prediction.evaluator import JunctionMLPEvaluator
from prediction.payload import ego_pose_from_dict, obstacle_from_dict, obstacle_result

log = logging.getLogger("api")

# ── Pydantic request schemas ─────────────────────────────────────────────────


class Vec2Model(BaseModel):
    x: float
    y: float


class JunctionExitModel(BaseModel):
    position: Vec2Model
    heading: float
    lane_id: str


class JunctionModel(BaseModel):
    junction_id: str
    junction_range: float
    exits: List[JunctionExitModel] = Field(default_factory=list)


class ObstacleModel(BaseModel):
    """Obstacle state submitted to ``/evaluate``."""
    id: int
    position: Optional[Vec2Model] = None
    raw_velocity: Vec2Model
    velocity_heading: float = 0.0
    speed: float
    acc: float = 0.0
    junction: Optional[JunctionModel] = None
    lane_sequences: List[List[str]] = Field(default_factory=list)


class EgoPoseModel(BaseModel):
    position: Vec2Model
    velocity: Vec2Model


# ── FastAPI application ──────────────────────────────────────────────────────


def create_app(
    evaluator: JunctionMLPEvaluator,
    ego_pose_provider: Optional[MutableEgoPoseProvider] = None,
) -> FastAPI:
    """Build the app around an already-loaded *evaluator*.

    *ego_pose_provider* must be the provider injected into the evaluator
    for ``/ego_pose`` updates to take effect.
    """
    app = FastAPI(
        title="Junction MLP Evaluator API",
        description="Predicts junction exit probabilities for tracked obstacles.",
        version="1.0",
    )

    @app.get("/health")
    def health():
        model = evaluator.model
        return {
            "status": "ok",
            "num_layer": model.num_layer,
            "dim_input": model.dim_input,
            "dim_output": model.dim_output,
        }

    @app.post("/ego_pose")
    def update_ego_pose(pose: EgoPoseModel):
        if ego_pose_provider is None:
            return {"status": "ignored"}
        ego_pose_provider.update(ego_pose_from_dict(pose.model_dump()))
        return {"status": "success"}

    @app.post("/evaluate")
    def evaluate(state: ObstacleModel):
        """Run the evaluator on the provided obstacle."""
        obstacle = obstacle_from_dict(state.model_dump())
        evaluator.evaluate(obstacle)
        result = obstacle_result(obstacle)
        log.debug("evaluate id=%s status=%s", obstacle.id, result["status"])
        return result

    return app
