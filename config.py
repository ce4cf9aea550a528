#!/usr/bin/env python3
"""
config.py
=========
Application-wide configuration constants.

Values can be overridden via environment variables (see :mod:`main`).
This module is a thin, import-safe leaf: it never imports from
other project packages.
"""

# ── Model ────────────────────────────────────────────────────────────────────
MODEL_REL_PATH: str = "models/junction_mlp_vehicle_model.json"
ENV_MODEL_PATH: str = "JUNCTION_MLP_MODEL_PATH"

# ── Trajectory sampling ──────────────────────────────────────────────────────
TRAJECTORY_TIME_RESOLUTION_S: float = 0.1
ENV_TIME_RESOLUTION: str = "JUNCTION_MLP_TIME_RESOLUTION"

# ── Logging ──────────────────────────────────────────────────────────────────
LOG_FILE: str = "junction_mlp.log"
EVALUATOR_DEBUG_LOG_FILE: str = "evaluator_debug.log"
ENV_LOG_LEVEL: str = "JUNCTION_MLP_LOG_LEVEL"

# ── API server ───────────────────────────────────────────────────────────────
API_HOST: str = "0.0.0.0"
API_PORT: int = 8000
