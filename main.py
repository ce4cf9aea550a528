#!/usr/bin/env python3
"""
main.py
=======
Command-line entry point.

Evaluate every obstacle of a scenario file and print the results::

    python main.py scenario.json --model models/junction_mlp_vehicle_model.json

Serve the HTTP API instead::

    python main.py --serve

Scenario file layout: ``{"ego_pose": {...} | null, "obstacles": [...]}``
(see :mod:`prediction.payload` for the obstacle payload).
"""

import argparse
import json
import logging
import os
import sys

import config
from logging_setup import setup_logging
from prediction.entities import MutableEgoPoseProvider
from prediction.errors import ModelLoadFailure
from prediction.evaluator import JunctionMLPEvaluator
from prediction.payload import ego_pose_from_dict, obstacle_from_dict, obstacle_result
from prediction.policy import JunctionMLPPolicy

project_root = os.path.abspath(os.path.dirname(__file__))


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Junction exit MLP evaluator")
    parser.add_argument("scenario", nargs="?", help="scenario JSON file")
    parser.add_argument(
        "--model",
        default=os.environ.get(
            config.ENV_MODEL_PATH,
            os.path.join(project_root, config.MODEL_REL_PATH),
        ),
        help="model file (.json, .npz, .pkl, .joblib)",
    )
    parser.add_argument("--serve", action="store_true", help="run the HTTP API")
    parser.add_argument("--host", default=config.API_HOST)
    parser.add_argument("--port", type=int, default=config.API_PORT)
    parser.add_argument(
        "--log-level", default=os.environ.get(config.ENV_LOG_LEVEL, "INFO"))
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    setup_logging(getattr(logging, str(args.log_level).upper(), logging.INFO))
    log = logging.getLogger("main")

    policy = JunctionMLPPolicy(
        trajectory_time_resolution_s=float(os.environ.get(
            config.ENV_TIME_RESOLUTION, config.TRAJECTORY_TIME_RESOLUTION_S)),
    )
    ego_pose_provider = MutableEgoPoseProvider()

    try:
        evaluator = JunctionMLPEvaluator(
            model_path=args.model,
            ego_pose_provider=ego_pose_provider,
            policy=policy,
        )
    except ModelLoadFailure as exc:
        log.error("Cannot start: %s", exc)
        return 1

    if args.serve:
        import uvicorn
        from prediction.api import create_app

        log.info("Starting junction evaluator API on http://%s:%d …", args.host, args.port)
        uvicorn.run(create_app(evaluator, ego_pose_provider), host=args.host, port=args.port)
        return 0

    if not args.scenario:
        log.error("A scenario file is required unless --serve is given.")
        return 2

    with open(args.scenario, "r", encoding="utf-8") as fh:
        scenario = json.load(fh)

    ego_pose_provider.update(ego_pose_from_dict(scenario.get("ego_pose")))
    obstacles = [obstacle_from_dict(o) for o in scenario.get("obstacles", [])]
    evaluated = evaluator.evaluate_all(obstacles)
    log.info("Evaluated %d of %d obstacles", evaluated, len(obstacles))

    json.dump([obstacle_result(o) for o in obstacles], sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
