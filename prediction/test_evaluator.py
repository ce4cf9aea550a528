#!/usr/bin/env python3
"""
End-to-end tests for the junction exit evaluator.
"""

from __future__ import annotations

import json
import math
import os
import tempfile
import threading
import unittest
from unittest import mock

import numpy as np
import pandas as pd

from prediction.entities import (
    JunctionExit,
    JunctionFeature,
    LaneGraph,
    LaneSegment,
    LaneSequence,
    Obstacle,
    ObstacleFeature,
)
from prediction.errors import ModelLoadFailure
from prediction.evaluator import JunctionMLPEvaluator
from prediction.feature_output import FeatureOutput
from prediction.geometry import Vec2
from prediction.model import Layer, Model
from prediction.model_repository import ModelRepository

_BIAS = np.linspace(-0.6, 0.5, 12)


def _softmax_model(bias=_BIAS, dim_input: int = 79) -> Model:
    """Single softmax layer whose output does not depend on the input."""
    return Model((Layer(np.zeros((dim_input, 12)), bias, "softmax"),))


def _expected_probabilities(bias=_BIAS) -> np.ndarray:
    e = np.exp(bias - bias.max())
    return e / e.sum()


def _junction_obstacle(exits=None, position=Vec2(0.0, 0.0), obstacle_id=1) -> Obstacle:
    if exits is None:
        exits = [
            JunctionExit(Vec2(10.0, 1.0), 0.0, "L_A"),        # bin 0
            JunctionExit(Vec2(-10.0, -1.0), math.pi, "L_B"),  # bin 6
        ]
    lane_graph = LaneGraph([
        LaneSequence([LaneSegment("L_IN"), LaneSegment("L_A")]),
        LaneSequence([LaneSegment("L_IN"), LaneSegment("L_B")]),
        LaneSequence([LaneSegment("L_IN"), LaneSegment("L_X")]),
    ])
    return Obstacle(
        id=obstacle_id,
        latest_feature=ObstacleFeature(
            position=position,
            raw_velocity=Vec2(5.0, 0.0),
            speed=5.0,
            junction_feature=JunctionFeature("J1", 20.0, exits),
            lane_graph=lane_graph,
        ),
    )


def _lane_probabilities(obstacle: Obstacle):
    return [seq.probability for seq in obstacle.latest_feature.lane_graph.lane_sequences]


class EvaluateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.evaluator = JunctionMLPEvaluator(_softmax_model())

    def test_end_to_end_smoothing_per_exit_lane(self) -> None:
        obstacle = _junction_obstacle()
        self.evaluator.evaluate(obstacle)

        p = _expected_probabilities()
        np.testing.assert_allclose(obstacle.latest_feature.junction_mlp_probability, p)
        lane_a, lane_b, lane_x = _lane_probabilities(obstacle)
        self.assertAlmostEqual(lane_a, 0.5 * p[0] + 0.25 * p[11] + 0.25 * p[1])
        self.assertAlmostEqual(lane_b, 0.5 * p[6] + 0.25 * p[5] + 0.25 * p[7])
        self.assertEqual(lane_x, 0.0)

    def test_single_exit_bypasses_network_and_cost(self) -> None:
        obstacle = _junction_obstacle([JunctionExit(Vec2(8.0, 6.0), 0.5, "L_A")])
        expected = [
            b.distance
            for b in self.evaluator.encode_features(obstacle, with_cost=False).junction
        ]

        with mock.patch.object(self.evaluator, "infer") as infer_mock, \
                mock.patch.object(self.evaluator.encoder.cost_model, "cost") as cost_mock:
            self.evaluator.evaluate(obstacle)
        infer_mock.assert_not_called()
        cost_mock.assert_not_called()

        self.assertEqual(obstacle.latest_feature.junction_mlp_probability, expected)
        self.assertAlmostEqual(expected[1], 0.5)  # hypot(8, 6) / 20, at ~37°
        self.assertAlmostEqual(_lane_probabilities(obstacle)[0],
                               0.5 * 0.5 + 0.25 * 1.0 + 0.25 * 1.0)

    def test_missing_position_leaves_obstacle_untouched(self) -> None:
        obstacle = _junction_obstacle(position=None)
        with self.assertLogs("evaluator", level="ERROR"):
            self.evaluator.evaluate(obstacle)
        self.assertEqual(obstacle.latest_feature.junction_mlp_probability, [])
        self.assertEqual(_lane_probabilities(obstacle), [0.0, 0.0, 0.0])

    def test_missing_junction_or_feature_is_skipped(self) -> None:
        no_junction = _junction_obstacle()
        no_junction.latest_feature.junction_feature = None
        self.evaluator.evaluate(no_junction)
        self.assertEqual(no_junction.latest_feature.junction_mlp_probability, [])

        no_exits = _junction_obstacle(exits=[])
        self.evaluator.evaluate(no_exits)
        self.assertEqual(no_exits.latest_feature.junction_mlp_probability, [])

        self.evaluator.evaluate(Obstacle(id=9))

    def test_model_width_mismatch_gives_no_prediction(self) -> None:
        evaluator = JunctionMLPEvaluator(_softmax_model(dim_input=10))
        obstacle = _junction_obstacle()
        evaluator.evaluate(obstacle)
        self.assertEqual(obstacle.latest_feature.junction_mlp_probability, [])
        self.assertEqual(_lane_probabilities(obstacle), [0.0, 0.0, 0.0])

    def test_evaluate_all_isolates_failures(self) -> None:
        broken = _junction_obstacle(position=None, obstacle_id=1)
        good = _junction_obstacle(obstacle_id=2)
        count = self.evaluator.evaluate_all([broken, good])
        self.assertEqual(count, 1)
        self.assertEqual(len(good.latest_feature.junction_mlp_probability), 12)

    def test_nan_exit_is_skipped_and_batch_continues(self) -> None:
        broken = _junction_obstacle(
            exits=[
                JunctionExit(Vec2(float("nan"), 1.0), 0.0, "L_A"),
                JunctionExit(Vec2(-10.0, -1.0), math.pi, "L_B"),
            ],
            obstacle_id=1,
        )
        good = _junction_obstacle(obstacle_id=2)
        with self.assertLogs("evaluator", level="ERROR"):
            count = self.evaluator.evaluate_all([broken, good])
        self.assertEqual(count, 1)
        self.assertEqual(broken.latest_feature.junction_mlp_probability, [])
        self.assertEqual(_lane_probabilities(broken), [0.0, 0.0, 0.0])
        self.assertEqual(len(good.latest_feature.junction_mlp_probability), 12)

    def test_non_finite_obstacle_state_does_not_raise(self) -> None:
        obstacle = _junction_obstacle(position=Vec2(float("inf"), 0.0))
        with self.assertLogs("evaluator", level="ERROR"):
            self.evaluator.evaluate(obstacle)
        self.assertEqual(obstacle.latest_feature.junction_mlp_probability, [])

    def test_evaluate_without_lane_sequences_still_writes_bins(self) -> None:
        obstacle = _junction_obstacle()
        obstacle.latest_feature.lane_graph = LaneGraph()
        self.evaluator.evaluate(obstacle)
        self.assertEqual(len(obstacle.latest_feature.junction_mlp_probability), 12)


class ModelLifecycleTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_construction_requires_a_valid_model(self) -> None:
        with self.assertRaises(ModelLoadFailure):
            JunctionMLPEvaluator()
        with self.assertRaises(ModelLoadFailure):
            JunctionMLPEvaluator(model_path=os.path.join(self.tmp, "missing.json"))
        with self.assertRaises(ModelLoadFailure):
            JunctionMLPEvaluator({"layers": []})

    def test_load_from_path_and_reload(self) -> None:
        repo = ModelRepository()
        first = repo.dump(_softmax_model(), os.path.join(self.tmp, "first.json"))
        second_bias = np.zeros(12)
        second = repo.dump(_softmax_model(second_bias), os.path.join(self.tmp, "second.npz"))

        evaluator = JunctionMLPEvaluator(model_path=str(first))
        old_model = evaluator.model
        evaluator.reload(str(second))
        self.assertIsNot(evaluator.model, old_model)

        obstacle = _junction_obstacle()
        evaluator.evaluate(obstacle)
        np.testing.assert_allclose(obstacle.latest_feature.junction_mlp_probability,
                                   np.full(12, 1.0 / 12))

        current = evaluator.model
        with self.assertRaises(ModelLoadFailure):
            evaluator.reload(os.path.join(self.tmp, "missing.json"))
        self.assertIs(evaluator.model, current)

    def test_concurrent_evaluations_during_reload(self) -> None:
        repo = ModelRepository()
        path = repo.dump(_softmax_model(np.zeros(12)), os.path.join(self.tmp, "m.json"))
        evaluator = JunctionMLPEvaluator(_softmax_model())
        errors = []

        def worker() -> None:
            try:
                for _ in range(30):
                    obstacle = _junction_obstacle()
                    evaluator.evaluate(obstacle)
                    total = sum(obstacle.latest_feature.junction_mlp_probability)
                    if abs(total - 1.0) > 1e-9:
                        errors.append(total)
            except Exception as exc:  # surfaced through the assertion below
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for _ in range(5):
            evaluator.reload(str(path))
        for t in threads:
            t.join()
        self.assertEqual(errors, [])


class OfflineFeatureOutputTests(unittest.TestCase):
    def test_records_features_instead_of_predicting(self) -> None:
        output = FeatureOutput()
        evaluator = JunctionMLPEvaluator(_softmax_model(), feature_output=output)
        obstacle = _junction_obstacle(obstacle_id=42)

        evaluator.evaluate(obstacle)

        self.assertEqual(obstacle.latest_feature.junction_mlp_probability, [])
        self.assertEqual(len(output), 1)
        frame = output.to_frame()
        self.assertEqual(frame.shape, (1, 81))
        self.assertEqual(frame.loc[0, "obstacle_id"], 42)
        self.assertEqual(frame.loc[0, "junction_id"], "J1")
        self.assertEqual(frame.loc[0, "bin0_exists"], 1.0)
        self.assertEqual(frame.loc[0, "bin6_exists"], 1.0)
        self.assertEqual(frame.loc[0, "ego_rel_x"], 100.0)

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "out", "junction_features.csv")
            self.assertEqual(output.write_csv(path), 1)
            self.assertEqual(len(output), 0)
            self.assertEqual(len(pd.read_csv(path)), 1)


class ScenarioFileTests(unittest.TestCase):
    def test_bundled_scenario_parses_and_evaluates(self) -> None:
        from prediction.payload import obstacle_from_dict, obstacle_result

        root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
        with open(os.path.join(root, "scenarios", "four_way_junction.json"),
                  encoding="utf-8") as fh:
            scenario = json.load(fh)
        obstacles = [obstacle_from_dict(o) for o in scenario["obstacles"]]

        evaluator = JunctionMLPEvaluator(_softmax_model())
        self.assertEqual(evaluator.evaluate_all(obstacles), 1)
        results = [obstacle_result(o) for o in obstacles]
        self.assertEqual(results[0]["status"], "success")
        self.assertEqual(results[1]["status"], "skipped")
        self.assertTrue(all(s["probability"] > 0.0 for s in results[0]["lane_sequences"]))


if __name__ == "__main__":
    unittest.main()
