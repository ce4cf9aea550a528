#!/usr/bin/env python3
"""
Tests for the 79-value junction feature vector.
"""

from __future__ import annotations

import math
import unittest

from prediction.entities import (
    EgoPose,
    FixedEgoPoseProvider,
    JunctionExit,
    JunctionFeature,
    Obstacle,
    ObstacleFeature,
)
from prediction.errors import FeatureSizeMismatch, MissingFeatureData
from prediction.feature_encoder import FeatureEncoder, FeatureVector, JunctionBin
from prediction.geometry import Vec2


def _obstacle(exits, position=Vec2(0.0, 0.0), velocity=Vec2(5.0, 0.0),
              junction_range=20.0) -> Obstacle:
    return Obstacle(
        id=1,
        latest_feature=ObstacleFeature(
            position=position,
            raw_velocity=velocity,
            velocity_heading=velocity.angle(),
            speed=velocity.norm(),
            acc=0.3,
            junction_feature=JunctionFeature("J1", junction_range, list(exits)),
        ),
    )


EXIT_AHEAD = JunctionExit(Vec2(10.0, 1.0), 0.0, "L_A")
EXIT_BEHIND = JunctionExit(Vec2(-10.0, -1.0), math.pi, "L_B")


class FeatureEncoderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.encoder = FeatureEncoder()

    def test_vector_layout(self) -> None:
        vector = self.encoder.encode(_obstacle([EXIT_AHEAD, EXIT_BEHIND]))
        values = vector.to_list()

        self.assertEqual(len(values), 79)
        self.assertEqual(len(FeatureVector.column_names()), 79)
        self.assertEqual(values[:3], [5.0, 0.3, 20.0])
        self.assertEqual(values[3:7], [100.0, 100.0, 0.0, 0.0])

    def test_exit_bins_are_filled(self) -> None:
        bins = self.encoder.encode(_obstacle([EXIT_AHEAD, EXIT_BEHIND])).junction

        ahead = bins[0]
        self.assertEqual(ahead.exists, 1.0)
        self.assertAlmostEqual(ahead.dx, 0.5)
        self.assertAlmostEqual(ahead.dy, 0.05)
        self.assertAlmostEqual(ahead.distance, math.hypot(10.0, 1.0) / 20.0)
        self.assertAlmostEqual(ahead.heading_diff, 0.0)
        self.assertGreaterEqual(ahead.cost, 0.0)

        behind = bins[6]
        self.assertEqual(behind.exists, 1.0)
        self.assertAlmostEqual(abs(behind.heading_diff), math.pi)

        for k in (1, 2, 3, 4, 5, 7, 8, 9, 10, 11):
            self.assertEqual(bins[k], JunctionBin())
        self.assertEqual(JunctionBin().values(), [0.0, 1.0, 1.0, 1.0, 0.0, 0.0])

    def test_exit_offsets_use_obstacle_heading(self) -> None:
        north_exit = JunctionExit(Vec2(0.0, 10.0), math.pi / 2, "L_N")
        bins = self.encoder.encode(
            _obstacle([north_exit], velocity=Vec2(0.0, 5.0))).junction
        self.assertEqual(bins[0].exists, 1.0)
        self.assertAlmostEqual(bins[0].dx, 0.5)
        self.assertAlmostEqual(bins[0].dy, 0.0)

    def test_later_exit_overwrites_same_bin(self) -> None:
        farther = JunctionExit(Vec2(20.0, 2.0), 0.0, "L_C")
        bins = self.encoder.encode(_obstacle([EXIT_AHEAD, farther])).junction
        self.assertAlmostEqual(bins[0].dx, 1.0)
        self.assertEqual(sum(b.exists for b in bins), 1.0)

    def test_missing_position_fails_whole_vector(self) -> None:
        obstacle = _obstacle([EXIT_AHEAD], position=None)
        with self.assertRaises(FeatureSizeMismatch) as ctx:
            self.encoder.encode(obstacle)
        self.assertEqual(ctx.exception.block, "obstacle")
        self.assertEqual(ctx.exception.actual, 0)

    def test_missing_latest_feature(self) -> None:
        with self.assertRaises(MissingFeatureData):
            self.encoder.encode(Obstacle(id=2))

    def test_non_positive_junction_range(self) -> None:
        with self.assertRaises(MissingFeatureData):
            self.encoder.encode(_obstacle([EXIT_AHEAD], junction_range=0.0))

    def test_non_finite_inputs_rejected(self) -> None:
        nan = float("nan")
        cases = {
            "exit": _obstacle([EXIT_AHEAD, JunctionExit(Vec2(nan, 1.0), 0.0, "L_N")]),
            "exit heading": _obstacle([JunctionExit(Vec2(10.0, 1.0), nan, "L_N")]),
            "position": _obstacle([EXIT_AHEAD], position=Vec2(0.0, float("inf"))),
            "velocity": _obstacle([EXIT_AHEAD], velocity=Vec2(nan, 0.0)),
            "junction range": _obstacle([EXIT_AHEAD], junction_range=nan),
        }
        for name, obstacle in cases.items():
            with self.subTest(name), self.assertRaises(MissingFeatureData):
                self.encoder.encode(obstacle)

    def test_ego_block_is_relative_and_rotated(self) -> None:
        pose = EgoPose(position=Vec2(10.0, 5.0), velocity=Vec2(0.0, 3.0))
        encoder = FeatureEncoder(ego_pose_provider=FixedEgoPoseProvider(pose))
        obstacle = _obstacle([EXIT_AHEAD], position=Vec2(0.0, 0.0),
                             velocity=Vec2(0.0, 4.0))

        ego = encoder.encode(obstacle).ego
        self.assertAlmostEqual(ego[0], 10.0)
        self.assertAlmostEqual(ego[1], 5.0)
        self.assertAlmostEqual(ego[2], 3.0)
        self.assertAlmostEqual(ego[3], 0.0)

    def test_provider_without_pose_uses_sentinel(self) -> None:
        encoder = FeatureEncoder(ego_pose_provider=FixedEgoPoseProvider(None))
        ego = encoder.encode(_obstacle([EXIT_AHEAD])).ego
        self.assertEqual(ego, [100.0, 100.0, 0.0, 0.0])

    def test_cost_can_be_skipped(self) -> None:
        turn = JunctionExit(Vec2(10.0, 10.0), math.pi / 2, "L_T")
        with_cost = self.encoder.encode(_obstacle([turn])).junction[1]
        without = self.encoder.encode(_obstacle([turn]), with_cost=False).junction[1]
        self.assertGreater(with_cost.cost, 0.0)
        self.assertEqual(without.cost, 0.0)
        self.assertEqual(without.distance, with_cost.distance)


if __name__ == "__main__":
    unittest.main()
