"""
prediction/errors.py
====================
Exception hierarchy for the junction evaluator.

Per-obstacle errors (:class:`MissingFeatureData`, :class:`FeatureSizeMismatch`,
:class:`ModelDimensionMismatch`) are caught by
:class:`~prediction.evaluator.JunctionMLPEvaluator` and logged; only
:class:`ModelLoadFailure` is allowed to escape, at construction time.
"""


class JunctionEvaluationError(Exception):
    """Base class for every error raised by the ``prediction`` package."""


class MissingFeatureData(JunctionEvaluationError):
    """The obstacle lacks the latest feature, its junction feature or exits."""


class FeatureSizeMismatch(JunctionEvaluationError):
    """An encoder block produced a different length than the model expects."""

    def __init__(self, block: str, expected: int, actual: int,
                 obstacle_id=None) -> None:
        self.block = block
        self.expected = expected
        self.actual = actual
        self.obstacle_id = obstacle_id
        super().__init__(
            f"Obstacle [{obstacle_id}] {block} block has {actual} values, "
            f"expected {expected}"
        )


class ModelDimensionMismatch(JunctionEvaluationError):
    """A vector does not fit the declared width of a layer."""


class ModelLoadFailure(JunctionEvaluationError):
    """The model file is missing, unreadable or internally inconsistent."""
