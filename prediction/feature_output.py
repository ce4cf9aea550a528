"""
prediction/feature_output.py
============================
Offline collection of encoded feature vectors.

When an evaluator is given a :class:`FeatureOutput`, it records each
encoded vector here instead of running the network.  The rows become a
pandas DataFrame (one named column per feature) and can be written to CSV
as a learning dataset.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Any, Dict, List

import pandas as pd

from prediction.feature_encoder import FeatureVector

log = logging.getLogger("feature_output")


class FeatureOutput:
    """Thread-safe accumulator of ``(obstacle, feature vector)`` rows."""

    def __init__(self, num_bins: int = 12) -> None:
        self._columns = FeatureVector.column_names(num_bins)
        self._rows: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._rows)

    def insert(self, obstacle_id, junction_id: str, vector: FeatureVector) -> None:
        values = vector.to_list()
        if len(values) != len(self._columns):
            raise ValueError(
                f"feature vector has {len(values)} values, "
                f"expected {len(self._columns)}"
            )
        row: Dict[str, Any] = {"obstacle_id": obstacle_id, "junction_id": junction_id}
        row.update(zip(self._columns, values))
        with self._lock:
            self._rows.append(row)

    def to_frame(self) -> pd.DataFrame:
        with self._lock:
            rows = list(self._rows)
        return pd.DataFrame(rows, columns=["obstacle_id", "junction_id"] + self._columns)

    def write_csv(self, file_path: str) -> int:
        """Write every row to *file_path* and clear the buffer.

        Returns the number of rows written.
        """
        frame = self.to_frame()
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        frame.to_csv(file_path, index=False)
        with self._lock:
            del self._rows[:len(frame)]
        log.info("Saved %d junction feature rows to '%s'.", len(frame), file_path)
        return len(frame)
