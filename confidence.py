"""Mean/covariance state shared by NHERD, AROW and SCW.

The weight distribution is N(means, diag(covariances)); predictions use
the means. Covariances start at 1 and only shrink.
"""
from __future__ import annotations

from typing import Mapping

import numpy as np

from learner import BinaryLearner, Fields, ones, vector_field, zeros


class ConfidenceWeightedLearner(BinaryLearner):

    def __init__(self, dim: int):
        super().__init__(dim)
        self.means = zeros(self.dim)
        self.covariances = ones(self.dim)

    def weights(self) -> np.ndarray:
        return self.means

    def confidence(self, x: np.ndarray) -> float:
        """x^T Sigma x for the diagonal Sigma."""
        return float(np.dot(self.covariances, x * x))

    def _shrink(self, nz: np.ndarray, x: np.ndarray, beta: float) -> None:
        # Sigma -= beta * (Sigma x)(Sigma x)^T, diagonal part only
        sx = self.covariances[nz] * x[nz]
        self.covariances[nz] -= beta * sx * sx

    def _move_means(self, nz: np.ndarray, x: np.ndarray, alpha: float, label: int) -> None:
        self.means[nz] += alpha * label * self.covariances[nz] * x[nz]

    # ----------------- persistence -----------------
    def _state_fields(self) -> Fields:
        return {
            "covariances": self._vec(self.covariances),
            "means": self._vec(self.means),
            "dimension": self.dim,
        }

    def _read_state(self, fields: Mapping, dim: int):
        return (
            vector_field(fields, "covariances", dim),
            vector_field(fields, "means", dim),
        )
