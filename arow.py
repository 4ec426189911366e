"""Adaptive Regularization of Weight Vectors (Crammer, Kulesza & Dredze, 2009).

Diagonal-covariance variant. `r` trades off the loss against staying
close to the current distribution; larger r means smaller updates.
"""
from __future__ import annotations

from typing import Mapping

import numpy as np

from confidence import ConfidenceWeightedLearner
from learner import check_label, check_positive, hinge_loss, scalar_field


class AROW(ConfidenceWeightedLearner):
    NAME = "AROW"

    def __init__(self, dim: int, r: float = 1.0):
        super().__init__(dim)
        self._r = check_positive("r", r)

    @property
    def r(self) -> float:
        return self._r

    def update(self, feature, label: int) -> bool:
        x = self._as_feature(feature)
        y = check_label(label)
        loss = hinge_loss(float(np.dot(self.means, x)), y)
        if loss <= 0.0:
            return False

        conf = self.confidence(x)
        beta = 1.0 / (conf + self._r)
        alpha = loss * beta

        nz = np.flatnonzero(x)
        self._move_means(nz, x, alpha, y)
        self._shrink(nz, x, beta)
        return True

    # ----------------- persistence -----------------
    def to_fields(self):
        fields = self._state_fields()
        fields["r"] = self._r
        return fields

    def _restore(self, fields: Mapping) -> None:
        dim = self._archive_dim(fields)
        r = check_positive("r", scalar_field(fields, "r"))
        covariances, means = self._read_state(fields, dim)

        self._dim, self._r = dim, r
        self.covariances, self.means = covariances, means
