"""Normal Herding (Crammer & Lee, 2010) with diagonal covariance.

`diagonal` picks how the covariance is updated:
    0 : full     (diagonal of the full-matrix update)
    1 : exact
    2 : project
    3 : drop
"""
from __future__ import annotations

from typing import Mapping

import numpy as np

from confidence import ConfidenceWeightedLearner
from learner import check_choice, check_label, check_positive, scalar_field

NHERD_DIAGONALS = (0, 1, 2, 3)


def _full_covariance(cov, conf, x, C):
    v = cov * x
    return cov - v * v * (C * C * conf + 2.0 * C) / (1.0 + C * conf) ** 2


def _exact_covariance(cov, conf, x, C):
    return cov / (1.0 + C * x * x * cov) ** 2


def _project_covariance(cov, conf, x, C):
    return 1.0 / (1.0 / cov + (2.0 * C + C * C * conf) * x * x)


def _drop_covariance(cov, conf, x, C):
    return cov - (cov * x) ** 2 * (C * C * conf + 2.0 * C) / (1.0 + C * conf) ** 2


_COVARIANCE = {
    0: _full_covariance,
    1: _exact_covariance,
    2: _project_covariance,
    3: _drop_covariance,
}


class NHERD(ConfidenceWeightedLearner):
    NAME = "NHERD"

    def __init__(self, dim: int, C: float = 1.0, diagonal: int = 0):
        super().__init__(dim)
        self._C = check_positive("C", C)
        self._diagonal = check_choice("diagonal", diagonal, NHERD_DIAGONALS)
        self._compute_covariance = _COVARIANCE[self._diagonal]

    @property
    def C(self) -> float:
        return self._C

    @property
    def diagonal(self) -> int:
        return self._diagonal

    def update(self, feature, label: int) -> bool:
        x = self._as_feature(feature)
        y = check_label(label)
        margin = float(np.dot(self.means, x))
        if margin * y >= 1.0:
            return False

        conf = self.confidence(x)
        alpha = max(0.0, 1.0 - y * margin) / (conf + 1.0 / self._C)

        nz = np.flatnonzero(x)
        self._move_means(nz, x, alpha, y)
        self.covariances[nz] = self._compute_covariance(
            self.covariances[nz], conf, x[nz], self._C
        )
        return True

    # ----------------- persistence -----------------
    def to_fields(self):
        fields = self._state_fields()
        fields.update(C=self._C, diagonal=self._diagonal)
        return fields

    def _restore(self, fields: Mapping) -> None:
        dim = self._archive_dim(fields)
        C = check_positive("C", scalar_field(fields, "C"))
        diagonal = check_choice("diagonal", scalar_field(fields, "diagonal"), NHERD_DIAGONALS)
        covariances, means = self._read_state(fields, dim)

        self._dim, self._C, self._diagonal = dim, C, diagonal
        self._compute_covariance = _COVARIANCE[diagonal]
        self.covariances, self.means = covariances, means
