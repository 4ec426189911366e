"""AdaGrad with Regularized Dual Averaging (Duchi et al., 2011).

Keeps the sum of hinge sub-gradients `g` and of their squares `h`.
Each touched weight is recomputed in closed form from the averaged
gradient; coordinates whose average stays within `lambda_` are set
to exactly zero (L1 truncation).
"""
from __future__ import annotations

from typing import Mapping

import numpy as np

from learner import (
    BinaryLearner,
    check_label,
    check_positive,
    check_timestep,
    hinge_loss,
    scalar_field,
    vector_field,
    zeros,
)


class AdaGradRDA(BinaryLearner):
    NAME = "ADAGRAD_RDA"

    def __init__(self, dim: int, eta: float = 0.1, lambda_: float = 0.01):
        super().__init__(dim)
        self._eta = check_positive("eta", eta)
        self._lambda = check_positive("lambda", lambda_)
        self.timestep = 0
        self.w = zeros(self.dim)
        self.h = zeros(self.dim)
        self.g = zeros(self.dim)

    @property
    def eta(self) -> float:
        return self._eta

    @property
    def lambda_(self) -> float:
        return self._lambda

    def weights(self) -> np.ndarray:
        return self.w

    def update(self, feature, label: int) -> bool:
        x = self._as_feature(feature)
        y = check_label(label)
        if hinge_loss(float(np.dot(self.w, x)), y) <= 0.0:
            return False

        self.timestep += 1
        t = self.timestep
        nz = np.flatnonzero(x)
        grad = -y * x[nz]
        self.g[nz] += grad
        self.h[nz] += grad * grad

        g = self.g[nz]
        # h > 0 on every non-zero coordinate
        eta = self._eta / np.sqrt(self.h[nz])
        u = np.abs(g) / t
        sign = np.where(g >= 0.0, 1.0, -1.0)
        self.w[nz] = np.where(u <= self._lambda, 0.0, -sign * eta * t * (u - self._lambda))
        return True

    # ----------------- persistence -----------------
    def to_fields(self):
        return {
            "w": self._vec(self.w),
            "h": self._vec(self.h),
            "g": self._vec(self.g),
            "dimension": self.dim,
            "eta": self._eta,
            "lambda": self._lambda,
            "timestep": self.timestep,
        }

    def _restore(self, fields: Mapping) -> None:
        dim = self._archive_dim(fields)
        eta = check_positive("eta", scalar_field(fields, "eta"))
        lam = check_positive("lambda", scalar_field(fields, "lambda"))
        timestep = check_timestep(scalar_field(fields, "timestep"))
        w = vector_field(fields, "w", dim)
        h = vector_field(fields, "h", dim)
        g = vector_field(fields, "g", dim)

        self._dim, self._eta, self._lambda = dim, eta, lam
        self.timestep = timestep
        self.w, self.h, self.g = w, h, g
