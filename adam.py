"""ADAM-style hinge-loss learner (Kingma & Ba, 2015).

Hyperparameters are fixed; only the dimension is configurable.
beta1 decays with time as lambda^t * beta1, while the bias correction
uses the constant beta1.
"""
from __future__ import annotations

from typing import Mapping

import numpy as np

from learner import (
    BinaryLearner,
    check_label,
    check_timestep,
    hinge_loss,
    scalar_field,
    vector_field,
    zeros,
)

ALPHA = 0.001
BETA1 = 0.9
BETA2 = 0.999
EPSILON = 1e-8
LAMBDA = 0.99999999


class Adam(BinaryLearner):
    NAME = "ADAM"

    def __init__(self, dim: int):
        super().__init__(dim)
        self.timestep = 0
        self.w = zeros(self.dim)
        self.m = zeros(self.dim)
        self.v = zeros(self.dim)

    def weights(self) -> np.ndarray:
        return self.w

    def update(self, feature, label: int) -> bool:
        x = self._as_feature(feature)
        y = check_label(label)
        if hinge_loss(float(np.dot(self.w, x)), y) <= 0.0:
            return False

        beta1_t = LAMBDA ** self.timestep * BETA1
        self.timestep += 1
        t = self.timestep

        nz = np.flatnonzero(x)
        grad = -y * x[nz]
        self.m[nz] = beta1_t * self.m[nz] + (1.0 - beta1_t) * grad
        self.v[nz] = BETA2 * self.v[nz] + (1.0 - BETA2) * grad * grad
        m_hat = self.m[nz] / (1.0 - BETA1 ** t)
        v_hat = self.v[nz] / (1.0 - BETA2 ** t)
        self.w[nz] -= ALPHA * m_hat / (np.sqrt(v_hat) + EPSILON)
        return True

    # ----------------- persistence -----------------
    def to_fields(self):
        return {
            "w": self._vec(self.w),
            "m": self._vec(self.m),
            "v": self._vec(self.v),
            "dimension": self.dim,
            "timestep": self.timestep,
        }

    def _restore(self, fields: Mapping) -> None:
        dim = self._archive_dim(fields)
        timestep = check_timestep(scalar_field(fields, "timestep"))
        w = vector_field(fields, "w", dim)
        m = vector_field(fields, "m", dim)
        v = vector_field(fields, "v", dim)

        self._dim = dim
        self.timestep = timestep
        self.w, self.m, self.v = w, m, v
