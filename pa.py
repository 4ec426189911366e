"""Passive-Aggressive binary classifier (Crammer et al., 2006).

`select` picks the step size tau:
    0 : PA      tau = loss / |x|^2
    1 : PA-I    tau = min(C, loss / |x|^2)
    2 : PA-II   tau = loss / (|x|^2 + C / 2)
"""
from __future__ import annotations

from typing import Callable, Mapping

import numpy as np

from learner import (
    BinaryLearner,
    check_choice,
    check_label,
    check_positive,
    hinge_loss,
    scalar_field,
    vector_field,
    zeros,
)

PA_SELECTS = (0, 1, 2)


def _tau_pa(norm_sq: float, loss: float, C: float) -> float:
    # zero vector: nothing to move along
    return 0.0 if norm_sq == 0.0 else loss / norm_sq


def _tau_pa1(norm_sq: float, loss: float, C: float) -> float:
    return C if norm_sq == 0.0 else min(C, loss / norm_sq)


def _tau_pa2(norm_sq: float, loss: float, C: float) -> float:
    return loss / (norm_sq + C / 2.0)


_TAU: dict[int, Callable[[float, float, float], float]] = {
    0: _tau_pa,
    1: _tau_pa1,
    2: _tau_pa2,
}


class PA(BinaryLearner):
    NAME = "PA"

    def __init__(self, dim: int, C: float = 1.0, select: int = 2):
        super().__init__(dim)
        self._C = check_positive("C", C)
        self._select = check_choice("select", select, PA_SELECTS)
        self._compute_tau = _TAU[self._select]
        self.w = zeros(self.dim)

    @property
    def C(self) -> float:
        return self._C

    @property
    def select(self) -> int:
        return self._select

    def weights(self) -> np.ndarray:
        return self.w

    def step_size(self, feature, label: int) -> float:
        """tau for (x, y) under the current weights."""
        x = self._as_feature(feature)
        y = check_label(label)
        loss = hinge_loss(float(np.dot(self.w, x)), y)
        return self._compute_tau(float(np.dot(x, x)), loss, self._C)

    def update(self, feature, label: int) -> bool:
        x = self._as_feature(feature)
        y = check_label(label)
        tau = self.step_size(x, y)
        nz = np.flatnonzero(x)
        self.w[nz] += tau * y * x[nz]
        return True

    # ----------------- persistence -----------------
    def to_fields(self):
        return {
            "weight": self._vec(self.w),
            "dimension": self.dim,
            "C": self._C,
            "select": self._select,
        }

    def _restore(self, fields: Mapping) -> None:
        dim = self._archive_dim(fields)
        C = check_positive("C", scalar_field(fields, "C"))
        select = check_choice("select", scalar_field(fields, "select"), PA_SELECTS)
        w = vector_field(fields, "weight", dim)

        self._dim, self._C, self._select = dim, C, select
        self._compute_tau = _TAU[select]
        self.w = w
