"""Soft Confidence-Weighted learning (Wang, Zhao & Hoi, 2012).

Diagonal-covariance variant.
    select 1 : SCW-I   alpha capped at C
    select 2 : SCW-II  C enters as a quadratic penalty
`eta` is the probability the next example should be classified
correctly; phi = Phi^-1(eta).
"""
from __future__ import annotations

import math
from typing import Mapping

import numpy as np
from scipy.stats import norm

from confidence import ConfidenceWeightedLearner
from learner import check_choice, check_label, check_positive, scalar_field

SCW_SELECTS = (1, 2)


def check_eta(eta) -> float:
    eta = float(eta)
    if not 0.5 <= eta < 1.0:
        raise ValueError(f"eta must be in [0.5, 1), got {eta!r}")
    return eta


class SCW(ConfidenceWeightedLearner):
    NAME = "SCW"

    def __init__(self, dim: int, C: float = 1.0, eta: float = 0.95, select: int = 1):
        super().__init__(dim)
        self._C = check_positive("C", C)
        self._eta = check_eta(eta)
        self._select = check_choice("select", select, SCW_SELECTS)
        self._set_phi()

    def _set_phi(self) -> None:
        self.phi = float(norm.ppf(self._eta))
        self.psi = 1.0 + self.phi ** 2 / 2.0
        self.zeta = 1.0 + self.phi ** 2

    @property
    def C(self) -> float:
        return self._C

    @property
    def eta(self) -> float:
        return self._eta

    @property
    def select(self) -> int:
        return self._select

    def loss(self, margin: float, conf: float) -> float:
        return max(0.0, self.phi * math.sqrt(conf) - margin)

    def _alpha_scw1(self, m: float, v: float) -> float:
        phi, psi, zeta = self.phi, self.psi, self.zeta
        a = (-m * psi + math.sqrt(m * m * phi ** 4 / 4.0 + v * phi * phi * zeta)) / (v * zeta)
        return min(self._C, max(0.0, a))

    def _alpha_scw2(self, m: float, v: float) -> float:
        phi2 = self.phi ** 2
        n = v + 1.0 / (2.0 * self._C)
        gamma = self.phi * math.sqrt(phi2 * m * m * v * v + 4.0 * n * v * (n + v * phi2))
        a = (-(2.0 * m * n + phi2 * m * v) + gamma) / (2.0 * (n * n + n * v * phi2))
        return max(0.0, a)

    def update(self, feature, label: int) -> bool:
        x = self._as_feature(feature)
        y = check_label(label)
        m = y * float(np.dot(self.means, x))
        v = self.confidence(x)
        # v == 0 only for an all-zero example
        if v <= 0.0 or self.loss(m, v) <= 0.0:
            return False

        if self._select == 1:
            alpha = self._alpha_scw1(m, v)
        else:
            alpha = self._alpha_scw2(m, v)
        if alpha <= 0.0:
            return False

        phi = self.phi
        u = 0.25 * (-alpha * v * phi + math.sqrt(alpha * alpha * v * v * phi * phi + 4.0 * v)) ** 2
        beta = alpha * phi / (math.sqrt(u) + v * alpha * phi)

        nz = np.flatnonzero(x)
        self._move_means(nz, x, alpha, y)
        self._shrink(nz, x, beta)
        return True

    # ----------------- persistence -----------------
    def to_fields(self):
        fields = self._state_fields()
        fields.update(C=self._C, eta=self._eta, select=self._select)
        return fields

    def _restore(self, fields: Mapping) -> None:
        dim = self._archive_dim(fields)
        C = check_positive("C", scalar_field(fields, "C"))
        eta = check_eta(scalar_field(fields, "eta"))
        select = check_choice("select", scalar_field(fields, "select"), SCW_SELECTS)
        covariances, means = self._read_state(fields, dim)

        self._dim, self._C, self._eta, self._select = dim, C, eta, select
        self._set_phi()
        self.covariances, self.means = covariances, means
