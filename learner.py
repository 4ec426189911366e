"""Shared contract for the binary online learners.

Every learner exposes the same API:
    update(x, y) -> bool     one example, y in {+1, -1}
    predict(x) -> int        +1 iff w.x > 0, else -1
    save(path) / load(path)  JSON archive, one key per field
    name() -> str

Usage:
    model = PA(dim=3, C=1.0, select=2)
    model.update(np.array([1.0, 0.0, 2.0]), +1)
    model.predict(np.array([1.0, 0.0, 0.0]))
"""
from __future__ import annotations

import json
import math
import numbers
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping

import numpy as np
from loguru import logger

Fields = Dict[str, Any]


class DimensionMismatchError(ValueError):
    """A feature vector or index does not fit the model dimension."""


class ModelFormatError(ValueError):
    """A persisted archive is missing fields or does not describe this model."""


class RecordParseError(ValueError):
    """A raw text record could not be decoded."""


# ----------------- validation -----------------
def check_integer(name: str, value) -> int:
    if (
        isinstance(value, bool)
        or not isinstance(value, numbers.Real)
        or not math.isfinite(value)
        or int(value) != value
    ):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return int(value)


def check_dim(dim) -> int:
    dim = check_integer("dim", dim)
    if dim <= 0:
        raise ValueError(f"dim must be a positive integer, got {dim!r}")
    return dim


def check_timestep(timestep) -> int:
    timestep = check_integer("timestep", timestep)
    if timestep < 0:
        raise ValueError(f"timestep must be >= 0, got {timestep}")
    return timestep


def check_positive(name: str, value) -> float:
    value = float(value)
    if not math.isfinite(value) or value <= 0.0:
        raise ValueError(f"{name} must be > 0, got {value!r}")
    return value


def check_choice(name: str, value, choices) -> int:
    if isinstance(value, bool) or value not in choices:
        raise ValueError(f"{name} must be one of {sorted(choices)}, got {value!r}")
    return int(value)


def check_label(label) -> int:
    if label not in (1, -1):
        raise ValueError(f"label must be +1 or -1, got {label!r}")
    return int(label)


def zeros(dim: int) -> np.ndarray:
    return np.zeros(dim, dtype=np.float64)


def ones(dim: int) -> np.ndarray:
    return np.ones(dim, dtype=np.float64)


def hinge_loss(margin: float, label: int) -> float:
    return max(0.0, 1.0 - label * margin)


# ----------------- archive codec -----------------
def write_archive(path, fields: Mapping[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(fields, f, indent=2)
        f.write("\n")


def read_archive(path) -> Fields:
    with open(path, "r", encoding="utf-8") as f:
        try:
            obj = json.load(f)
        except json.JSONDecodeError as e:
            raise ModelFormatError(f"{path}: not a model archive ({e})") from e
    if not isinstance(obj, dict):
        raise ModelFormatError(f"{path}: archive must be a JSON object")
    return obj


def vector_field(fields: Mapping[str, Any], key: str, dim: int) -> np.ndarray:
    try:
        vec = np.asarray(fields[key], dtype=np.float64)
    except KeyError:
        raise ModelFormatError(f"missing field {key!r}") from None
    except (TypeError, ValueError) as e:
        raise ModelFormatError(f"field {key!r} is not a numeric vector") from e
    if vec.shape != (dim,):
        raise ModelFormatError(
            f"field {key!r} has shape {vec.shape}, expected ({dim},)"
        )
    return vec


def scalar_field(fields: Mapping[str, Any], key: str):
    try:
        return fields[key]
    except KeyError:
        raise ModelFormatError(f"missing field {key!r}") from None


class BinaryLearner(ABC):
    """Base for PA, ADAGRAD_RDA, ADAM, NHERD, AROW and SCW.

    Subclasses own their numeric state and implement `update`,
    `to_fields` and `_restore`. Prediction and persistence live here.
    """

    NAME = ""

    def __init__(self, dim: int):
        self._dim = check_dim(dim)

    @property
    def dim(self) -> int:
        return self._dim

    def name(self) -> str:
        return self.NAME

    # ----------------- learning -----------------
    @abstractmethod
    def update(self, feature, label: int) -> bool:
        """Learn from one example. Returns False if it was skipped."""

    @abstractmethod
    def weights(self) -> np.ndarray:
        """Effective weight vector used for the margin."""

    def margin(self, feature) -> float:
        x = self._as_feature(feature)
        return float(np.dot(self.weights(), x))

    def predict(self, feature) -> int:
        return 1 if self.margin(feature) > 0.0 else -1

    def _as_feature(self, feature) -> np.ndarray:
        x = np.asarray(feature, dtype=np.float64)
        if x.shape != (self._dim,):
            raise DimensionMismatchError(
                f"[{self.NAME}] feature has shape {x.shape}, model dim is {self._dim}"
            )
        return x

    # ----------------- persistence -----------------
    @abstractmethod
    def to_fields(self) -> Fields:
        """Hyperparameters and state as archive fields (without `name`)."""

    @abstractmethod
    def _restore(self, fields: Mapping[str, Any]) -> None:
        """Validate every field first, then replace hyperparameters and state."""

    def save(self, path) -> None:
        fields: Fields = {"name": self.NAME}
        fields.update(self.to_fields())
        write_archive(path, fields)
        logger.debug(f"[{self.NAME}] saved model (dim={self._dim}) to {path}")

    def load(self, path) -> None:
        fields = read_archive(path)
        self.from_fields(fields)
        logger.debug(f"[{self.NAME}] loaded model (dim={self._dim}) from {path}")

    def from_fields(self, fields: Mapping[str, Any]) -> None:
        stored = fields.get("name", self.NAME)
        if stored != self.NAME:
            raise ModelFormatError(
                f"archive holds a {stored} model, cannot load into {self.NAME}"
            )
        try:
            self._restore(fields)
        except ModelFormatError:
            raise
        except (TypeError, ValueError, OverflowError) as e:
            raise ModelFormatError(f"[{self.NAME}] invalid archive: {e}") from e

    def _archive_dim(self, fields: Mapping[str, Any]) -> int:
        return check_dim(scalar_field(fields, "dimension"))

    @staticmethod
    def _vec(v: np.ndarray) -> list:
        return [float(a) for a in v]

    def __repr__(self) -> str:
        params = ", ".join(
            f"{k}={v!r}" for k, v in self.to_fields().items() if not isinstance(v, list)
        )
        return f"{type(self).__name__}({params})"
