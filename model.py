"""Pick a learner by name and drive it with raw svmlight records.

    model = BinaryModel("pa", dim=123, C=1.0, select=2)
    model.train("+1 3:1 10:0.5", 123)
    model.infer("-1 3:1", 123)       # -> +1 / -1
    model.save("pa.json")

    model = load_model("pa.json")    # learner type read from the archive
"""
from __future__ import annotations

from typing import Callable, Dict

from loguru import logger

from adagrad_rda import AdaGradRDA
from adam import Adam
from arow import AROW
from learner import BinaryLearner, DimensionMismatchError, ModelFormatError, read_archive
from nherd import NHERD
from pa import PA
from scw import SCW
from svmlight import parse_line

LEARNERS: Dict[str, Callable[..., BinaryLearner]] = {
    PA.NAME: PA,
    AdaGradRDA.NAME: AdaGradRDA,
    Adam.NAME: Adam,
    NHERD.NAME: NHERD,
    AROW.NAME: AROW,
    SCW.NAME: SCW,
}


def build_learner(name: str, dim: int, **params) -> BinaryLearner:
    key = str(name).upper().replace("-", "_")
    if key not in LEARNERS:
        available = ", ".join(LEARNERS)
        raise ValueError(f"Unknown learner: {name!r}. Available: {available}")
    return LEARNERS[key](dim, **params)


class BinaryModel:
    """Owns exactly one learner and feeds it decoded records."""

    def __init__(self, name: str, dim: int, **params):
        self.learner = build_learner(name, dim, **params)

    @classmethod
    def from_learner(cls, learner: BinaryLearner) -> "BinaryModel":
        model = cls.__new__(cls)
        model.learner = learner
        return model

    def name(self) -> str:
        return self.learner.name()

    def _decode(self, record: str, dim: int):
        if dim != self.learner.dim:
            raise DimensionMismatchError(
                f"[{self.name()}] record dim {dim} != model dim {self.learner.dim}"
            )
        return parse_line(record, dim)

    def train(self, record: str, dim: int) -> bool:
        label, x = self._decode(record, dim)
        return self.learner.update(x, label)

    def train_and_save(self, record: str, dim: int, path) -> bool:
        changed = self.train(record, dim)
        self.save(path)
        return changed

    def infer(self, record: str, dim: int) -> int:
        _, x = self._decode(record, dim)
        return self.learner.predict(x)

    def load(self, path) -> None:
        self.learner.load(path)

    def save(self, path) -> None:
        self.learner.save(path)

    def __repr__(self) -> str:
        return f"BinaryModel({self.learner!r})"


def load_model(path) -> BinaryModel:
    """Rebuild whichever learner the archive at `path` describes."""
    fields = read_archive(path)
    name = fields.get("name")
    if name not in LEARNERS:
        raise ModelFormatError(f"{path}: unknown learner {name!r}")
    dim = fields.get("dimension")
    try:
        # default hyperparameters, replaced by the archive below
        learner = build_learner(name, dim)
    except (TypeError, ValueError, OverflowError) as e:
        raise ModelFormatError(f"{path}: bad dimension {dim!r}") from e
    learner.from_fields(fields)
    logger.debug(f"[{name}] loaded model (dim={learner.dim}) from {path}")
    return BinaryModel.from_learner(learner)
