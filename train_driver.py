"""Stream an svmlight training file through one learner, then evaluate.

Run examples:
  # PA-II on a9a (123 features)
  python train_driver.py --algorithm pa --dim 123 --train data/a9a --test data/a9a.t

  # AdaGrad-RDA, keep the trained model
  python train_driver.py --algorithm adagrad_rda --dim 123 --eta 0.1 --lambda 0.001 \
      --train data/a9a --model models/rda.json

  # continue training a saved model
  python train_driver.py --load models/rda.json --dim 123 --train data/more

Each training record is predicted before it is learned from; the running
(online) accuracy is written every --progress-every examples.
Outputs land in results/<learner>/: summary.txt and progress.csv.
"""
from __future__ import annotations

import argparse
import csv
import time
from pathlib import Path

from loguru import logger

from log_config import setup_logging
from model import BinaryModel, load_model
from svmlight import iter_lines, iter_records, parse_label

# argparse dest -> constructor keyword, per learner
PARAMS = {
    "PA": {"C": "C", "select": "select"},
    "ADAGRAD_RDA": {"eta": "eta", "lam": "lambda_"},
    "ADAM": {},
    "NHERD": {"C": "C", "diagonal": "diagonal"},
    "AROW": {"r": "r"},
    "SCW": {"C": "C", "eta": "eta", "select": "select"},
}


class OnlineProgress:
    """Counts examples, updates and predict-before-learn mistakes."""

    def __init__(self, every: int, out_path: Path):
        self.every = max(1, int(every))
        self.out_path = out_path
        self.rows = []
        self.examples = self.updates = self.mistakes = 0

    @property
    def online_accuracy(self) -> float:
        if not self.examples:
            return 0.0
        return 1.0 - self.mistakes / self.examples

    def record(self, predicted: int, label: int, changed: bool) -> None:
        self.examples += 1
        self.updates += int(changed)
        self.mistakes += int(predicted != label)
        if self.examples % self.every == 0:
            self._snapshot()

    def _snapshot(self) -> None:
        row = (self.examples, self.updates, self.mistakes, self.online_accuracy)
        if self.rows and self.rows[-1][0] == self.examples:
            return
        self.rows.append(row)
        logger.info(
            f"[Progress] examples={self.examples} updates={self.updates} "
            f"online_acc={self.online_accuracy:.4f}"
        )

    def flush(self) -> None:
        if not self.examples:
            return
        self._snapshot()
        with open(self.out_path, "w", newline="") as f:
            cw = csv.writer(f)
            cw.writerow(["examples", "updates", "mistakes", "online_accuracy"])
            cw.writerows(self.rows)


def learner_params(algorithm: str, args: argparse.Namespace) -> dict:
    key = algorithm.upper().replace("-", "_")
    mapping = PARAMS.get(key, {})
    return {
        kw: getattr(args, dest)
        for dest, kw in mapping.items()
        if getattr(args, dest) is not None
    }


def build_model(args: argparse.Namespace) -> BinaryModel:
    if args.load:
        model = load_model(args.load)
        logger.info(f"[Driver] resumed {model!r}")
        return model
    return BinaryModel(args.algorithm, args.dim, **learner_params(args.algorithm, args))


def evaluate(model: BinaryModel, path, dim: int):
    correct = total = 0
    for label, x in iter_records(path, dim):
        total += 1
        if model.learner.predict(x) == label:
            correct += 1
    return correct, total


def train_file(model: BinaryModel, path, dim: int, progress: OnlineProgress) -> None:
    for lineno, line in iter_lines(path):
        try:
            label = parse_label(line.split("#", 1)[0].split()[0])
            predicted = model.infer(line, dim)
            changed = model.train(line, dim)
        except ValueError as e:
            raise type(e)(f"{path}:{lineno}: {e}") from e
        progress.record(predicted, label, changed)


def run(args: argparse.Namespace) -> dict:
    model = build_model(args)
    out_dir = Path(args.out) / model.name()
    out_dir.mkdir(parents=True, exist_ok=True)
    progress = OnlineProgress(args.progress_every, out_dir / "progress.csv")

    t0 = time.perf_counter()
    logger.info(f"[Driver] training {model.name()} on {args.train}")
    for _ in range(args.epochs):
        train_file(model, args.train, args.dim, progress)
    train_s = time.perf_counter() - t0
    progress.flush()
    seen, updates = progress.examples, progress.updates

    result = {
        "learner": model.name(),
        "examples": seen,
        "updates": updates,
        "online_accuracy": progress.online_accuracy,
        "train_s": train_s,
        "accuracy": None,
    }
    if args.test:
        logger.info(f"[Driver] evaluating on {args.test}")
        correct, total = evaluate(model, args.test, args.dim)
        result["accuracy"] = (correct / total) if total else 0.0
        result["test_examples"] = total

    if args.model:
        Path(args.model).parent.mkdir(parents=True, exist_ok=True)
        model.save(args.model)
        logger.info(f"[Driver] model saved to {args.model}")

    summary = (
        f"Learner: {model!r}\n"
        f"Train: {args.train} | Epochs: {args.epochs}\n"
        f"Examples: {seen} | Updates: {updates} | Online Accuracy: {progress.online_accuracy:.2%}\n"
        f"Train Time: {train_s:.2f} s\n"
    )
    if result["accuracy"] is not None:
        summary += f"Test: {args.test} | Accuracy: {result['accuracy']:.2%}\n"
    with open(out_dir / "summary.txt", "w", encoding="utf-8") as f:
        f.write(summary)
    print(summary, end="")
    return result


def make_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Train and evaluate a binary online learner")
    p.add_argument("--algorithm", default="pa", type=str.upper, choices=list(PARAMS),
                   help="Learner to build (ignored with --load)")
    p.add_argument("--dim", type=int, required=True, help="Feature dimension")
    p.add_argument("--train", required=True, help="svmlight training file")
    p.add_argument("--test", default=None, help="svmlight evaluation file")
    p.add_argument("--epochs", type=int, default=1)
    p.add_argument("--progress-every", dest="progress_every", type=int, default=1000,
                   help="Write a progress row every N training examples")
    p.add_argument("--model", default=None, help="Where to save the trained model")
    p.add_argument("--load", default=None, help="Resume from a saved model")
    p.add_argument("--out", default="results", help="Directory for summary and progress")
    p.add_argument("--C", dest="C", type=float, default=None, help="PA / NHERD / SCW aggressiveness")
    p.add_argument("--select", type=int, default=None, help="PA: 0/1/2, SCW: 1/2")
    p.add_argument("--diagonal", type=int, default=None, help="NHERD: 0 full, 1 exact, 2 project, 3 drop")
    p.add_argument("--eta", type=float, default=None, help="AdaGrad-RDA step size / SCW confidence")
    p.add_argument("--lambda", dest="lam", type=float, default=None, help="AdaGrad-RDA L1 threshold")
    p.add_argument("--r", type=float, default=None, help="AROW regularization")
    p.add_argument("--log-level", dest="log_level", default="INFO")
    return p


if __name__ == "__main__":
    args = make_parser().parse_args()
    setup_logging(level=args.log_level)
    run(args)
