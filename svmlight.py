"""Decode svmlight/libsvm text records into (label, dense vector).

    +1 3:0.5 17:1 # optional comment

Indices are 1-based; index i lands in slot i-1 of a vector of length `dim`.
"""
from __future__ import annotations

from typing import Iterator, Tuple

import numpy as np

from learner import DimensionMismatchError, RecordParseError, check_dim, check_label

Record = Tuple[int, np.ndarray]


def parse_label(token: str) -> int:
    try:
        value = float(token)
    except ValueError:
        raise RecordParseError(f"bad label {token!r}") from None
    if value not in (1.0, -1.0):
        raise RecordParseError(f"label must be +1 or -1, got {token!r}")
    return check_label(int(value))


def parse_line(line: str, dim: int) -> Record:
    dim = check_dim(dim)
    body = line.split("#", 1)[0].split()
    if not body:
        raise RecordParseError("empty record")

    label = parse_label(body[0])
    x = np.zeros(dim, dtype=np.float64)
    for tok in body[1:]:
        idx, sep, val = tok.partition(":")
        if not sep:
            raise RecordParseError(f"expected index:value, got {tok!r}")
        try:
            i = int(idx)
            v = float(val)
        except ValueError:
            raise RecordParseError(f"expected index:value, got {tok!r}") from None
        if not 1 <= i <= dim:
            raise DimensionMismatchError(f"feature index {i} outside 1..{dim}")
        x[i - 1] = v
    return label, x


def iter_lines(path) -> Iterator[Tuple[int, str]]:
    """Yield (line number, raw record), skipping blank and comment lines."""
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            if line.split("#", 1)[0].strip():
                yield lineno, line


def iter_records(path, dim: int) -> Iterator[Record]:
    """Yield parsed records from a file, skipping blank and comment lines."""
    for lineno, line in iter_lines(path):
        try:
            yield parse_line(line, dim)
        except ValueError as e:
            raise type(e)(f"{path}:{lineno}: {e}") from e
