"""Reading labelled samples from CSV files.

The expected format is one ``value,label`` pair per line::

    # x, y
    0.0,1.1
    1.0,2.9

Lines starting with ``#`` and blank lines are skipped.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Tuple
import csv

from alg import Vector


def read_labelled_csv(path: Path, affine: bool = True) -> Tuple[List[Vector[float]], List[float]]:
    """Return ``(samples, labels)`` read from ``path``.

    With ``affine`` every sample gets a constant ``1.0`` appended so that a
    linear model can learn an offset.
    """

    samples: List[Vector[float]] = []
    labels: List[float] = []
    with Path(path).open(newline="") as f:
        for lineno, row in enumerate(csv.reader(f), start=1):
            if not row or not "".join(row).strip():
                continue
            if row[0].lstrip().startswith("#"):
                continue
            if len(row) < 2:
                raise ValueError(f"{path}:{lineno}: expected 'value,label', got {','.join(row)!r}")
            try:
                value = float(row[0])
                label = float(row[1])
            except ValueError as exc:
                raise ValueError(f"{path}:{lineno}: {exc}") from exc
            samples.append(Vector([value, 1.0] if affine else [value]))
            labels.append(label)
    return samples, labels
