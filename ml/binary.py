"""Adapter turning a real-valued classifier into a boolean one."""
from __future__ import annotations

from typing import Any, Sequence

from .interface import Classifier


class Binary(Classifier):
    """Train ``inner`` on 1.0/0.0 targets and threshold its output.

    Any classifier whose labels are real numbers (e.g.
    :class:`ml.linear.LinearRegression`) can be wrapped; ``True`` is predicted
    when the inner output exceeds ``threshold``.
    """

    def __init__(self, inner: Classifier, threshold: float = 0.5) -> None:
        self.inner = inner
        self.threshold = threshold

    def train(self, samples: Sequence[Any], labels: Sequence[bool]) -> None:
        self.inner.train(samples, [1.0 if label else 0.0 for label in labels])

    def classify(self, sample: Any) -> bool:
        return self.inner.classify(sample) > self.threshold
