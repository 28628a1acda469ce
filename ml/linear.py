"""Least-squares linear regression solved through the normal equations.

The model is a weight vector ``w`` and predictions are ``w · x``. Training
forms the design matrix ``X`` with one sample per row and computes::

    w = (XᵀX)⁻¹ Xᵀ y

with Gauss-Jordan inversion. When ``XᵀX`` is singular (e.g. duplicated or
constant features) there is no unique solution; training is then skipped
with a warning and the previous model is kept.

To fit an affine model ``a * x + b``, append a constant ``1`` to every sample
(see :func:`data_io.read_labelled_csv`).
"""
from __future__ import annotations

from typing import Sequence
import logging

from alg import DimensionError, Matrix, Vector

from .interface import Classifier

logger = logging.getLogger(__name__)


class LinearRegression(Classifier):
    """Linear model trained by ordinary least squares."""

    def __init__(self, dimension: int) -> None:
        self.model: Vector = Vector.zero(dimension)

    def train(self, samples: Sequence[Vector], labels: Sequence) -> None:
        if len(samples) != len(labels):
            raise DimensionError(f"{len(samples)} samples but {len(labels)} labels")
        if not samples:
            raise ValueError("LinearRegression.train needs at least one sample.")

        x = Matrix.from_rows(samples)
        y = Vector.from_iter(labels)
        tx = x.transpose()

        gram_inverse = (tx @ x).inverse()
        if gram_inverse is None:
            logger.warning(
                "design matrix of %d samples x %d features is singular; keeping previous model",
                x.m,
                x.n,
            )
            return
        self.model = (gram_inverse @ tx) @ y

    def classify(self, sample: Vector):
        return self.model.dot(sample)
