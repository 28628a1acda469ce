"""Multi-layer perceptron with sigmoid activations, trained by CMA-ES.

The network is a list of weight matrices, one per consecutive pair of layer
sizes. The matrix between a layer of ``a`` units and a layer of ``b`` units
has ``a`` columns and ``b`` rows, so a forward step is ``sigmoid(W @ x)``.
There are no bias terms; append a constant ``1`` to the inputs for an affine
first layer.

Training does not use gradients: the flattened weights form a single vector
that :class:`ml.cmaes.CmaEs` tunes to maximise the negative mean squared
error over the training set.
"""
from __future__ import annotations

from typing import List, Optional, Sequence
import logging
import math

import numpy as np

from alg import DimensionError, Matrix, Vector

from .cmaes import CmaEs
from .interface import Classifier

logger = logging.getLogger(__name__)


def sigmoid(t: float) -> float:
    # Split on the sign so exp never overflows.
    if t >= 0:
        return 1.0 / (1.0 + math.exp(-t))
    e = math.exp(t)
    return e / (1.0 + e)


class MultiLayerPerceptron(Classifier):
    """Feed-forward network mapping input vectors to output activations."""

    def __init__(
        self,
        layer_sizes: Sequence[int],
        *,
        generations: int = 100,
        population_size: Optional[int] = None,
        sigma0: float = 1.0,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if len(layer_sizes) < 2:
            raise ValueError("a perceptron needs at least an input and an output layer.")
        self.layer_sizes = list(layer_sizes)
        self.layers: List[Matrix[float]] = [
            Matrix.zero(inputs, outputs, 0.0) for inputs, outputs in zip(layer_sizes, layer_sizes[1:])
        ]
        self.generations = generations
        self.population_size = population_size
        self.sigma0 = sigma0
        self.rng = rng or np.random.default_rng()

    @property
    def parameter_count(self) -> int:
        return sum(layer.n * layer.m for layer in self.layers)

    def parameters(self) -> Vector[float]:
        """All weights flattened layer by layer in storage order."""
        values: List[float] = []
        for layer in self.layers:
            for col in layer.cols():
                values.extend(col)
        return Vector(values)

    def set_parameters(self, params: Vector[float]) -> None:
        if params.dim() != self.parameter_count:
            raise DimensionError(f"expected {self.parameter_count} parameters, got {params.dim()}")
        values = params.to_list()
        layers = []
        offset = 0
        for layer in self.layers:
            size = layer.n * layer.m
            layers.append(Matrix(layer.n, layer.m, values[offset:offset + size]))
            offset += size
        self.layers = layers

    def classify(self, sample: Vector[float]) -> Vector[float]:
        activation = sample
        for layer in self.layers:
            activation = (layer @ activation).map(sigmoid)
        return activation

    def mean_squared_error(self, samples: Sequence[Vector[float]], labels: Sequence[Vector[float]]) -> float:
        total = 0.0
        for sample, label in zip(samples, labels):
            total += (self.classify(sample) - label).norm_sq()
        return total / len(samples)

    def train(self, samples: Sequence[Vector[float]], labels: Sequence[Vector[float]]) -> None:
        if len(samples) != len(labels):
            raise DimensionError(f"{len(samples)} samples but {len(labels)} labels")
        if not samples:
            raise ValueError("MultiLayerPerceptron.train needs at least one sample.")

        dim = self.parameter_count
        population_size = self.population_size or 4 + int(3 * math.log(dim))
        optimiser = CmaEs(
            dim,
            population_size,
            self.generations,
            sigma0=self.sigma0,
            mu=max(1, population_size // 2),
            initial_mean=self.parameters(),
            rng=self.rng,
        )

        def score(params: Vector[float]) -> float:
            self.set_parameters(params)
            return -self.mean_squared_error(samples, labels)

        best = optimiser.optimize(score)
        self.set_parameters(best)
        logger.info("perceptron trained: mse %.6g", self.mean_squared_error(samples, labels))
