"""Gaussian naive Bayes over real-valued feature vectors.

Each of the ``k`` classes is modelled by an independent normal distribution
per feature. Training estimates, per class, the prior ``P(c)`` and the
feature means and variances; classification picks the class with the largest
log posterior::

    log P(c) + Σ_j [ -0.5 log(2π σ²_cj) - (x_j - μ_cj)² / (2 σ²_cj) ]

A small ``var_smoothing`` term, proportional to the largest feature variance,
is added to every variance so constant features do not divide by zero.
Classes absent from the training data are never predicted.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence
import math

from alg import DimensionError, Vector

from .interface import Classifier


@dataclass
class ClassStatistics:
    """Per-class parameters of the naive Bayes model."""

    prior: float
    mean: Vector[float]
    variance: Vector[float]

    def log_likelihood(self, sample: Vector[float]) -> float:
        total = math.log(self.prior)
        for x, mu, var in zip(sample, self.mean, self.variance):
            total -= 0.5 * math.log(2 * math.pi * var) + (x - mu) ** 2 / (2 * var)
        return total


class GaussianNaiveBayes(Classifier):
    """Naive Bayes classifier with labels ``0..k-1``."""

    def __init__(self, k: int, var_smoothing: float = 1e-9) -> None:
        if k < 1:
            raise ValueError("k must be at least 1.")
        self.k = k
        self.var_smoothing = var_smoothing
        self.classes: Optional[List[Optional[ClassStatistics]]] = None

    def train(self, samples: Sequence[Vector[float]], labels: Sequence[int]) -> None:
        if len(samples) != len(labels):
            raise DimensionError(f"{len(samples)} samples but {len(labels)} labels")
        if not samples:
            raise ValueError("GaussianNaiveBayes.train needs at least one sample.")
        dim = samples[0].dim()

        groups: List[List[Vector[float]]] = [[] for _ in range(self.k)]
        for sample, label in zip(samples, labels):
            if not 0 <= label < self.k:
                raise ValueError(f"label {label} outside 0..{self.k - 1}")
            if sample.dim() != dim:
                raise DimensionError(f"sample of dimension {sample.dim()}, expected {dim}")
            groups[label].append(sample)

        overall_mean = _mean(samples)
        largest_variance = max(_variance(samples, overall_mean), default=0.0)
        epsilon = self.var_smoothing * max(largest_variance, 1.0)

        classes: List[Optional[ClassStatistics]] = []
        for members in groups:
            if not members:
                classes.append(None)
                continue
            mean = _mean(members)
            variance = _variance(members, mean).map(lambda v: v + epsilon)
            classes.append(ClassStatistics(prior=len(members) / len(samples), mean=mean, variance=variance))
        self.classes = classes

    def classify(self, sample: Vector[float]) -> int:
        if self.classes is None:
            raise RuntimeError("GaussianNaiveBayes must be trained before classify().")
        best_label = -1
        best_score = -math.inf
        for label, stats in enumerate(self.classes):
            if stats is None:
                continue
            score = stats.log_likelihood(sample)
            if score > best_score:
                best_label, best_score = label, score
        return best_label


def _mean(samples: Sequence[Vector[float]]) -> Vector[float]:
    total = Vector.zero(samples[0].dim(), 0.0)
    for sample in samples:
        total += sample
    return total / len(samples)


def _variance(samples: Sequence[Vector[float]], mean: Vector[float]) -> Vector[float]:
    total = Vector.zero(mean.dim(), 0.0)
    for sample in samples:
        diff = sample - mean
        total += diff.map(lambda d: d * d)
    return total / len(samples)
