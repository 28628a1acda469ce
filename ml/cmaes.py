"""CMA-ES: covariance matrix adaptation evolution strategy.

Overview
--------
CMA-ES maximises a black-box scoring function over ``dimension``-dimensional
real vectors by repeatedly sampling a population from a multivariate normal
distribution and moving that distribution toward the best samples.

Each call to :meth:`CmaEs.optimize` starts a fresh :class:`CmaEsRun` that
owns all mutable state of that optimisation:

1) **Init**: recombination weights ``w_i = log10(mu + 0.5) - log10(i + 1)``
   for the ``mu`` best slots, normalised to sum to one and fixed for the rest
   of the run. The mean starts at the zero vector (or ``initial_mean``), the
   covariance at the identity and the step size at ``sigma0``.
2) **Sample**: with ``L`` the Cholesky factor of the covariance, each of the
   ``population_size`` rows of the population matrix is
   ``mean + sigma * L @ z`` for a fresh standard-normal ``z``.
3) **Evaluate**: the scoring function is called once per row.
4) **Adapt**: rows are ranked by descending score; the new mean is the
   weighted sum of the ``mu`` best rows. The covariance adaptation strategy
   (see :mod:`ml.adaptation`) then reshapes the covariance and rescales the
   step size.

Steps 2-4 repeat exactly ``generations`` times; the final mean is returned.
There is no convergence test: the generation count is the only termination
control.
"""
from __future__ import annotations

from typing import Any, Callable, List, Optional, Sequence
import logging
import math

import numpy as np

from alg import DimensionError, Matrix, Vector

from .adaptation import CovarianceAdaptation, StandardAdaptation
from .interface import Optimizer

logger = logging.getLogger(__name__)

ScoringFunction = Callable[[Vector[float]], Any]


def recombination_weights(mu: int) -> Vector[float]:
    """Decreasing log-rank weights for the ``mu`` best candidates, summing to 1."""
    if mu < 1:
        raise ValueError("mu must be at least 1.")
    raw = [math.log10(mu + 0.5) - math.log10(i + 1) for i in range(mu)]
    total = sum(raw)
    return Vector([w / total for w in raw])


class CmaEsRun:
    """Mutable state of a single CMA-ES optimisation.

    Created by :meth:`CmaEs.start`; drive it with :meth:`step` (or the
    individual :meth:`sample`, :meth:`evaluate` and :meth:`adapt` phases) and
    read the result from :attr:`mean`.
    """

    def __init__(
        self,
        *,
        mean: Vector[float],
        sigma: float,
        weights: Vector[float],
        population_size: int,
        adaptation: CovarianceAdaptation,
        rng: np.random.Generator,
    ) -> None:
        self.dimension = mean.dim()
        self.population_size = population_size
        self.mean = mean
        self.covariance: Matrix[float] = Matrix.identity(self.dimension, 1.0, 0.0)
        self.sigma = sigma
        self.weights = weights
        self.population: Matrix[float] = Matrix.zero(self.dimension, population_size, 0.0)
        self.scores: Optional[List[Any]] = None
        self.generation = 0
        self.adaptation = adaptation
        self.rng = rng
        adaptation.reset(self.dimension, weights, population_size)

    @property
    def mu(self) -> int:
        return self.weights.dim()

    def sample(self) -> Matrix[float]:
        """Draw a fresh population, one candidate per row."""
        factor = self.covariance.cholesky()
        candidates = []
        for _ in range(self.population_size):
            z = Vector(self.rng.standard_normal(self.dimension).tolist())
            candidates.append(self.mean + (factor @ z) * self.sigma)
        self.population = Matrix.from_rows(candidates)
        self.scores = None
        return self.population

    def evaluate(self, scoring_function: ScoringFunction) -> List[Any]:
        """Score every row of the current population."""
        self.scores = [scoring_function(candidate) for candidate in self.population.rows()]
        return self.scores

    def adapt(self, scores: Optional[Sequence[Any]] = None) -> Vector[float]:
        """Recombine the best rows into a new mean and adapt the distribution."""
        if scores is None:
            scores = self.scores
        if scores is None:
            raise RuntimeError("adapt() needs scores; call evaluate() first or pass them in.")
        if len(scores) != self.population_size:
            raise DimensionError(f"expected {self.population_size} scores, got {len(scores)}")

        order = sorted(range(self.population_size), key=lambda y: scores[y], reverse=True)
        ranked = [self.population.row(y) for y in order]

        old_mean = self.mean
        new_mean = Vector.zero(self.dimension, 0.0)
        for w, candidate in zip(self.weights, ranked):
            new_mean.add_in_place(candidate * w)

        self.covariance, self.sigma = self.adaptation.adapt(
            ranked, old_mean, new_mean, self.covariance, self.sigma
        )
        self.mean = new_mean
        self.generation += 1
        logger.debug(
            "generation %d: best score %s, sigma %.4g, mean %s",
            self.generation,
            scores[order[0]],
            self.sigma,
            new_mean.to_list(),
        )
        return new_mean

    def step(self, scoring_function: ScoringFunction) -> Vector[float]:
        """Run one full generation: sample, evaluate, adapt."""
        self.sample()
        self.evaluate(scoring_function)
        return self.adapt()


class CmaEs(Optimizer):
    """CMA-ES maximiser over ``dimension``-dimensional vectors.

    Parameters
    ----------
    dimension:
        Length of the input vectors passed to the scoring function.
    population_size:
        Number of candidates sampled and scored per generation.
    generations:
        Exact number of generations run by :meth:`optimize`; it is the only
        termination control.
    sigma0:
        Initial step size, the standard deviation of the first population
        around the initial mean in every coordinate.
    mu:
        Number of best candidates recombined into the next mean. Defaults to
        ``dimension // 2`` (at least 1) and may not exceed ``population_size``.
    initial_mean:
        Starting mean; the zero vector when omitted.
    adaptation:
        Factory for the covariance adaptation strategy; called once per run
        so runs never share path state. Defaults to
        :class:`~ml.adaptation.StandardAdaptation`.
    rng:
        Optional numpy Generator for reproducibility; defaults to
        ``np.random.default_rng()`` if not supplied.
    """

    def __init__(
        self,
        dimension: int,
        population_size: int,
        generations: int,
        *,
        sigma0: float = 1.0,
        mu: Optional[int] = None,
        initial_mean: Optional[Vector[float]] = None,
        adaptation: Optional[Callable[[], CovarianceAdaptation]] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if dimension < 1:
            raise ValueError("dimension must be at least 1.")
        if population_size < 1:
            raise ValueError("population_size must be at least 1.")
        if generations < 0:
            raise ValueError("generations must be non-negative.")
        if sigma0 <= 0:
            raise ValueError("sigma0 must be positive.")
        if mu is None:
            mu = max(1, dimension // 2)
        if not 1 <= mu <= population_size:
            raise ValueError(f"mu must lie in 1..{population_size}, got {mu}.")
        if initial_mean is not None and initial_mean.dim() != dimension:
            raise DimensionError(f"initial_mean has dimension {initial_mean.dim()}, expected {dimension}")

        self.dimension = dimension
        self.population_size = population_size
        self.generations = generations
        self.sigma0 = sigma0
        self.mu = mu
        self.initial_mean = initial_mean
        self.adaptation = adaptation or StandardAdaptation
        self.rng = rng or np.random.default_rng()

    def start(self) -> CmaEsRun:
        """Initialise the state of a new run."""
        if self.initial_mean is not None:
            mean = self.initial_mean.map(float)
        else:
            mean = Vector.zero(self.dimension, 0.0)
        return CmaEsRun(
            mean=mean,
            sigma=self.sigma0,
            weights=recombination_weights(self.mu),
            population_size=self.population_size,
            adaptation=self.adaptation(),
            rng=self.rng,
        )

    def optimize(self, scoring_function: ScoringFunction) -> Vector[float]:
        run = self.start()
        logger.info(
            "CMA-ES: dimension=%d population=%d mu=%d generations=%d",
            self.dimension,
            self.population_size,
            self.mu,
            self.generations,
        )
        for _ in range(self.generations):
            run.step(scoring_function)
        logger.info("CMA-ES finished after %d generations, sigma %.4g", run.generation, run.sigma)
        return run.mean
