"""Covariance adaptation strategies for CMA-ES (readable overview)

The search distribution
-----------------------
- CMA-ES samples candidates ``x_k = m + σ · L · z_k`` with ``z_k ~ N(0, I)``,
  where ``m`` is the mean, ``σ`` the step size and ``L`` the Cholesky factor
  of the covariance ``C`` (so ``L Lᵀ = C``).
- After ranking, the optimiser moves the mean to the weighted recombination
  of the ``μ`` best candidates. What remains is to reshape ``C`` and rescale
  ``σ``; that is the job of a :class:`CovarianceAdaptation`.

Evolution paths
---------------
- ``y = (m_new - m_old) / σ`` is the normalised mean shift.
- Conjugate path for step-size control (whitened with ``L⁻¹``):
    p_σ ← (1 - c_σ) p_σ + sqrt(c_σ (2 - c_σ) μ_eff) · L⁻¹ y
- Path for the rank-one update:
    p_c ← (1 - c_c) p_c + h_σ · sqrt(c_c (2 - c_c) μ_eff) · y
  ``h_σ`` switches the update off while ``‖p_σ‖`` is unusually large, i.e.
  while σ is still growing quickly.

Covariance and step size
------------------------
- C ← (1 - c_1a - c_μ Σw) C + c_1 p_c p_cᵀ + c_μ Σ_i w_i y_i y_iᵀ
  with ``y_i = (x_{i:λ} - m_old) / σ``: the rank-one term follows the path,
  the rank-μ term follows the selected steps of this generation.
- σ ← σ · exp(min(1, (c_σ / d_σ) · (‖p_σ‖² / n - 1) / 2))
  grows σ when consecutive steps point the same way and shrinks it when they
  cancel out.

Learning rates follow Hansen's defaults and depend only on the dimension,
the population size and the variance effective selection mass
``μ_eff = 1 / Σ w_i²``.

Scale
-----
Only the product ``σ² C`` matters for sampling. After every update the
largest diagonal entry of ``C`` is divided out and folded into ``σ`` (and
``p_c`` rescaled to match), so ``C`` keeps a unit scale however long a run
is. ``σ`` is floored at ``MIN_SIGMA``; once candidates collapse onto the mean
the distribution simply stops shrinking.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, Tuple
import math
import sys

from alg import Matrix, Vector

# Squared steps of this size are still normal floats.
MIN_SIGMA = math.sqrt(sys.float_info.min)


class CovarianceAdaptation(Protocol):
    """Strategy that updates covariance and step size once per generation."""

    def reset(self, dimension: int, weights: Vector[float], population_size: int) -> None:
        """Prepare for a new run with the given recombination weights."""

        ...

    def adapt(
        self,
        ranked: Sequence[Vector[float]],
        old_mean: Vector[float],
        new_mean: Vector[float],
        covariance: Matrix[float],
        sigma: float,
    ) -> Tuple[Matrix[float], float]:
        """Return the covariance and step size for the next generation.

        ``ranked`` is the whole population ordered best first; only the
        first ``len(weights)`` entries take part in recombination.
        """

        ...


@dataclass(frozen=True)
class StrategyParameters:
    """Learning rates derived once per run."""

    dimension: int
    population_size: int
    mueff: float
    cc: float
    cs: float
    c1: float
    cmu: float
    damps: float

    @classmethod
    def from_weights(cls, dimension: int, weights: Vector[float], population_size: int) -> "StrategyParameters":
        n = dimension
        mueff = sum(weights) ** 2 / sum(w * w for w in weights)
        cc = (4 + mueff / n) / (n + 4 + 2 * mueff / n)
        cs = (mueff + 2) / (n + mueff + 5)
        c1 = 2 / ((n + 1.3) ** 2 + mueff)
        cmu = min(1 - c1, 2 * (mueff - 2 + 1 / mueff) / ((n + 2) ** 2 + mueff))
        damps = 2 * mueff / population_size + 0.3 + cs
        return cls(
            dimension=n,
            population_size=population_size,
            mueff=mueff,
            cc=cc,
            cs=cs,
            c1=c1,
            cmu=cmu,
            damps=damps,
        )


class StaticCovariance:
    """Keep covariance and step size fixed; only the mean moves."""

    def reset(self, dimension: int, weights: Vector[float], population_size: int) -> None:  # noqa: ARG002
        return None

    def adapt(
        self,
        ranked: Sequence[Vector[float]],  # noqa: ARG002
        old_mean: Vector[float],  # noqa: ARG002
        new_mean: Vector[float],  # noqa: ARG002
        covariance: Matrix[float],
        sigma: float,
    ) -> Tuple[Matrix[float], float]:
        return covariance, sigma


class StandardAdaptation:
    """Rank-one + rank-μ covariance update with cumulative step-size control."""

    def __init__(self) -> None:
        self.params: Optional[StrategyParameters] = None
        self._weights: Optional[Vector[float]] = None
        self._ps: Optional[Vector[float]] = None
        self._pc: Optional[Vector[float]] = None
        self._generation = 0

    def reset(self, dimension: int, weights: Vector[float], population_size: int) -> None:
        self.params = StrategyParameters.from_weights(dimension, weights, population_size)
        self._weights = weights
        self._ps = Vector.zero(dimension, 0.0)
        self._pc = Vector.zero(dimension, 0.0)
        self._generation = 0

    @property
    def sigma_path(self) -> Optional[Vector[float]]:
        return self._ps

    @property
    def covariance_path(self) -> Optional[Vector[float]]:
        return self._pc

    def adapt(
        self,
        ranked: Sequence[Vector[float]],
        old_mean: Vector[float],
        new_mean: Vector[float],
        covariance: Matrix[float],
        sigma: float,
    ) -> Tuple[Matrix[float], float]:
        if self.params is None or self._weights is None or self._ps is None or self._pc is None:
            raise RuntimeError("reset() must be called before adapt().")
        p = self.params
        n = p.dimension
        self._generation += 1

        y = (new_mean - old_mean) / sigma
        whitening = covariance.cholesky().inverse()
        if whitening is None:
            raise ArithmeticError("covariance matrix is not positive definite")

        # Cumulation: update evolution paths.
        self._ps = self._ps * (1 - p.cs) + (whitening @ y) * math.sqrt(p.cs * (2 - p.cs) * p.mueff)
        ps_sq = self._ps.norm_sq()
        # ||ps||^2 / n is 1 in expectation; correct for the zero initial path.
        stalled = ps_sq / n / (1 - (1 - p.cs) ** (2 * self._generation)) >= 2 + 4 / (n + 1)
        hsig = 0.0 if stalled else 1.0
        self._pc = self._pc * (1 - p.cc) + y * (hsig * math.sqrt(p.cc * (2 - p.cc) * p.mueff))

        # Covariance: decay, rank-one update, rank-mu update.
        c1a = p.c1 * (1 - (1 - hsig ** 2) * p.cc * (2 - p.cc))
        updated = covariance * (1 - c1a - p.cmu * sum(self._weights))
        updated = updated + self._pc.outer_product(self._pc) * p.c1
        for w, candidate in zip(self._weights, ranked):
            step = (candidate - old_mean) / sigma
            updated = updated + step.outer_product(step) * (w * p.cmu)
        updated = (updated + updated.transpose()) / 2

        # Step size.
        sigma = sigma * math.exp(min(1.0, (p.cs / p.damps) * (ps_sq / n - 1) / 2))

        # Keep C at unit scale; sigma carries the magnitude.
        scale = max(updated[i, i] for i in range(n))
        if scale > 0:
            updated = updated / scale
            self._pc = self._pc / math.sqrt(scale)
            sigma = sigma * math.sqrt(scale)
        return updated, max(sigma, MIN_SIGMA)
