# experiments/benchmarks.py
"""
Benchmark score functions for optimiser experiments.

Every benchmark is phrased as a score to maximise: the negative of a classic
cost function. The known optimum is carried along so runs can report how far
the returned mean ended up from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

from alg import Vector


@dataclass(frozen=True)
class Benchmark:
    name: str
    dimension: int
    score: Callable[[Vector[float]], float]
    optimum: Vector[float]

    def distance_to_optimum(self, x: Vector[float]) -> float:
        return (x - self.optimum).norm()


def shifted_quadratic(dimension: int) -> Benchmark:
    """
    -(x0-3)^2 - (x1+1)^2 - (x2-3)^2 - ...; optimum alternates 3, -1.
    """
    target = Vector.new(dimension, lambda i: 3.0 if i % 2 == 0 else -1.0)

    def score(x: Vector[float]) -> float:
        return -(x - target).norm_sq()

    return Benchmark("shifted_quadratic", dimension, score, target)


def sphere(dimension: int) -> Benchmark:
    def score(x: Vector[float]) -> float:
        return -x.norm_sq()

    return Benchmark("sphere", dimension, score, Vector.zero(dimension, 0.0))


def ellipsoid(dimension: int) -> Benchmark:
    """
    Axis-parallel ellipsoid with condition number 1e6.
    """
    scales = Vector.new(
        dimension, lambda i: 10 ** (6 * i / (dimension - 1)) if dimension > 1 else 1.0
    )

    def score(x: Vector[float]) -> float:
        return -scales.dot(x.map(lambda v: v * v))

    return Benchmark("ellipsoid", dimension, score, Vector.zero(dimension, 0.0))


def rosenbrock(dimension: int) -> Benchmark:
    if dimension < 2:
        raise ValueError("rosenbrock needs at least 2 dimensions")

    def score(x: Vector[float]) -> float:
        values = x.to_list()
        return -sum(
            100 * (values[i + 1] - values[i] ** 2) ** 2 + (1 - values[i]) ** 2
            for i in range(dimension - 1)
        )

    return Benchmark("rosenbrock", dimension, score, Vector.from_copies(dimension, 1.0))


BENCHMARKS: Dict[str, Callable[[int], Benchmark]] = {
    "shifted_quadratic": shifted_quadratic,
    "sphere": sphere,
    "ellipsoid": ellipsoid,
    "rosenbrock": rosenbrock,
}


def get_benchmark(name: str, dimension: int) -> Benchmark:
    try:
        factory = BENCHMARKS[name]
    except KeyError:
        raise ValueError(f"unknown benchmark {name!r}; expected one of {sorted(BENCHMARKS)}") from None
    return factory(dimension)
