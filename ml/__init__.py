"""Machine-learning components built on :mod:`alg`.

The main interfaces are :class:`Classifier` and :class:`Optimizer`; the
optimiser implementation is :class:`CmaEs`.
"""

from .adaptation import CovarianceAdaptation, StandardAdaptation, StaticCovariance
from .bayes import GaussianNaiveBayes
from .binary import Binary
from .cmaes import CmaEs, CmaEsRun, recombination_weights
from .interface import Classifier, Optimizer
from .linear import LinearRegression
from .mlp import MultiLayerPerceptron

__all__ = [
    "Classifier",
    "Optimizer",
    "CmaEs",
    "CmaEsRun",
    "recombination_weights",
    "CovarianceAdaptation",
    "StandardAdaptation",
    "StaticCovariance",
    "LinearRegression",
    "Binary",
    "GaussianNaiveBayes",
    "MultiLayerPerceptron",
]
