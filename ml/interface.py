"""Capability interfaces implemented by the learning components.

Two protocols are defined here:

* :class:`Classifier`: learns a mapping from samples to labels with
  :meth:`~Classifier.train` and applies it with :meth:`~Classifier.classify`.
  Samples are usually :class:`alg.Vector` instances; labels are whatever the
  concrete classifier predicts (an element value, a bool, a class index, a
  vector of activations).
* :class:`Optimizer`: searches an input space for an input that a
  caller-supplied scoring function rates highly.

A simple mental model for :class:`Optimizer` is the quadratic example used in
the tests:

* The input space is all 2-D vectors ``v``.
* ``scoring_function(v)`` returns ``-(v[0]-3)^2 - (v[1]+1)^2``, which is
  maximised at ``(3, -1)``.
* :meth:`Optimizer.optimize` proposes candidate vectors, scores each with the
  scoring function and returns its final estimate of the best input.
"""
from __future__ import annotations

from typing import Any, Callable, Protocol, Sequence


class Classifier(Protocol):
    """Supervised model over samples and labels."""

    def train(self, samples: Sequence[Any], labels: Sequence[Any]) -> None:
        """Fit the model to ``samples`` with matching ``labels``.

        ``samples[i]`` is labelled ``labels[i]``; both sequences must have the
        same length. Implementations may decline to update their model when
        the data does not determine one (e.g. a singular design matrix) but
        must then leave their previous state intact.
        """

        ...

    def classify(self, sample: Any) -> Any:
        """Return the predicted label for a single sample."""

        ...


class Optimizer(Protocol):
    """Black-box maximiser of a scoring function."""

    def optimize(self, scoring_function: Callable[[Any], Any]) -> Any:
        """Return the input the optimiser believes scores highest.

        Higher scores are interpreted as better inputs. A common pattern is to
        pass the negative of a loss or cost so that maximisation is natural.
        ``scoring_function`` is called once per candidate the optimiser
        evaluates.
        """

        ...
