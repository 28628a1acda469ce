from __future__ import annotations

import logging

import pytest

from alg import DimensionError, Vector
from ml.bayes import GaussianNaiveBayes
from ml.binary import Binary
from ml.linear import LinearRegression


def _affine(x: float) -> Vector:
    # Always add a 1 as final value to allow for affine offset.
    return Vector([x, 1.0])


def test_linear_regression_recovers_line():
    samples = [_affine(float(x)) for x in range(5)]
    labels = [2.0 * x + 1.0 for x in range(5)]

    model = LinearRegression(2)
    model.train(samples, labels)

    assert model.model.is_close(Vector([2.0, 1.0]), abs_tol=1e-9)
    assert model.classify(_affine(10.0)) == pytest.approx(21.0)


def test_linear_regression_least_squares_on_noisy_points():
    samples = [_affine(0.0), _affine(1.0), _affine(2.0)]
    labels = [0.0, 2.0, 1.0]

    model = LinearRegression(2)
    model.train(samples, labels)

    # Least-squares line through (0,0), (1,2), (2,1): y = 0.5 x + 0.5.
    assert model.classify(_affine(0.0)) == pytest.approx(0.5)
    assert model.classify(_affine(2.0)) == pytest.approx(1.5)


def test_singular_design_matrix_skips_training(caplog):
    """A singular XᵀX keeps the previous model instead of failing."""
    model = LinearRegression(2)
    model.train([_affine(0.0), _affine(1.0)], [1.0, 3.0])
    trained = model.model.copy()

    caplog.set_level(logging.WARNING, logger="ml.linear")
    model.train([_affine(1.0)] * 3, [1.0, 2.0, 3.0])

    assert model.model == trained
    assert any("singular" in r.getMessage() for r in caplog.records)


def test_linear_regression_rejects_bad_input():
    model = LinearRegression(2)
    with pytest.raises(DimensionError):
        model.train([_affine(0.0)], [1.0, 2.0])
    with pytest.raises(ValueError):
        model.train([], [])


def test_binary_thresholds_inner_regression():
    samples = [_affine(float(x)) for x in range(10)]
    labels = [x >= 5 for x in range(10)]

    classifier = Binary(LinearRegression(2))
    classifier.train(samples, labels)

    assert classifier.classify(_affine(8.0)) is True
    assert classifier.classify(_affine(1.0)) is False


def test_gaussian_naive_bayes_separates_clusters():
    samples = [
        Vector([0.0, 0.1]),
        Vector([0.2, -0.1]),
        Vector([-0.1, 0.0]),
        Vector([5.0, 5.2]),
        Vector([4.9, 4.8]),
        Vector([5.1, 5.0]),
    ]
    labels = [0, 0, 0, 1, 1, 1]

    # Class 2 never appears in training and is never predicted.
    classifier = GaussianNaiveBayes(3)
    classifier.train(samples, labels)

    assert classifier.classify(Vector([0.1, -0.05])) == 0
    assert classifier.classify(Vector([4.8, 5.3])) == 1
    assert classifier.classify(Vector([20.0, 20.0])) == 1


def test_gaussian_naive_bayes_errors():
    classifier = GaussianNaiveBayes(2)
    with pytest.raises(RuntimeError):
        classifier.classify(Vector([0.0]))
    with pytest.raises(ValueError):
        classifier.train([Vector([0.0])], [2])
    with pytest.raises(DimensionError):
        classifier.train([Vector([0.0]), Vector([1.0, 2.0])], [0, 1])


def test_collinear_float_features_skip_training(caplog):
    """Features 0.1 x and 0.3 x differ from exact collinearity only by rounding."""
    samples = [Vector([0.1 * x, 0.3 * x, 1.0]) for x in range(5)]
    labels = [float(x + 1) for x in range(5)]

    caplog.set_level(logging.WARNING, logger="ml.linear")
    model = LinearRegression(3)
    model.train(samples, labels)

    assert model.model == Vector([0, 0, 0])
    assert any("singular" in r.getMessage() for r in caplog.records)
