from __future__ import annotations

import numpy as np
import pytest

from alg import DimensionError, Vector
from ml.mlp import MultiLayerPerceptron, sigmoid


def test_sigmoid_is_stable_at_extremes():
    assert sigmoid(0.0) == 0.5
    assert sigmoid(1000.0) == pytest.approx(1.0)
    assert sigmoid(-1000.0) == pytest.approx(0.0)


def test_layer_shapes():
    net = MultiLayerPerceptron([3, 4, 2])

    # a units feeding b units: a columns, b rows.
    assert [layer.shape for layer in net.layers] == [(3, 4), (4, 2)]
    assert net.parameter_count == 3 * 4 + 4 * 2


def test_zero_weights_give_half_activation():
    net = MultiLayerPerceptron([2, 3, 1])
    out = net.classify(Vector([0.4, -1.2]))
    assert out == Vector([0.5])


def test_parameters_round_trip():
    net = MultiLayerPerceptron([2, 2, 1])
    params = Vector.new(net.parameter_count, lambda i: 0.1 * i)

    net.set_parameters(params)

    assert net.parameters() == params
    assert net.layers[0][1, 0] == pytest.approx(0.2)

    with pytest.raises(DimensionError):
        net.set_parameters(Vector([1.0]))


def test_needs_two_layers():
    with pytest.raises(ValueError):
        MultiLayerPerceptron([3])


def test_training_learns_to_select_an_input():
    samples = [Vector([1.0, 0.0]), Vector([0.0, 1.0])]
    labels = [Vector([1.0]), Vector([0.0])]

    net = MultiLayerPerceptron([2, 1], generations=60, population_size=10, rng=np.random.default_rng(0))
    before = net.mean_squared_error(samples, labels)
    net.train(samples, labels)

    assert net.classify(samples[0])[0] > 0.7
    assert net.classify(samples[1])[0] < 0.3
    assert net.mean_squared_error(samples, labels) < 0.1 < before


def test_training_rejects_mismatched_input():
    net = MultiLayerPerceptron([2, 1])
    with pytest.raises(DimensionError):
        net.train([Vector([1.0, 0.0])], [])
    with pytest.raises(ValueError):
        net.train([], [])
