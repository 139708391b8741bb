import numpy as np
import pytest


@pytest.fixture
def binary_data():
    # not separable by a single threshold
    X = np.arange(12, dtype=float).reshape(-1, 1)
    y = np.array([0, 0, 1, 1, 0, 0, 1, 1, 1, 0, 0, 1])
    return X, y


@pytest.fixture
def multiclass_data():
    rng = np.random.RandomState(0)
    centers = np.array([[0.0, 0.0], [3.0, 0.0], [0.0, 3.0], [3.0, 3.0]])
    y = np.repeat(np.arange(4), 15)
    X = centers[y] + rng.normal(scale=0.7, size=(len(y), 2))
    return X, y
