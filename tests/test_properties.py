"""Behaviour every booster shares, checked across the whole family."""
import numpy as np
import pytest

from pyboosters import (
    AdaBoostECC,
    AdaBoostM1,
    AdaBoostM1W,
    AdaBoostMH,
    AdaBoostOC,
    AdaCost,
    AdaCostB1,
    AdaCostB2,
    CSAdaBoostMH,
    CSB2,
    GentleAdaBoost,
    RealAdaBoost,
)
from pyboosters._utils import shift_and_normalize

BINARY = [
    lambda: AdaBoostM1(initial_iterations=4),
    lambda: RealAdaBoost(initial_iterations=4),
    lambda: GentleAdaBoost(initial_iterations=4),
    lambda: CSB2(initial_iterations=4, cost_matrix=[[0, 1], [3, 0]]),
    lambda: AdaCost(initial_iterations=4, cost_matrix=[[0, 1], [3, 0]]),
]

MULTICLASS = [
    lambda: AdaBoostM1W(initial_iterations=4),
    lambda: AdaBoostOC(initial_iterations=4),
    lambda: AdaBoostECC(initial_iterations=4),
    lambda: AdaBoostECC(initial_iterations=4, symmetric=True),
    lambda: AdaCostB1(initial_iterations=4),
    lambda: AdaCostB2(initial_iterations=4, combination="mvc"),
    lambda: AdaBoostMH(RealAdaBoost(initial_iterations=3)),
    lambda: CSAdaBoostMH(CSB2(initial_iterations=3)),
]


def _check_votes_sum_to_distribution(clf, X):
    for x in X[:5]:
        total = sum(clf.vote_for_instance(x, i) for i in range(clf.iteration_count))
        assert np.allclose(total, clf.decision_votes(x.reshape(1, -1))[0])
        assert np.allclose(clf.predict_distribution(x), shift_and_normalize(total))


def _check_inference_is_pure(clf, X):
    first = clf.predict_proba(X)
    weights = None if not hasattr(clf, "train_data_") else clf.train_data_.weights.copy()
    second = clf.predict_proba(X)
    assert np.array_equal(first, second)
    assert np.array_equal(clf.predict_distribution(X[0]), clf.predict_distribution(X[0]))
    if weights is not None:
        assert np.array_equal(weights, clf.train_data_.weights)


@pytest.mark.filterwarnings("ignore::pyboosters.StoppingCriterionReached")
@pytest.mark.parametrize("make", BINARY)
def test_binary_boosters(make, binary_data):
    X, y = binary_data
    clf = make().fit(X, y)
    _check_votes_sum_to_distribution(clf, X)
    _check_inference_is_pure(clf, X)
    assert clf.predict(X).shape == y.shape


@pytest.mark.filterwarnings("ignore::pyboosters.StoppingCriterionReached")
@pytest.mark.parametrize("make", MULTICLASS)
def test_multiclass_boosters(make, multiclass_data):
    X, y = multiclass_data
    clf = make().fit(X, y)
    _check_votes_sum_to_distribution(clf, X)
    _check_inference_is_pure(clf, X)
    proba = clf.predict_proba(X)
    assert proba.shape == (len(y), 4)
    assert np.all(proba >= 0)
    assert np.allclose(proba.sum(axis=1), 1.0)
