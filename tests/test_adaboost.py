import math
import warnings

import numpy as np
import pytest
from sklearn.base import clone
from sklearn.dummy import DummyClassifier

from pyboosters import (
    AdaBoostECC,
    AdaBoostM1,
    AdaBoostM1W,
    AdaBoostOC,
    DecisionStump,
)
from pyboosters.bounds import ErrorUpperBound
from pyboosters.dataset import Dataset
from pyboosters.exceptions import (
    EmptyTrainingSetError,
    InvalidIndexError,
    NoModelError,
    NotInitializedError,
    StoppingCriterionReached,
    UnsupportedDataError,
)


def _skewed():
    return np.zeros((4, 1)), np.array([0, 0, 0, 1])


def test_single_round_weights():
    X, y = _skewed()
    clf = AdaBoostM1(initial_iterations=1).fit(X, y, sample_weight=[0.25] * 4)
    assert clf.iteration_count == 1
    assert clf.estimator_weight(0) == pytest.approx(math.log(3.0), rel=1e-5)
    w = clf.train_data_.weights
    assert w[3] / w[0] == pytest.approx(3.0, rel=1e-5)
    assert w.sum() == pytest.approx(1.0, rel=1e-5)


def test_stop_keeps_first_model_only():
    X, y = _skewed()
    clf = AdaBoostM1(DummyClassifier(strategy="constant", constant=1), initial_iterations=5)
    with pytest.warns(StoppingCriterionReached):
        outcome = clf.build(Dataset(X, y))
    assert outcome.stopped_early and outcome.last_model_committed
    assert outcome.committed == 1
    assert not outcome
    assert clf.iteration_count == 1

    with pytest.warns(StoppingCriterionReached):
        again = clf.iterate(3)
    assert again.committed == 0
    assert again.stopped_early and not again.last_model_committed
    assert clf.iteration_count == 1


def test_stop_after_repeated_big_errors():
    X, y = _skewed()
    clf = AdaBoostM1(DummyClassifier(strategy="constant", constant=1), max_too_big_errors=2,
                     initial_iterations=5, compute_error_bound=True)
    with pytest.warns(StoppingCriterionReached):
        outcome = clf.build(Dataset(X, y))
    assert outcome.committed == 1
    assert not outcome.last_model_committed
    assert clf.iteration_count == 1
    assert not clf.error_bound_determined
    assert clf.error_upper_bound == 1.0


def test_never_stop_when_max_errors_non_positive():
    X, y = _skewed()
    clf = AdaBoostM1(DummyClassifier(strategy="constant", constant=1), max_too_big_errors=0,
                     initial_iterations=4)
    with warnings.catch_warnings():
        warnings.simplefilter("error", StoppingCriterionReached)
        outcome = clf.build(Dataset(X, y))
    assert outcome.committed == 4 and bool(outcome)


def test_error_bound_is_monotone(binary_data):
    X, y = binary_data
    clf = AdaBoostM1(initial_iterations=8, compute_error_bound=True).fit(X, y)
    hist = clf.error_bound_.history
    assert len(hist) == clf.iteration_count
    assert hist[0] <= 1.0
    for a, b in zip(hist, hist[1:]):
        assert b <= a + 1e-12
    assert clf.error_upper_bound == pytest.approx(hist[-1])


@pytest.mark.parametrize("make", [
    lambda flag: AdaBoostM1(initial_iterations=6, compute_error_bound=flag),
    lambda flag: AdaBoostM1W(initial_iterations=6, compute_error_bound=flag),
    lambda flag: AdaBoostOC(initial_iterations=6, compute_error_bound=flag),
    lambda flag: AdaBoostECC(initial_iterations=6, compute_error_bound=flag, norm_factor=-1),
])
def test_error_bound_does_not_change_training(make, multiclass_data):
    X, y = multiclass_data
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", StoppingCriterionReached)
        plain = make(False).fit(X, y)
        tracked = make(True).fit(X, y)
    assert plain.iteration_count == tracked.iteration_count
    assert np.allclose(plain.train_data_.weights, tracked.train_data_.weights)
    for i in range(plain.iteration_count):
        assert np.allclose(plain.estimator_weight(i), tracked.estimator_weight(i))
    assert np.allclose(plain.predict_proba(X), tracked.predict_proba(X))


def test_m1w_error_bound(multiclass_data):
    X, y = multiclass_data
    clf = AdaBoostM1W(initial_iterations=5, compute_error_bound=True).fit(X, y)
    assert clf.error_bound_determined
    assert 0.0 < clf.error_upper_bound <= 1.0


def test_resampling_is_deterministic(multiclass_data):
    X, y = multiclass_data
    a = AdaBoostM1W(initial_iterations=5, use_resampling=True, resample_seed=7).fit(X, y)
    b = AdaBoostM1W(initial_iterations=5, use_resampling=True, resample_seed=7).fit(X, y)
    assert not a.weighted_training_
    assert a.iteration_count == b.iteration_count
    n = a.iteration_count
    assert [a.estimator_weight(i) for i in range(n)] == [b.estimator_weight(i) for i in range(n)]
    assert np.array_equal(a.predict(X), b.predict(X))


def test_multiclass_m1w_keeps_going(multiclass_data):
    X, y = multiclass_data
    clf = AdaBoostM1W(initial_iterations=10).fit(X, y)
    assert clf.iteration_count == 10
    assert set(clf.predict(X)) <= set(range(4))
    proba = clf.predict_proba(X)
    assert proba.shape == (len(y), 4)
    assert np.allclose(proba.sum(axis=1), 1.0)


def test_doc_example():
    X = np.array([[1.0], [2.0], [3.0], [4.0]])
    y = np.array([0, 0, 1, 1])
    assert list(AdaBoostM1(initial_iterations=3).fit(X, y).predict([[1.5], [3.5]])) == [0, 1]


def test_string_labels_round_trip(binary_data):
    X, y = binary_data
    labels = np.where(y == 1, "yes", "no")
    clf = AdaBoostM1(initial_iterations=4).fit(X, labels)
    assert set(clf.predict(X)) <= {"yes", "no"}
    assert list(clf.classes_) == ["no", "yes"]


# -----------------------------------------------------------------------------
# Lifecycle and errors
# -----------------------------------------------------------------------------
def test_use_before_build():
    clf = AdaBoostM1()
    with pytest.raises(NotInitializedError):
        clf.iterate(1)
    with pytest.raises(NotInitializedError):
        clf.predict([[1.0]])
    assert clf.iteration_count == 0


def test_zero_initial_iterations_then_iterate(binary_data):
    X, y = binary_data
    clf = AdaBoostM1(initial_iterations=0).fit(X, y)
    with pytest.raises(NoModelError):
        clf.predict_proba(X)
    outcome = clf.iterate(2)
    assert outcome.committed == 2
    assert clf.predict_proba(X).shape == (len(y), 2)


def test_model_index_checks(binary_data):
    X, y = binary_data
    clf = AdaBoostM1(initial_iterations=3).fit(X, y)
    clf.vote_for_instance(X[0], 2)
    for bad in (3, -1):
        with pytest.raises(InvalidIndexError):
            clf.vote_for_instance(X[0], bad)
        with pytest.raises(IndexError):
            clf.estimator(bad)


def test_rejects_numeric_class_and_string_attributes():
    X = np.arange(6, dtype=float).reshape(-1, 1)
    with pytest.raises(UnsupportedDataError):
        AdaBoostM1().fit(X, [0.1, 0.5, 0.25, 1.7, 2.2, 3.9])
    X_str = np.array([["a"], ["b"], ["a"], ["b"]], dtype=object)
    with pytest.raises(UnsupportedDataError):
        AdaBoostM1().fit(X_str, [0, 1, 0, 1])


def test_missing_classes_are_dropped():
    X = np.arange(6, dtype=float).reshape(-1, 1)
    y = np.array([0, None, 1, 0, np.nan, 1], dtype=object)
    clf = AdaBoostM1(initial_iterations=2).fit(X, y)
    assert len(clf.train_data_) == 4
    with pytest.raises(EmptyTrainingSetError):
        AdaBoostM1().fit(X, [None] * 6)


def test_failed_build_leaves_booster_uninitialized(binary_data):
    X, y = binary_data
    clf = AdaBoostM1(initial_iterations=2).fit(X, y)
    with pytest.raises(UnsupportedDataError):
        clf.fit(X, np.linspace(0.1, 0.9, len(y)))
    with pytest.raises(NotInitializedError):
        clf.iterate(1)


# -----------------------------------------------------------------------------
# Normalization
# -----------------------------------------------------------------------------
def test_no_normalization():
    X, y = _skewed()
    clf = AdaBoostM1(initial_iterations=1, norm_factor=-1).fit(X, y, sample_weight=[0.25] * 4)
    assert np.allclose(clf.train_data_.weights, [0.25, 0.25, 0.25, 0.75], rtol=1e-5)


def test_custom_normalization_target():
    X, y = _skewed()
    clf = AdaBoostM1(initial_iterations=1, norm_factor=2.0).fit(X, y)
    assert clf.train_data_.weights.sum() == pytest.approx(2.0, rel=1e-5)


def test_preserve_initial_sum(binary_data):
    X, y = binary_data
    clf = AdaBoostM1(initial_iterations=5).fit(X, y)
    assert clf.train_data_.weights.sum() == pytest.approx(len(y), rel=1e-4)


# -----------------------------------------------------------------------------
# Extending and shrinking
# -----------------------------------------------------------------------------
def test_iterate_extends_and_discard_shrinks(binary_data):
    X, y = binary_data
    clf = AdaBoostM1(initial_iterations=3, compute_error_bound=True).fit(X, y)
    assert clf.iterate(2).committed == 2
    assert clf.iteration_count == 5
    assert clf.discard_last_iterations(2) == 2
    assert clf.iteration_count == 3
    assert len(clf.error_bound_.history) == 3
    assert clf.discard_last_iterations(10) == 3
    assert clf.iteration_count == 0


def test_discard_rewinds_error_bound(binary_data):
    X, y = binary_data
    short = AdaBoostM1(initial_iterations=3, compute_error_bound=True).fit(X, y)
    clf = AdaBoostM1(initial_iterations=6, compute_error_bound=True).fit(X, y)
    clf.discard_last_iterations(3)
    assert clf.error_upper_bound == pytest.approx(clf.error_bound_.history[-1])
    assert clf.error_upper_bound == pytest.approx(short.error_upper_bound)
    clf.iterate(1)
    assert len(clf.error_bound_.history) == clf.iteration_count == 4
    assert clf.error_upper_bound <= short.error_upper_bound + 1e-12


def test_truncated_bound_forgets_undetermined_rounds():
    bound = ErrorUpperBound(enabled=True, scale=2.0)
    for factor in (0.8, 0.5, None, 0.9):
        bound.update(factor)
    assert not bound.determined
    assert bound.history == [pytest.approx(1.6), pytest.approx(0.8), None, None]
    bound.truncate(2)
    assert bound.determined
    assert bound.value == pytest.approx(0.8)
    bound.update(0.5)
    assert bound.value == pytest.approx(0.4)
    bound.truncate(0)
    assert bound.determined and bound.value == pytest.approx(2.0)
    assert bound.history == []


def test_prediction_with_fewer_iterations(binary_data):
    X, y = binary_data
    clf = AdaBoostM1(initial_iterations=4).fit(X, y)
    first = clf.predict(X, n_iterations=1)
    assert np.array_equal(first, clf.estimator(0).predict(X).astype(int))


def test_clone_and_params():
    clf = AdaBoostM1(DecisionStump(max_numeric_thresholds=4), too_big_error=0.4, initial_iterations=3)
    params = clone(clf).get_params()
    assert params["too_big_error"] == 0.4
    assert params["initial_iterations"] == 3
    assert params["base_estimator__max_numeric_thresholds"] == 4


def test_describe_and_logging(binary_data, caplog):
    X, y = binary_data
    clf = AdaBoostM1(initial_iterations=2, verbose=1, compute_error_bound=True)
    assert "not built" in clf.describe()
    with caplog.at_level("INFO", logger="pyboosters"):
        clf.fit(X, y)
    assert any("iteration 1" in r.getMessage() for r in caplog.records)
    text = clf.describe()
    assert "2 iterations" in text and "upper bound" in text
