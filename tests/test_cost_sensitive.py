import math

import numpy as np
import pytest
from sklearn.dummy import DummyClassifier
from sklearn.svm import LinearSVC

from pyboosters import CSB2, AdaCost, AdaCostB1, AdaCostB2, CostMatrix
from pyboosters.dataset import Dataset
from pyboosters.exceptions import ConfigurationError

COSTS = [[0.0, 1.0], [5.0, 0.0]]


def _skewed():
    return np.zeros((4, 1)), np.array([0, 0, 0, 1])


def _alpha(r):
    return 0.5 * math.log((1.0 + r) / (1.0 - r))


# the prior model predicts class 0 with confidence 0.75 everywhere and
# misclassifies only the last instance
@pytest.mark.parametrize("cls, expected_alpha", [
    (CSB2, 0.5 * math.log(2.2)),
    (AdaCost, _alpha(0.0375)),
    (AdaCostB1, _alpha(-0.075)),
    (AdaCostB2, 0.5 * math.log(2.2)),
])
def test_alpha_per_variant(cls, expected_alpha):
    X, y = _skewed()
    clf = cls(DummyClassifier(strategy="prior"), cost_matrix=COSTS, cost_matrix_source="supplied",
              initial_iterations=1).fit(X, y)
    assert clf.estimator_weight(0) == pytest.approx(expected_alpha, rel=1e-3)


def test_csb2_reweighting():
    X, y = _skewed()
    clf = CSB2(DummyClassifier(strategy="prior"), cost_matrix=COSTS, initial_iterations=1).fit(X, y)
    w = clf.train_data_.weights
    assert w[3] / w[0] == pytest.approx(5.0 * 2.2 ** 0.75, rel=1e-3)
    assert w.sum() == pytest.approx(4.0, rel=1e-4)


def test_b2_is_b1_with_baseline_alpha():
    X, y = _skewed()
    b2 = AdaCostB2(DummyClassifier(strategy="prior"), cost_matrix=COSTS, initial_iterations=2).fit(X, y)
    b1 = AdaCostB1(DummyClassifier(strategy="prior"), cost_matrix=COSTS, alpha_rule="baseline",
                   initial_iterations=2).fit(X, y)
    assert b1.estimator_weight(1) == pytest.approx(b2.estimator_weight(1))
    assert np.allclose(b1.train_data_.weights, b2.train_data_.weights)


def test_initial_weights_from_costs():
    X, y = _skewed()
    clf = CSB2(cost_matrix=COSTS, initialize_weights_using_costs=True, norm_factor=-1,
               initial_iterations=0).fit(X, y)
    assert clf.train_data_.weights.tolist() == [1.0, 1.0, 1.0, 5.0]


def test_cost_matrix_sources(tmp_path, binary_data):
    X, y = binary_data
    (tmp_path / "toy.cost").write_text("% costs\n2 2\n0 3\n1 0\n")
    data = Dataset(X, y, relation_name="toy")
    clf = CSB2(cost_matrix_source="on_demand", on_demand_directory=tmp_path, initial_iterations=2)
    clf.build(data)
    assert clf.cost_matrix_.values.tolist() == [[0.0, 3.0], [1.0, 0.0]]

    missing = CSB2(cost_matrix_source="on_demand", on_demand_directory=tmp_path / "none")
    with pytest.raises(ConfigurationError):
        missing.build(data)

    with pytest.raises(ConfigurationError):
        CSB2(cost_matrix_source="supplied").fit(X, y)

    y_rare = np.array([0] * 9 + [1] * 3)
    default = CSB2(default_cost_factor=3.0, initial_iterations=1).fit(X, y_rare)
    assert default.cost_matrix_.values.tolist() == [[0.0, 1.0], [3.0, 0.0]]


def test_cost_matrix_must_match_classes(binary_data):
    X, y = binary_data
    with pytest.raises(ConfigurationError):
        CSB2(cost_matrix=np.ones((3, 3)) - np.eye(3)).fit(X, y)


def test_invalid_configuration():
    with pytest.raises(ConfigurationError):
        CSB2(combination="vote")
    with pytest.raises(ConfigurationError):
        CSB2(cost_matrix_source="file")
    with pytest.raises(ConfigurationError):
        AdaCost(alpha_rule="fancy")
    with pytest.raises(ConfigurationError):
        CSB2(LinearSVC()).fit(*_skewed())


def test_combination_switch_only_affects_prediction(multiclass_data):
    X, y = multiclass_data
    clf = AdaCostB1(initial_iterations=4).fit(X, y)
    weights = clf.train_data_.weights.copy()
    results = {}
    for strategy in ("mvc", "mvc_ucl", "mecc", "mecc_ucl"):
        clf.combination = strategy
        results[strategy] = clf.predict_proba(X)
        assert np.allclose(results[strategy].sum(axis=1), 1.0)
    assert np.array_equal(weights, clf.train_data_.weights)
    assert not np.allclose(results["mvc"], results["mecc_ucl"])
    clf.combination = "nonsense"
    with pytest.raises(ConfigurationError):
        clf.predict(X)


def test_confidence_and_sign_sums_iteration_votes(binary_data):
    X, y = binary_data
    clf = CSB2(cost_matrix=[[0, 1], [1, 0]], initial_iterations=3).fit(X, y)
    conf = clf.confidence_and_sign(X)
    votes = clf.decision_votes(X)
    np.testing.assert_allclose(conf, votes[:, 1] - votes[:, 0])
    per_round = sum(clf.confidence_and_sign(X, i) for i in range(clf.iteration_count))
    np.testing.assert_allclose(conf, per_round)
    np.testing.assert_array_equal(conf > 0, clf.predict(X) == clf.classes_[1])


# -----------------------------------------------------------------------------
# CostMatrix
# -----------------------------------------------------------------------------
def test_cost_matrix_text_format():
    commented = CostMatrix.loads("% header\n# more\n0 2  # inline\n1 0\n")
    assert commented.values.tolist() == [[0.0, 2.0], [1.0, 0.0]]
    with pytest.raises(ValueError):
        CostMatrix.loads("0 2 1\n1 0\n")
    m = CostMatrix.loads("0 2 1\n1 0 3\n1 1 0\n")
    assert m.size == 3
    assert m[1, 2] == 3.0
    assert CostMatrix.loads(m.dumps()) == m


def test_cost_matrix_validation_and_helpers():
    with pytest.raises(ValueError):
        CostMatrix([[0, 1, 2], [1, 0, 1]])
    with pytest.raises(ValueError):
        CostMatrix([[0, -1], [1, 0]])
    m = CostMatrix([[0, 2, 2], [1, 0, 1], [4, 4, 0]])
    assert m.misclassification_costs().tolist() == [4.0, 2.0, 8.0]
    assert m.normalized().values.sum() == pytest.approx(1.0)
    assert m.one_vs_rest(2).values.tolist() == [[0.0, 3.0], [8.0, 0.0]]
    assert CostMatrix.minority_class_sensitive([5, 2, 9], 3.0)[1].tolist() == [3.0, 0.0, 3.0]


def test_cost_matrix_file(tmp_path):
    path = tmp_path / "m.cost"
    path.write_text(CostMatrix([[0, 7], [2, 0]]).dumps())
    assert CostMatrix.load(path) == CostMatrix([[0, 7], [2, 0]])
