# -*- coding: utf-8 -*-
"""
pyboosters.mh
=============

AdaBoost.MH: multi-class boosting by one binary booster per class.

Sub-booster ``c`` learns "class ``c``" (code 1) against "any other class"
(code 0).  All sub-boosters read the same relabeled :class:`Dataset`, but
each owns its instance-weight vector: before a sub-booster is built or
extended its weights are copied into the shared data set together with its
labels, and copied back out afterwards.
"""

from __future__ import annotations
import logging

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin, clone

from ._utils import shift_and_normalize
from .booster import Booster
from .dataset import Dataset
from .exceptions import (
    ConfigurationError,
    EmptyTrainingSetError,
    InvalidIndexError,
    IterationOutcome,
    NoModelError,
    NotInitializedError,
    UnsupportedDataError,
)

logger = logging.getLogger(__name__)


class AdaBoostMH(ClassifierMixin, BaseEstimator):
    """
    One-vs-rest multi-class boosting.

    Parameters
    ----------
    booster : Booster or None, default=None
        Prototype of the two-class sub-booster, cloned once per class.  It
        must support :meth:`~pyboosters.booster.Booster.confidence_and_sign`;
        defaults to :class:`~pyboosters.adaboost.RealAdaBoost`.  Its
        ``initial_iterations`` applies to every sub-booster.
    verbose : int, default=0

    Attributes
    ----------
    classes_ : ndarray
    boosters_ : list of Booster
        One fitted sub-booster per class, in ``classes_`` order.
    instance_weights_ : ndarray of shape (n_classes, n_samples)
        Each sub-booster's own instance weights after its last update.
    """

    def __init__(self, booster=None, *, verbose: int = 0):
        self.booster = booster
        self.verbose = int(verbose)

    def _default_booster(self):
        from .adaboost import RealAdaBoost
        return RealAdaBoost()

    def _sub_booster(self, prototype, class_index: int, data: Dataset):
        return clone(prototype)

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------
    def fit(self, X, y, sample_weight=None):
        self.build(Dataset(X, y, sample_weight))
        return self

    def build(self, data: Dataset, *, copy: bool = True) -> IterationOutcome:
        """
        Build one sub-booster per class.

        Returns
        -------
        IterationOutcome
            ``committed`` is the smallest number of iterations any
            sub-booster committed; ``stopped_early`` is set if any stopped.
        """
        self.ready_ = False
        if data.class_is_numeric:
            raise UnsupportedDataError("numeric class attributes are not supported; a nominal class is required")
        if data.has_string_attributes:
            raise UnsupportedDataError("string attributes are not supported")
        prototype = self._default_booster() if self.booster is None else self.booster
        if not isinstance(prototype, Booster):
            raise ConfigurationError("the sub-booster must be a pyboosters Booster")
        if copy:
            data = data.copy()
        data.drop_missing_class()
        if len(data) == 0:
            raise EmptyTrainingSetError("no training instances with a known class")

        self.classes_ = data.classes
        self.n_classes_ = data.n_classes
        self.n_features_in_ = data.X.shape[1]
        self._labels = data.y.copy()
        self.train_data_ = Dataset.from_codes(data.X, np.zeros(len(data), dtype=int), data.weights,
                                              np.array([0, 1]), data.relation_name)
        initial = data.weights.copy()
        self.instance_weights_ = np.tile(initial, (self.n_classes_, 1))
        self.boosters_ = []
        outcomes = []
        for c in range(self.n_classes_):
            sub = self._sub_booster(prototype, c, data)
            self._load(c)
            outcomes.append(sub.build(self.train_data_, copy=False))
            self._save(c)
            self.boosters_.append(sub)
            logger.log(logging.INFO if self.verbose > 0 else logging.DEBUG,
                       "class %r: sub-booster built with %d iterations", self.classes_[c],
                       sub.iteration_count)
        self.ready_ = True
        return self._merge(outcomes)

    def iterate(self, n_iterations: int = 1) -> IterationOutcome:
        """Extend every sub-booster by up to ``n_iterations`` iterations."""
        self._check_ready()
        outcomes = []
        for c, sub in enumerate(self.boosters_):
            self._load(c)
            outcomes.append(sub.iterate(n_iterations))
            self._save(c)
        return self._merge(outcomes)

    def discard_last_iterations(self, n: int) -> int:
        """Drop the ``n`` most recent models of every sub-booster; return the drop in ``iteration_count``."""
        self._check_ready()
        before = self.iteration_count
        for sub in self.boosters_:
            sub.discard_last_iterations(n)
        return before - self.iteration_count

    def _load(self, c: int) -> None:
        self.train_data_.weights = self.instance_weights_[c].copy()
        self.train_data_.y = (self._labels == c).astype(int)

    def _save(self, c: int) -> None:
        self.instance_weights_[c] = self.train_data_.weights

    @staticmethod
    def _merge(outcomes) -> IterationOutcome:
        stopped = [o for o in outcomes if o.stopped_early]
        return IterationOutcome(
            committed=min(o.committed for o in outcomes),
            stopped_early=bool(stopped),
            last_model_committed=all(o.last_model_committed for o in stopped),
        )

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    @property
    def iteration_count(self) -> int:
        """Largest iteration count of any sub-booster.

        Sub-boosters that stopped early contribute nothing to the iterations
        they do not have.
        """
        if not getattr(self, "ready_", False):
            return 0
        return max(sub.iteration_count for sub in self.boosters_)

    def booster_for_class(self, class_index: int) -> Booster:
        self._check_ready()
        return self.boosters_[class_index]

    def confidences(self, X) -> np.ndarray:
        """Signed confidence of each sub-booster, shape (n_samples, n_classes).

        Every committed model of every sub-booster is used.
        """
        self._check_has_models()
        cols = []
        for sub in self.boosters_:
            if sub.iteration_count == 0:
                cols.append(np.zeros(sub._check_X(X).shape[0]))
            else:
                cols.append(sub.confidence_and_sign(X))
        return np.column_stack(cols)

    def decision_votes(self, X) -> np.ndarray:
        """Unnormalized per-class confidences the distribution is built from."""
        return self.confidences(X)

    def predict_proba(self, X):
        return shift_and_normalize(self.confidences(X))

    def predict_distribution(self, x) -> np.ndarray:
        return self.predict_proba(np.asarray(x, dtype=float).reshape(1, -1))[0]

    def predict(self, X):
        return self.classes_[np.argmax(self.confidences(X), axis=1)]

    def vote_for_instance(self, x, model_index: int) -> np.ndarray:
        """Confidence of iteration ``model_index`` of every sub-booster for one instance."""
        return self.iteration_votes(np.asarray(x, dtype=float).reshape(1, -1), model_index)[0]

    def iteration_votes(self, X, model_index: int) -> np.ndarray:
        """Per-class confidences of iteration ``model_index`` for every row of ``X``.

        A sub-booster holding fewer than ``model_index + 1`` models votes 0.
        """
        self._check_ready()
        if model_index < 0 or model_index >= self.iteration_count:
            raise InvalidIndexError(
                f"model index {model_index} out of range [0, {self.iteration_count})")
        cols = []
        for sub in self.boosters_:
            if model_index < sub.iteration_count:
                cols.append(sub.confidence_and_sign(X, model_index=model_index))
            else:
                cols.append(np.zeros(sub._check_X(X).shape[0]))
        return np.column_stack(cols)

    def _check_ready(self):
        if not getattr(self, "ready_", False):
            raise NotInitializedError(
                f"{type(self).__name__} is not built. Call fit(...) or build(...) first.")

    def _check_has_models(self):
        self._check_ready()
        if self.iteration_count == 0:
            raise NoModelError("the ensemble holds no models")


class CSAdaBoostMH(AdaBoostMH):
    """
    Cost-sensitive AdaBoost.MH.

    Every sub-booster receives the two-class projection of the cost matrix
    for its class (see :meth:`CostMatrix.one_vs_rest`).

    Parameters
    ----------
    booster : AbstractCSB or None, default=None
        Cost-sensitive sub-booster prototype; defaults to
        :class:`~pyboosters.cost_sensitive.CSB2`.
    cost_matrix : CostMatrix, array-like or None, default=None
        ``K x K`` costs.  When None the minority-class-sensitive default
        matrix with ``default_cost_factor`` is used.
    default_cost_factor : float, default=2.0
    verbose : int, default=0
    """

    def __init__(self, booster=None, *, cost_matrix=None, default_cost_factor: float = 2.0,
                 verbose: int = 0):
        super().__init__(booster, verbose=verbose)
        self.cost_matrix = cost_matrix
        self.default_cost_factor = float(default_cost_factor)

    def _default_booster(self):
        from .cost_sensitive import CSB2
        return CSB2()

    def _sub_booster(self, prototype, class_index, data):
        from .cost_sensitive import AbstractCSB, CostMatrix
        if not isinstance(prototype, AbstractCSB):
            raise ConfigurationError("CSAdaBoostMH needs a cost-sensitive sub-booster")
        if class_index == 0:
            if self.cost_matrix is None:
                self.cost_matrix_ = CostMatrix.minority_class_sensitive(
                    data.class_counts(), self.default_cost_factor)
            else:
                self.cost_matrix_ = CostMatrix.coerce(self.cost_matrix)
            if self.cost_matrix_.size != data.n_classes:
                raise ConfigurationError(
                    f"cost matrix is {self.cost_matrix_.size}x{self.cost_matrix_.size}, "
                    f"data has {data.n_classes} classes")
        sub = clone(prototype)
        sub.set_params(cost_matrix=self.cost_matrix_.one_vs_rest(class_index),
                       cost_matrix_source="supplied")
        return sub
