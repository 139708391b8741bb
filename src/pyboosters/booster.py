# -*- coding: utf-8 -*-
"""
pyboosters.booster
==================

The generic boosting engine.

:class:`Booster` owns everything the AdaBoost family has in common: data
validation, the iteration loop, the choice between reweighting and
resampling, weight normalization, the committed-model registry, prediction
by summed votes and the optional error upper bound.  What differs between
algorithms (how a model's vote weight is computed, how instance weights are
redistributed and how a model votes) lives in a :class:`BoostingScheme`
created by each concrete estimator.

A fitted booster can keep growing: ``iterate(n)`` appends up to ``n`` more
models, and ``discard_last_iterations(n)`` drops the newest ones.
"""

from __future__ import annotations
import logging
import warnings
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin, clone
from sklearn.utils import check_random_state
from sklearn.utils.validation import has_fit_parameter

from ._utils import SMALL, shift_and_normalize
from .bounds import ErrorUpperBound
from .dataset import Dataset
from .exceptions import (
    ConfigurationError,
    EmptyTrainingSetError,
    InvalidIndexError,
    IterationOutcome,
    NoModelError,
    NotInitializedError,
    StoppingCriterionReached,
    UnsupportedDataError,
)
from .registry import WeightedVoteRegistry

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Schemes
# -----------------------------------------------------------------------------
@dataclass
class RoundResult:
    """What a scheme learned about the model trained in one round."""
    weight: Any
    error: float
    predictions: np.ndarray
    extra: dict = field(default_factory=dict)


class BoostingScheme:
    """Vote-weight and reweighting rules of one boosting algorithm.

    The engine calls, per round: :meth:`prepare_round` (may return new
    instance weights), trains a model on :meth:`targets`, then
    :meth:`vote_weight`, :meth:`must_stop`, :meth:`bound_factor` and
    :meth:`reweight`.  :meth:`votes` turns a committed model into a vote
    matrix at prediction time.
    """

    bound_scale = 1.0

    def start(self, booster: "Booster", data: Dataset) -> None:
        """Validate the data/base model and initialize per-build state."""

    def targets(self, data: Dataset) -> np.ndarray:
        return data.y

    def prepare_round(self, booster: "Booster", data: Dataset, index: int):
        return None

    def vote_weight(self, model, data: Dataset, index: int) -> RoundResult:
        raise NotImplementedError

    def must_stop(self, rnd: RoundResult) -> bool:
        return False

    def bound_factor(self, data: Dataset, rnd: RoundResult) -> float | None:
        return 1.0

    def reweight(self, data: Dataset, rnd: RoundResult, index: int):
        return None

    def votes(self, model, weight, X: np.ndarray, index: int) -> np.ndarray:
        raise NotImplementedError

    def base_predictions(self, model, X: np.ndarray) -> np.ndarray | None:
        """Class codes predicted by one base model, None if it predicts something else."""
        return predicted_codes(model, X)

    def discard(self, size: int) -> None:
        """Forget per-iteration state beyond the first ``size`` iterations."""


def predicted_codes(model, X) -> np.ndarray:
    return np.asarray(model.predict(X)).astype(int)


# -----------------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------------
class Booster(ClassifierMixin, BaseEstimator):
    """
    Abstract boosting estimator.

    Subclasses provide ``_make_scheme`` and ``_default_base_estimator``; they
    must not override the loop itself.

    Parameters
    ----------
    base_estimator : estimator or None, default=None
        Prototype of the weak learner, cloned at every iteration.  ``None``
        selects the algorithm's default weak learner.
    initial_iterations : int, default=10
        Number of iterations performed by ``build``/``fit``.
    use_resampling : bool, default=False
        Train on weighted resamples even when the base model accepts
        ``sample_weight``.  Base models that do not accept weights are always
        trained on resamples.
    resample_seed : int, default=1
        Seed of the resampling generator.  The generator is re-created at
        every ``iterate`` call.
    norm_factor : float, default=0.0
        Weight normalization policy.  ``0`` keeps the initial sum of
        weights, a positive value normalizes the weights to sum to it, and a
        negative value disables normalization.
    compute_error_bound : bool, default=False
        Track the theoretical training-error upper bound.  Purely
        diagnostic; read at ``build`` time.
    verbose : int, default=0
        When positive, per-round statistics are logged at INFO instead of
        DEBUG level.

    Attributes
    ----------
    classes_ : ndarray
        Class labels of the training data.
    iteration_count_ : int
        Number of committed iterations.
    registry_ : WeightedVoteRegistry
        Committed (model, weight) pairs.
    train_data_ : Dataset
        The booster's private copy of the training data.
    error_bound_ : ErrorUpperBound
    """

    #: True when base models see relabeled (binary) targets instead of classes.
    relabels_targets = False

    def __init__(
        self,
        base_estimator=None,
        *,
        initial_iterations: int = 10,
        use_resampling: bool = False,
        resample_seed: int = 1,
        norm_factor: float = 0.0,
        compute_error_bound: bool = False,
        verbose: int = 0,
    ):
        self.base_estimator = base_estimator
        self.initial_iterations = int(initial_iterations)
        self.use_resampling = bool(use_resampling)
        self.resample_seed = int(resample_seed)
        self.norm_factor = float(norm_factor)
        self.compute_error_bound = bool(compute_error_bound)
        self.verbose = int(verbose)
        if self.initial_iterations < 0:
            raise ConfigurationError("initial_iterations must be >= 0")

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------
    def _make_scheme(self) -> BoostingScheme:
        raise NotImplementedError

    def _default_base_estimator(self):
        from .stump import DecisionStump
        return DecisionStump()

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------
    def fit(self, X, y, sample_weight=None):
        """
        Build the ensemble from arrays.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
        y : array-like of shape (n_samples,)
            Class labels; ``None``/``NaN`` entries are ignored.
        sample_weight : array-like of shape (n_samples,), optional
            Initial instance weights.

        Returns
        -------
        self
        """
        self.build(Dataset(X, y, sample_weight))
        return self

    def build(self, data: Dataset, *, copy: bool = True) -> IterationOutcome:
        """
        Reset the booster and perform ``initial_iterations`` iterations.

        Parameters
        ----------
        data : Dataset
            Training data.  Copied unless ``copy=False``, in which case the
            booster mutates the given object (used by the one-vs-rest
            wrappers, which own the data).

        Returns
        -------
        IterationOutcome

        Raises
        ------
        UnsupportedDataError
            Numeric class or string-valued attributes.
        EmptyTrainingSetError
            No instance has a known class.
        ConfigurationError
            The base model lacks a capability the algorithm needs.
        """
        self.ready_ = False
        if data.class_is_numeric:
            raise UnsupportedDataError("numeric class attributes are not supported; a nominal class is required")
        if data.has_string_attributes:
            raise UnsupportedDataError("string attributes are not supported")

        self.base_estimator_ = (self._default_base_estimator() if self.base_estimator is None
                                else self.base_estimator)
        if copy:
            data = data.copy()
        dropped = data.drop_missing_class()
        if dropped:
            logger.debug("dropped %d instances with a missing class", dropped)
        if len(data) == 0:
            raise EmptyTrainingSetError("no training instances with a known class")

        self.train_data_ = data
        self.classes_ = data.classes
        self.n_classes_ = data.n_classes
        self.n_features_in_ = data.X.shape[1]
        self.weighted_training_ = (not self.use_resampling
                                   and has_fit_parameter(self.base_estimator_, "sample_weight"))
        if self.norm_factor == 0:
            self._norm_target = data.sum_of_weights()
        elif self.norm_factor > 0:
            self._norm_target = self.norm_factor
            self._normalize_weights(data)
        else:
            self._norm_target = None

        self.registry_ = WeightedVoteRegistry()
        self.iteration_count_ = 0
        self.scheme_ = self._make_scheme()
        self.scheme_.start(self, data)
        self.error_bound_ = ErrorUpperBound(self.compute_error_bound, self.scheme_.bound_scale)
        self.ready_ = True
        self._log("built %s on %d instances, %d classes (%s)", type(self).__name__, len(data),
                  self.n_classes_, "reweighting" if self.weighted_training_ else "resampling")
        return self.iterate(self.initial_iterations)

    def iterate(self, n_iterations: int = 1) -> IterationOutcome:
        """
        Append up to ``n_iterations`` models to the ensemble.

        Returns
        -------
        IterationOutcome
            ``stopped_early`` is set when the algorithm's stopping criterion
            fired; a :class:`StoppingCriterionReached` warning is issued too.

        Raises
        ------
        NotInitializedError
            ``build``/``fit`` has not completed successfully.
        """
        self._check_ready()
        n_iterations = int(n_iterations)
        if n_iterations < 0:
            raise ValueError("n_iterations must be >= 0")
        data = self.train_data_
        rng = check_random_state(self.resample_seed)
        committed = 0
        for _ in range(n_iterations):
            index = self.iteration_count_
            new_w = self.scheme_.prepare_round(self, data, index)
            if new_w is not None:
                data.weights = new_w
                self._normalize_weights(data)

            model = self._train(data, rng)
            rnd = self.scheme_.vote_weight(model, data, index)
            self._log("iteration %d: error=%.6f weight=%s", index, rnd.error, rnd.weight)

            if self.scheme_.must_stop(rnd):
                keep = index == 0
                if keep:
                    self.error_bound_.update(1.0)
                    self.registry_.add(model, rnd.weight)
                    self.iteration_count_ += 1
                    committed += 1
                msg = (f"{type(self).__name__}: stopping criterion reached at iteration {index} "
                       f"(error={rnd.error:.6f}); {self.iteration_count_} models in the ensemble")
                logger.info(msg)
                warnings.warn(msg, StoppingCriterionReached, stacklevel=2)
                return IterationOutcome(committed, stopped_early=True, last_model_committed=keep)

            self.error_bound_.update(self.scheme_.bound_factor(data, rnd))
            new_w = self.scheme_.reweight(data, rnd, index)
            if new_w is not None:
                data.weights = new_w
                self._normalize_weights(data)
            self.registry_.add(model, rnd.weight)
            self.iteration_count_ += 1
            committed += 1
        return IterationOutcome(committed)

    def discard_last_iterations(self, n: int) -> int:
        """Drop the ``n`` most recent models; return how many were dropped.

        Instance weights and any mislabel distribution are not rewound.
        """
        self._check_ready()
        n = max(0, min(int(n), self.iteration_count_))
        self.iteration_count_ -= n
        self.registry_.truncate(self.iteration_count_)
        self.scheme_.discard(self.iteration_count_)
        self.error_bound_.truncate(self.iteration_count_)
        return n

    def normalize_weights(self, data: Dataset) -> None:
        """Apply the normalization policy to ``data.weights`` in place."""
        self._normalize_weights(data)

    def _normalize_weights(self, data: Dataset) -> None:
        if self._norm_target is None:
            return
        tot = data.weights.sum()
        data.weights = (data.weights + SMALL) / (tot / self._norm_target + SMALL)

    def _train(self, data: Dataset, rng):
        model = clone(self.base_estimator_)
        if self.weighted_training_:
            model.fit(data.X, self.scheme_.targets(data), sample_weight=data.weights)
        else:
            sample = data.resample_with_weights(rng)
            model.fit(sample.X, self.scheme_.targets(sample))
        return model

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    def decision_votes(self, X, n_iterations: int | None = None) -> np.ndarray:
        """
        Unnormalized sum of the committed models' votes.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
        n_iterations : int, optional
            Only use the first ``n_iterations`` models.

        Returns
        -------
        ndarray of shape (n_samples, n_classes)
        """
        X = self._check_X(X)
        total = np.zeros((X.shape[0], self.n_classes_), dtype=float)
        for i in range(self._usable_iterations(n_iterations)):
            total += self.scheme_.votes(self.registry_.model(i), self.registry_.weight(i), X, i)
        return total

    def predict_proba(self, X, n_iterations: int | None = None):
        """
        Combined class distribution: summed votes shifted to be non-negative
        and normalized per instance.
        """
        return shift_and_normalize(self.decision_votes(X, n_iterations))

    def predict_distribution(self, x, n_iterations: int | None = None) -> np.ndarray:
        """Class distribution of a single instance."""
        return self.predict_proba(np.asarray(x, dtype=float).reshape(1, -1), n_iterations)[0]

    def predict(self, X, n_iterations: int | None = None):
        proba = self.predict_proba(X, n_iterations)
        return self.classes_[np.argmax(proba, axis=1)]

    def vote_for_instance(self, x, model_index: int) -> np.ndarray:
        """
        Unnormalized vote of the model committed at ``model_index``.

        Raises
        ------
        InvalidIndexError
            ``model_index`` is outside ``[0, iteration_count_)``.
        """
        return self.iteration_votes(np.asarray(x, dtype=float).reshape(1, -1), model_index)[0]

    def iteration_votes(self, X, model_index: int) -> np.ndarray:
        """Unnormalized votes of one committed model for every row of ``X``."""
        self._check_index(model_index)
        return self.scheme_.votes(self.registry_.model(model_index),
                                  self.registry_.weight(model_index), self._check_X(X), model_index)

    def base_model_predictions(self, X, model_index: int) -> np.ndarray | None:
        """Class codes predicted by base model ``model_index`` on its own.

        None when the base models predict partition bits instead of classes.
        """
        self._check_index(model_index)
        return self.scheme_.base_predictions(self.registry_.model(model_index), self._check_X(X))

    def confidence_and_sign(self, X, model_index: int | None = None) -> np.ndarray:
        """
        Signed confidence of a binary ensemble; positive values favour the
        second class.  With ``model_index`` only that model is consulted.
        """
        if getattr(self, "n_classes_", 2) != 2:
            raise UnsupportedDataError("confidence_and_sign needs a two-class booster")
        if model_index is None:
            votes = self.decision_votes(X)
        else:
            votes = self.iteration_votes(X, model_index)
        return votes[:, 1] - votes[:, 0]

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def iteration_count(self) -> int:
        return getattr(self, "iteration_count_", 0)

    @property
    def estimators_(self) -> list:
        self._check_ready()
        return [m for m, _ in self.registry_]

    def estimator(self, index: int):
        self._check_index(index)
        return self.registry_.model(index)

    def estimator_weight(self, index: int):
        self._check_index(index)
        return self.registry_.weight(index)

    @property
    def error_upper_bound(self) -> float:
        """Current bound; 1.0 when disabled or undetermined."""
        self._check_ready()
        return self.error_bound_.value

    @property
    def error_bound_determined(self) -> bool:
        self._check_ready()
        return self.error_bound_.determined

    def describe(self) -> str:
        """Human readable summary of the fitted ensemble."""
        if not getattr(self, "ready_", False):
            return f"{type(self).__name__}: not built yet"
        lines = [f"{type(self).__name__}: {self.iteration_count_} iterations, "
                 f"{self.n_classes_} classes, base model {self.base_estimator_!r}"]
        for i, (_, w) in enumerate(self.registry_):
            lines.append(f"  [{i}] weight={w}")
        if self.error_bound_.enabled:
            state = f"{self.error_bound_.value:.6f}" if self.error_bound_.determined else "undetermined"
            lines.append(f"  training error upper bound: {state}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _log(self, msg, *args):
        logger.log(logging.INFO if self.verbose > 0 else logging.DEBUG, msg, *args)

    def _check_ready(self):
        if not getattr(self, "ready_", False):
            raise NotInitializedError(
                f"{type(self).__name__} is not built. Call fit(...) or build(...) first.")

    def _usable_iterations(self, n_iterations):
        self._check_ready()
        if self.iteration_count_ == 0:
            raise NoModelError("the ensemble holds no models")
        if n_iterations is None:
            return self.iteration_count_
        return max(0, min(int(n_iterations), self.iteration_count_))

    def _check_index(self, index):
        self._check_ready()
        if index < 0 or index >= self.iteration_count_:
            raise InvalidIndexError(
                f"model index {index} out of range [0, {self.iteration_count_})")

    def _check_X(self, X):
        self._check_ready()
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        if X.shape[1] != self.n_features_in_:
            raise ValueError(f"X has {X.shape[1]} features, expected {self.n_features_in_}")
        return X
