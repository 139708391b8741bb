# -*- coding: utf-8 -*-
"""
pyboosters.adaboost
===================

Binary and directly multi-class AdaBoost variants.

* :class:`AdaBoostM1` - discrete AdaBoost (Freund & Schapire).  The vote
  weight of a model with weighted error ``e`` is ``ln((1-e)/e)``;
  misclassified instances have their weight multiplied by ``exp(|beta|)``.
* :class:`AdaBoostM1W` - the "weak" M1 variant, whose vote weight is
  ``ln((K-1)(1-e)/e)`` so that models only need to beat random guessing
  among ``K`` classes.
* :class:`RealAdaBoost` - two-class boosting of probability estimates
  (Friedman, Hastie & Tibshirani).
* :class:`GentleAdaBoost` - two-class boosting of a regressor fit on
  ``+-1`` targets.

All of them are built on :class:`pyboosters.booster.Booster`; this module
only supplies the per-algorithm :class:`~pyboosters.booster.BoostingScheme`.
"""

from __future__ import annotations
import math

import numpy as np
from sklearn.base import is_regressor

from ._utils import SMALL, aligned_proba, safe_log_ratio, split_signed
from .booster import Booster, BoostingScheme, RoundResult, predicted_codes
from .exceptions import ConfigurationError, UnsupportedDataError


# -----------------------------------------------------------------------------
# Discrete AdaBoost (M1 / M1W)
# -----------------------------------------------------------------------------
class DiscreteScheme(BoostingScheme):
    """Vote weight ``ln((c(1-e)+S)/(e+S))`` with ``c = 1`` (M1) or ``K-1`` (M1W)."""

    def __init__(self, *, weak: bool, too_big_error, max_too_big_errors: int,
                 too_big_errors_consecutive: bool):
        self.weak = weak
        self.too_big_error = too_big_error
        self.max_too_big_errors = max_too_big_errors
        self.too_big_errors_consecutive = too_big_errors_consecutive

    def start(self, booster, data):
        self.k = data.n_classes
        if self.too_big_error is None or self.too_big_error <= 0:
            self.threshold = self.default_threshold(self.k)
        else:
            self.threshold = self.too_big_error
        self._countdown = self.max_too_big_errors

    def default_threshold(self, k: int) -> float:
        return 1.0 - 1.0 / k if self.weak else 0.5

    def vote_weight(self, model, data, index):
        pred = predicted_codes(model, data.X)
        wrong = pred != data.y
        err = float(data.weights[wrong].sum() / data.weights.sum())
        scale = (self.k - 1) if self.weak else 1
        beta = float(safe_log_ratio(scale * (1.0 - err), err))
        return RoundResult(beta, err, pred, {"wrong": wrong})

    def must_stop(self, rnd):
        if rnd.error > self.threshold:
            self._countdown -= 1
            if self._countdown == 0:
                self._countdown = self.max_too_big_errors
                return True
        elif self.too_big_errors_consecutive:
            self._countdown = self.max_too_big_errors
        return False

    def bound_factor(self, data, rnd):
        e = rnd.error
        if not self.weak:
            if e > 0.5:
                return None
            return 2.0 * math.sqrt(e * (1.0 - e))
        k = self.k
        if e > 1.0 - 1.0 / k:
            return None
        a, b = 1.0 - 1.0 / k, 1.0 / k
        c = 1.0 / (a ** a * b ** b)
        return (e ** a) * ((1.0 - e) ** b) * c

    def reweight(self, data, rnd, index):
        w = data.weights.copy()
        w[rnd.extra["wrong"]] *= math.exp(abs(rnd.weight))
        return w

    def votes(self, model, weight, X, index):
        pred = predicted_codes(model, X)
        out = np.zeros((X.shape[0], self.k), dtype=float)
        out[np.arange(X.shape[0]), pred] = weight
        return out


class AdaBoostM1(Booster):
    """
    Discrete AdaBoost.M1.

    Works with any number of classes as long as the base model reaches a
    weighted error below ``too_big_error``.

    Parameters
    ----------
    base_estimator : estimator or None, default=None
        Weak learner prototype; defaults to :class:`~pyboosters.stump.DecisionStump`.
    too_big_error : float or None, default=None
        Error above which a round counts as "too big".  ``None`` or a
        non-positive value selects the algorithm default (0.5 for M1,
        ``1 - 1/K`` for M1W); a value of 1 or more never stops.
    max_too_big_errors : int, default=1
        Number of too-big errors that stop the iteration.  Non-positive values
        never stop.
    too_big_errors_consecutive : bool, default=True
        Whether the too-big errors must occur in consecutive rounds.
    initial_iterations, use_resampling, resample_seed, norm_factor,
    compute_error_bound, verbose
        See :class:`~pyboosters.booster.Booster`.

    Examples
    --------
    >>> import numpy as np
    >>> from pyboosters import AdaBoostM1
    >>> X = np.array([[1.0], [2.0], [3.0], [4.0]])
    >>> y = np.array([0, 0, 1, 1])
    >>> AdaBoostM1(initial_iterations=3).fit(X, y).predict([[1.5], [3.5]])
    array([0, 1])
    """

    _weak = False

    def __init__(
        self,
        base_estimator=None,
        *,
        too_big_error: float | None = None,
        max_too_big_errors: int = 1,
        too_big_errors_consecutive: bool = True,
        initial_iterations: int = 10,
        use_resampling: bool = False,
        resample_seed: int = 1,
        norm_factor: float = 0.0,
        compute_error_bound: bool = False,
        verbose: int = 0,
    ):
        super().__init__(base_estimator, initial_iterations=initial_iterations,
                         use_resampling=use_resampling, resample_seed=resample_seed,
                         norm_factor=norm_factor, compute_error_bound=compute_error_bound,
                         verbose=verbose)
        self.too_big_error = None if too_big_error is None else float(too_big_error)
        self.max_too_big_errors = int(max_too_big_errors)
        self.too_big_errors_consecutive = bool(too_big_errors_consecutive)

    def _make_scheme(self):
        return DiscreteScheme(weak=self._weak, too_big_error=self.too_big_error,
                              max_too_big_errors=self.max_too_big_errors,
                              too_big_errors_consecutive=self.too_big_errors_consecutive)


class AdaBoostM1W(AdaBoostM1):
    """
    AdaBoost.M1W: discrete AdaBoost for weak multi-class learners.

    Same parameters as :class:`AdaBoostM1`; the vote weight is scaled by
    ``K - 1`` and the default ``too_big_error`` is ``1 - 1/K``.  The error
    bound tracked is the "guessing error" bound
    ``prod e^(1-1/K) (1-e)^(1/K) / ((1-1/K)^(1-1/K) (1/K)^(1/K))``.
    """

    _weak = True


# -----------------------------------------------------------------------------
# Real AdaBoost
# -----------------------------------------------------------------------------
class RealScheme(BoostingScheme):
    """Half log-odds of the base model's class-1 probability."""

    def start(self, booster, data):
        if data.n_classes != 2:
            raise UnsupportedDataError(f"{type(booster).__name__} handles two-class problems only")
        if not hasattr(booster.base_estimator_, "predict_proba"):
            raise ConfigurationError("the base model must provide predict_proba")

    @staticmethod
    def contribution(model, X) -> np.ndarray:
        p = aligned_proba(model, X, 2)
        return 0.5 * safe_log_ratio(p[:, 1], 1.0 - p[:, 1])

    def vote_weight(self, model, data, index):
        h = self.contribution(model, data.X)
        pred = (h >= 0).astype(int)
        err = float(data.weights[pred != data.y].sum() / data.weights.sum())
        return RoundResult(1.0, err, pred, {"h": h})

    def reweight(self, data, rnd, index):
        sign = np.where(data.y == 1, -1.0, 1.0)
        return data.weights * np.exp(sign * rnd.extra["h"])

    def votes(self, model, weight, X, index):
        return split_signed(self.contribution(model, X))

    def base_predictions(self, model, X):
        return (self.contribution(model, X) >= 0).astype(int)


class _BinaryConfidenceBooster(Booster):
    """Shared prediction rule: class 1 unless the summed confidence is negative."""

    def predict(self, X, n_iterations: int | None = None):
        votes = self.decision_votes(X, n_iterations)
        conf = votes[:, 1] - votes[:, 0]
        return self.classes_[(conf >= 0).astype(int)]


class RealAdaBoost(_BinaryConfidenceBooster):
    """
    Real AdaBoost for two-class problems.

    Each model contributes ``h(x) = 1/2 ln(p1(x) / p0(x))``, computed from
    its probability estimates; instance weights are multiplied by
    ``exp(-y h(x))`` with ``y`` in ``{-1, +1}``.

    Parameters
    ----------
    base_estimator : estimator or None, default=None
        Must implement ``predict_proba``.  Defaults to
        :class:`~pyboosters.stump.DecisionStump`.
    initial_iterations, use_resampling, resample_seed, norm_factor,
    compute_error_bound, verbose
        See :class:`~pyboosters.booster.Booster`.
    """

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
        super().__init__(base_estimator, initial_iterations=initial_iterations,
                         use_resampling=use_resampling, resample_seed=resample_seed,
                         norm_factor=norm_factor, compute_error_bound=compute_error_bound,
                         verbose=verbose)

    def _make_scheme(self):
        return RealScheme()


# -----------------------------------------------------------------------------
# Gentle AdaBoost
# -----------------------------------------------------------------------------
class GentleScheme(BoostingScheme):
    """Regression on ``+-1`` targets, the raw output is the vote."""

    def start(self, booster, data):
        if data.n_classes != 2:
            raise UnsupportedDataError(f"{type(booster).__name__} handles two-class problems only")
        if not is_regressor(booster.base_estimator_):
            raise ConfigurationError("GentleAdaBoost needs a regressor as base model")

    def targets(self, data):
        return np.where(data.y == 1, 1.0, -1.0)

    def vote_weight(self, model, data, index):
        f = np.asarray(model.predict(data.X), dtype=float)
        pred = (f >= 0).astype(int)
        err = float(data.weights[pred != data.y].sum() / data.weights.sum())
        return RoundResult(1.0, err, pred, {"f": f})

    def reweight(self, data, rnd, index):
        return data.weights * np.exp(-self.targets(data) * rnd.extra["f"])

    def votes(self, model, weight, X, index):
        return split_signed(model.predict(X))

    def base_predictions(self, model, X):
        return (np.asarray(model.predict(X), dtype=float) >= 0).astype(int)


class GentleAdaBoost(_BinaryConfidenceBooster):
    """
    Gentle AdaBoost for two-class problems.

    The base model is a regressor trained by weighted least squares on the
    class coded as ``-1``/``+1``; its prediction ``f(x)`` is added directly
    to the ensemble and weights are multiplied by ``exp(-y f(x))``.

    Parameters
    ----------
    base_estimator : regressor or None, default=None
        Defaults to :class:`~pyboosters.stump.RegressionStump`.
    initial_iterations, use_resampling, resample_seed, norm_factor,
    compute_error_bound, verbose
        See :class:`~pyboosters.booster.Booster`.
    """

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
        super().__init__(base_estimator, initial_iterations=initial_iterations,
                         use_resampling=use_resampling, resample_seed=resample_seed,
                         norm_factor=norm_factor, compute_error_bound=compute_error_bound,
                         verbose=verbose)

    def _default_base_estimator(self):
        from .stump import RegressionStump
        return RegressionStump()

    def _make_scheme(self):
        return GentleScheme()
