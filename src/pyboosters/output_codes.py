# -*- coding: utf-8 -*-
"""
pyboosters.output_codes
=======================

Multi-class boosting through output codes.

Every iteration splits the ``K`` classes into two groups with an
:class:`~pyboosters.partition.OutputCodePartitioner`, relabels the training
instances with the group of their class and trains one binary base model.
A *mislabel distribution* ``D[i, j]`` (probability mass of each wrong class
``j`` for instance ``i``) is maintained across iterations; it determines the
instance weights of the next round and is updated multiplicatively from the
trained model's behavior.

* :class:`AdaBoostOC` (Schapire, 1997) weighs each model by its pseudoloss.
* :class:`AdaBoostECC` (Guruswami & Sahai, 1999) gives a model one weight
  for predicting group 1 and another for predicting group 0.
"""

from __future__ import annotations
import logging
import math

import numpy as np

from ._utils import SMALL, safe_log_ratio
from .booster import Booster, BoostingScheme, RoundResult, predicted_codes
from .exceptions import ConfigurationError
from .partition import make_partitioner

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Shared scheme
# -----------------------------------------------------------------------------
class OutputCodeScheme(BoostingScheme):
    """Partition search, mislabel-driven weights and binary relabeling."""

    def __init__(self, partitioner, max_partition_retries: int):
        self.partitioner = partitioner
        self.max_partition_retries = max(1, int(max_partition_retries))

    def start(self, booster, data):
        k = data.n_classes
        if k < 2:
            raise ConfigurationError("output-code boosting needs at least two classes")
        if k < 3:
            logger.warning("%s on %d classes: a plain binary booster is a better choice",
                           type(booster).__name__, k)
        self.k = k
        self.bound_scale = float(k - 1)
        self.partitioner.reset(k)
        self.labels = data.y.copy()
        n = len(data)
        self.mislabel = np.full((n, k), 1.0 / (n * (k - 1)))
        self.mislabel[np.arange(n), self.labels] = 0.0
        self.u = 0.0
        self.sum_before_normalize = 1.0
        self._booster = booster

    # ------------------------------------------------------------------
    # partition search
    # ------------------------------------------------------------------
    def _disagreement(self, codes: np.ndarray) -> np.ndarray:
        """``[code(j) != code(y_i)]`` as an (n, K) matrix."""
        return codes[None, :] != codes[self.labels][:, None]

    def compute_u(self, index: int) -> float:
        codes = self.partitioner.get_partition(index)
        return float((self.mislabel * self._disagreement(codes)).sum())

    def choose_partition(self, index: int) -> float:
        """Generate partitions for ``index`` until ``U >= 0.5`` or retries run out.

        The best partition found is kept.  Returns its ``U``.
        """
        best_u, best_codes = -1.0, None
        u = 0.0
        for attempt in range(self.max_partition_retries):
            codes = self.partitioner.new_partition(index)
            u = self.compute_u(index)
            logger.debug("iteration %d partition attempt %d: U=%.6f", index, attempt, u)
            if u >= 0.5:
                return u
            if u > best_u:
                best_u, best_codes = u, codes
        if u < best_u:
            self.partitioner.set_partition(index, best_codes)
            u = best_u
        return u

    def prepare_round(self, booster, data, index):
        self.u = self.choose_partition(index)
        codes = self.partitioner.get_partition(index)
        mass = (self.mislabel * self._disagreement(codes)).sum(axis=1)
        w = (mass + SMALL) / (self.u + SMALL)
        self.sum_before_normalize = float(w.sum())
        data.y = codes[self.labels]
        return w

    def _normalize_mislabel(self):
        self.mislabel /= self.mislabel.sum()

    def base_predictions(self, model, X):
        return None

    def discard(self, size):
        self.partitioner.truncate(size)


# -----------------------------------------------------------------------------
# AdaBoost.OC
# -----------------------------------------------------------------------------
class OCScheme(OutputCodeScheme):

    def _pseudoloss_terms(self, codes, pred):
        own = (codes[self.labels] != pred).astype(float)[:, None]
        other = (codes[None, :] == pred[:, None]).astype(float)
        return own + other

    def vote_weight(self, model, data, index):
        pred = predicted_codes(model, data.X)
        codes = self.partitioner.get_partition(index)
        terms = self._pseudoloss_terms(codes, pred)
        loss = 0.5 * float((self.mislabel * terms).sum())
        weight = 0.5 * float(safe_log_ratio(1.0 - loss, loss))
        return RoundResult(weight, loss, pred, {"terms": terms})

    def bound_factor(self, data, rnd):
        if rnd.error > 0.5:
            return None
        u = self.u if self.u > 0 else SMALL
        gamma = (0.5 - rnd.error) / u
        return math.sqrt(max(0.0, 1.0 - 4.0 * (gamma * u) ** 2))

    def reweight(self, data, rnd, index):
        self.mislabel *= np.exp(rnd.weight * rnd.extra["terms"])
        self._normalize_mislabel()
        return None

    def votes(self, model, weight, X, index):
        pred = predicted_codes(model, X)
        codes = self.partitioner.get_partition(index)
        return weight * (codes[None, :] == pred[:, None]).astype(float)


class _OutputCodeBooster(Booster):
    relabels_targets = True

    def __init__(
        self,
        base_estimator=None,
        *,
        partitioner="permutation",
        partition_seed: int = 0,
        max_partition_retries: int = 1,
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
        self.partitioner = partitioner
        self.partition_seed = int(partition_seed)
        self.max_partition_retries = int(max_partition_retries)

    def _partitioner(self):
        return make_partitioner(self.partitioner, seed=self.partition_seed)

    def partition(self, index: int) -> np.ndarray:
        """Class bits of the partition used by iteration ``index``."""
        self._check_index(index)
        return self.scheme_.partitioner.get_partition(index)

    @property
    def mislabel_distribution_(self) -> np.ndarray:
        self._check_ready()
        return self.scheme_.mislabel


class AdaBoostOC(_OutputCodeBooster):
    """
    AdaBoost.OC: output-code boosting weighted by pseudoloss.

    Parameters
    ----------
    base_estimator : estimator or None, default=None
        Binary weak learner; defaults to :class:`~pyboosters.stump.DecisionStump`.
    partitioner : {"permutation", "even_split", "random"} or OutputCodePartitioner, default="permutation"
        Coloring strategy.  ``None`` is a configuration error.
    partition_seed : int, default=0
        Seed of the coloring generator when ``partitioner`` is a name or class.
    max_partition_retries : int, default=1
        Partitions tried per iteration while looking for ``U >= 0.5``; the best
        one found is used otherwise.
    initial_iterations, use_resampling, resample_seed, norm_factor,
    compute_error_bound, verbose
        See :class:`~pyboosters.booster.Booster`.

    Attributes
    ----------
    mislabel_distribution_ : ndarray of shape (n_samples, n_classes)
    """

    def _make_scheme(self):
        return OCScheme(self._partitioner(), self.max_partition_retries)


# -----------------------------------------------------------------------------
# AdaBoost.ECC
# -----------------------------------------------------------------------------
class ECCScheme(OutputCodeScheme):

    def __init__(self, partitioner, max_partition_retries, symmetric: bool):
        super().__init__(partitioner, max_partition_retries)
        self.symmetric = symmetric

    def start(self, booster, data):
        super().start(booster, data)
        if not self.symmetric and booster.compute_error_bound and booster.norm_factor >= 0:
            logger.warning("the asymmetric ECC error bound assumes unnormalized weights; "
                           "set norm_factor < 0 for a meaningful bound")

    def vote_weight(self, model, data, index):
        pred = predicted_codes(model, data.X)
        w = data.weights
        truth = data.y
        if self.symmetric:
            agree = float(w[pred == truth].sum())
            disagree = float(w[pred != truth].sum())
            alpha = 0.5 * float(safe_log_ratio(agree, disagree))
            beta = -alpha
            err = disagree / (agree + disagree)
        else:
            a1 = float(w[(pred == 1) & (truth == 1)].sum())
            a2 = float(w[(pred == 1) & (truth == 0)].sum())
            b1 = float(w[(pred == 0) & (truth == 0)].sum())
            b2 = float(w[(pred == 0) & (truth == 1)].sum())
            alpha = 0.5 * float(safe_log_ratio(a1, a2))
            beta = -0.5 * float(safe_log_ratio(b1, b2))
            err = (a2 + b2) / w.sum()
        return RoundResult((alpha, beta), err, pred)

    @staticmethod
    def _per_instance(weight, pred) -> np.ndarray:
        alpha, beta = weight
        return np.where(pred == 1, alpha, beta)

    def bound_factor(self, data, rnd):
        u = self.u
        if self.symmetric:
            alpha = rnd.weight[0]
            err = 1.0 / (math.exp(2.0 * alpha) + 1.0)
            if err > 0.5:
                return None
            gamma = 0.5 - err
            return u * math.sqrt(max(0.0, 1.0 - 4.0 * gamma * gamma)) + 1.0 - u
        c = self._per_instance(rnd.weight, rnd.predictions)
        z = float((data.weights * np.exp(np.where(data.y == 0, c, -c))).sum())
        z *= self.sum_before_normalize / data.weights.sum()
        factor = z * u + 1.0 - u
        if factor > 1.0:
            return None
        return factor

    def reweight(self, data, rnd, index):
        codes = self.partitioner.get_partition(index)
        c = self._per_instance(rnd.weight, rnd.predictions)
        diff = codes[None, :] - codes[self.labels][:, None]
        self.mislabel *= np.exp(0.5 * c[:, None] * diff)
        self._normalize_mislabel()
        return None

    def votes(self, model, weight, X, index):
        pred = predicted_codes(model, X)
        codes = self.partitioner.get_partition(index)
        return self._per_instance(weight, pred)[:, None] * codes[None, :].astype(float)


class AdaBoostECC(_OutputCodeBooster):
    """
    AdaBoost.ECC: error-correcting output-code boosting.

    Parameters
    ----------
    symmetric : bool, default=False
        Use a single weight ``alpha`` (and ``beta = -alpha``) computed from
        weighted agreement instead of separate weights for each predicted
        group.
    base_estimator, partitioner, partition_seed, max_partition_retries
        See :class:`AdaBoostOC`.
    initial_iterations, use_resampling, resample_seed, norm_factor,
    compute_error_bound, verbose
        See :class:`~pyboosters.booster.Booster`.

    Notes
    -----
    The registry stores ``(alpha, beta)`` per model.  A model predicting
    group 1 votes ``alpha * code(j)`` for every class ``j``, one predicting
    group 0 votes ``beta * code(j)``.
    """

    def __init__(
        self,
        base_estimator=None,
        *,
        symmetric: bool = False,
        partitioner="permutation",
        partition_seed: int = 0,
        max_partition_retries: int = 1,
        initial_iterations: int = 10,
        use_resampling: bool = False,
        resample_seed: int = 1,
        norm_factor: float = 0.0,
        compute_error_bound: bool = False,
        verbose: int = 0,
    ):
        super().__init__(base_estimator, partitioner=partitioner, partition_seed=partition_seed,
                         max_partition_retries=max_partition_retries,
                         initial_iterations=initial_iterations, use_resampling=use_resampling,
                         resample_seed=resample_seed, norm_factor=norm_factor,
                         compute_error_bound=compute_error_bound, verbose=verbose)
        self.symmetric = bool(symmetric)

    def _make_scheme(self):
        return ECCScheme(self._partitioner(), self.max_partition_retries, self.symmetric)
