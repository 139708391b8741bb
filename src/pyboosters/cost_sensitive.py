# -*- coding: utf-8 -*-
"""
pyboosters.cost_sensitive
=========================

Cost-sensitive boosting (Ting's CSB2, Fan et al.'s AdaCost and its
variants).

A ``K x K`` cost matrix ``C`` (``C[i, j]`` = cost of predicting ``j`` when
the truth is ``i``, zero diagonal) drives the reweighting: a misclassified
instance of class ``i`` predicted as ``j`` has its weight multiplied by
``C[i, j] * exp(conf * alpha * adj)``, a correctly classified one by
``exp(-conf * alpha * adj)``, where ``conf`` is the base model's probability
for its predicted class and ``adj`` a per-variant cost adjustment.

The way committed models are combined at prediction time is selected by
the ``combination`` parameter and may be changed after training:

``"mvc"``
    maximum vote weighted by confidence of the predicted class.
``"mvc_ucl"``
    maximum vote over the full probability vectors.
``"mecc"``
    minimum expected cost, trusting each model's predicted class.
``"mecc_ucl"``
    minimum expected cost over the full probability vectors.
"""

from __future__ import annotations
import logging
import os
from pathlib import Path

import numpy as np

from ._utils import SMALL, aligned_proba, safe_log_ratio
from .booster import Booster, BoostingScheme, RoundResult
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

COMBINATIONS = ("mvc", "mvc_ucl", "mecc", "mecc_ucl")
COST_SOURCES = ("auto", "supplied", "on_demand", "default")
ALPHA_RULES = ("baseline", "cost_adjusted")


# -----------------------------------------------------------------------------
# Cost matrices
# -----------------------------------------------------------------------------
class CostMatrix:
    """Square matrix of non-negative misclassification costs.

    Parameters
    ----------
    values : array-like of shape (n_classes, n_classes)
        ``values[i, j]`` is the cost of predicting class ``j`` for an
        instance of class ``i``.
    """

    def __init__(self, values):
        arr = np.array(values, dtype=float)
        if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
            raise ValueError(f"a cost matrix must be square, got shape {arr.shape}")
        if np.any(arr < 0):
            raise ValueError("costs must be non-negative")
        self.values = arr

    def __repr__(self) -> str:
        return f"CostMatrix({self.values.tolist()!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, CostMatrix) and np.array_equal(self.values, other.values)

    @property
    def size(self) -> int:
        return int(self.values.shape[0])

    def __getitem__(self, key):
        return self.values[key]

    @classmethod
    def coerce(cls, obj) -> "CostMatrix":
        return obj if isinstance(obj, CostMatrix) else cls(obj)

    # ------------------------------------------------------------------
    # text format
    # ------------------------------------------------------------------
    @classmethod
    def loads(cls, text: str) -> "CostMatrix":
        """
        Parse a whitespace separated matrix, one row per line.

        Everything after ``%`` or ``#`` on a line is a comment.  An optional
        first line ``rows cols`` gives the dimensions.

        Raises
        ------
        ValueError
            The text does not describe a square non-negative matrix.
        """
        rows = []
        for line in text.splitlines():
            for mark in ("%", "#"):
                line = line.split(mark, 1)[0]
            tokens = line.split()
            if tokens:
                rows.append([float(t) for t in tokens])
        if not rows:
            raise ValueError("empty cost matrix")
        head = rows[0]
        if (len(head) == 2 and head[0] == int(head[0]) and head[0] == head[1]
                and len(rows) == int(head[0]) + 1):
            rows = rows[1:]
        if any(len(r) != len(rows) for r in rows):
            raise ValueError("cost matrix rows must all have one entry per class")
        return cls(rows)

    @classmethod
    def load(cls, path) -> "CostMatrix":
        with open(path, "r", encoding="utf-8") as fh:
            return cls.loads(fh.read())

    def dumps(self) -> str:
        k = self.size
        lines = [f"{k} {k}"]
        lines += [" ".join(repr(float(v)) for v in row) for row in self.values]
        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # derived matrices
    # ------------------------------------------------------------------
    @classmethod
    def minority_class_sensitive(cls, class_counts, cost_factor: float = 2.0) -> "CostMatrix":
        """Unit costs everywhere except misclassifying the rarest class, which costs ``cost_factor``."""
        counts = np.asarray(class_counts)
        k = len(counts)
        values = np.ones((k, k)) - np.eye(k)
        minority = int(np.argmin(counts))
        values[minority] *= float(cost_factor)
        return cls(values)

    def normalized(self) -> "CostMatrix":
        """Copy whose elements sum to 1 (unchanged when all costs are 0)."""
        tot = self.values.sum()
        return CostMatrix(self.values / tot if tot > 0 else self.values)

    def misclassification_costs(self) -> np.ndarray:
        """Total cost of misclassifying each class (row sum without the diagonal)."""
        return self.values.sum(axis=1) - np.diag(self.values)

    def one_vs_rest(self, class_index: int) -> "CostMatrix":
        """Two-class matrix for "class_index" (code 1) against every other class (code 0).

        Missing the class costs its row total; predicting it wrongly costs its
        column total.
        """
        c = int(class_index)
        row = self.values[c].sum() - self.values[c, c]
        col = self.values[:, c].sum() - self.values[c, c]
        return CostMatrix([[0.0, col], [row, 0.0]])


def combination_votes(strategy: str, proba: np.ndarray, weight: float, cost: np.ndarray) -> np.ndarray:
    """Votes of one model under a combination strategy.

    Minimum-expected-cost strategies vote with the negative expected cost so
    that the largest summed vote is the cheapest class.
    """
    n = proba.shape[0]
    pred = np.argmax(proba, axis=1)
    conf = proba[np.arange(n), pred]
    if strategy == "mvc":
        out = np.zeros_like(proba)
        out[np.arange(n), pred] = weight * conf
        return out
    if strategy == "mvc_ucl":
        return weight * proba
    if strategy == "mecc":
        return -weight * conf[:, None] * cost[pred]
    if strategy == "mecc_ucl":
        return -weight * (proba @ cost)
    raise ConfigurationError(f"unknown combination {strategy!r}; expected one of {COMBINATIONS}")


# -----------------------------------------------------------------------------
# Scheme
# -----------------------------------------------------------------------------
class CostSensitiveScheme(BoostingScheme):
    """Confidence-rated alpha and cost-driven reweighting.

    ``adjustment`` names the cost adjustment function: ``"none"`` (CSB2),
    ``"adacost"`` (``0.5 c + 0.5`` when wrong, ``-0.5 c + 0.5`` when right)
    or ``"class_cost"`` (``c``), with ``c`` the class's total misclassification
    cost scaled to ``[0, 1]``.
    """

    def __init__(self, *, adjustment: str, alpha_rule: str):
        self.adjustment = adjustment
        self.alpha_rule = alpha_rule

    def start(self, booster, data):
        if not hasattr(booster.base_estimator_, "predict_proba"):
            raise ConfigurationError("cost-sensitive boosting needs a base model with predict_proba")
        self.k = data.n_classes
        self.cost_matrix = booster._resolve_cost_matrix(data)
        if self.cost_matrix.size != self.k:
            raise ConfigurationError(
                f"cost matrix is {self.cost_matrix.size}x{self.cost_matrix.size}, "
                f"data has {self.k} classes")
        self.cost = self.cost_matrix.values
        totals = self.cost.sum(axis=1)
        top = totals.max()
        self.class_cost = totals / top if top > 0 else np.zeros(self.k)
        self._booster = booster
        if booster.initialize_weights_using_costs:
            costs = self.cost_matrix.misclassification_costs()
            data.weights = data.weights * costs[data.y]
            booster.normalize_weights(data)
        logger.debug("cost matrix:\n%s", self.cost)

    def adjust(self, labels, wrong) -> np.ndarray:
        c = self.class_cost[labels]
        if self.adjustment == "adacost":
            return np.where(wrong, 0.5 * c + 0.5, -0.5 * c + 0.5)
        if self.adjustment == "class_cost":
            return c
        return np.ones(len(labels))

    def vote_weight(self, model, data, index):
        proba = aligned_proba(model, data.X, self.k)
        n = len(data)
        pred = np.argmax(proba, axis=1)
        conf = proba[np.arange(n), pred]
        wrong = pred != data.y
        w = data.weights
        if self.alpha_rule == "cost_adjusted":
            adj = self.adjust(data.y, wrong)
        else:
            adj = np.ones(n)
        r = (float((np.where(wrong, -1.0, 1.0) * w * conf * adj).sum()) + SMALL) / (w.sum() + SMALL)
        alpha = 0.5 * float(safe_log_ratio(1.0 + r, 1.0 - r))
        err = float(w[wrong].sum() / w.sum())
        return RoundResult(alpha, err, pred, {"conf": conf, "wrong": wrong})

    def reweight(self, data, rnd, index):
        wrong = rnd.extra["wrong"]
        step = rnd.extra["conf"] * rnd.weight * self.adjust(data.y, wrong)
        factor = np.where(wrong, self.cost[data.y, rnd.predictions] * np.exp(step), np.exp(-step))
        return data.weights * factor

    def votes(self, model, weight, X, index):
        proba = aligned_proba(model, X, self.k)
        return combination_votes(self._booster.combination, proba, weight, self.cost)

    def base_predictions(self, model, X):
        return np.argmax(aligned_proba(model, X, self.k), axis=1)


# -----------------------------------------------------------------------------
# Estimators
# -----------------------------------------------------------------------------
class AbstractCSB(Booster):
    """
    Common machinery of the cost-sensitive boosters.

    Parameters
    ----------
    base_estimator : estimator or None, default=None
        Must implement ``predict_proba``; defaults to
        ``sklearn.naive_bayes.GaussianNB``.
    cost_matrix : CostMatrix, array-like or None, default=None
        Costs used when ``cost_matrix_source`` is ``"supplied"`` (or
        ``"auto"``).
    cost_matrix_source : {"auto", "supplied", "on_demand", "default"}, default="auto"
        Where the cost matrix comes from.  ``"on_demand"`` loads
        ``<relation_name>.cost`` from ``on_demand_directory``; ``"default"``
        builds a matrix with unit costs except for the minority class, whose
        misclassification costs ``default_cost_factor``.  ``"auto"`` uses the
        supplied matrix when there is one and the default matrix otherwise.
    on_demand_directory : str or path-like or None, default=None
        Directory searched by ``"on_demand"``; the working directory when None.
    default_cost_factor : float, default=2.0
    initialize_weights_using_costs : bool, default=False
        Multiply each initial weight by the misclassification cost of the
        instance's class before the first iteration.
    combination : {"mvc", "mvc_ucl", "mecc", "mecc_ucl"}, default="mecc_ucl"
        How committed models are combined at prediction time.  Changing it
        after training only affects prediction.
    initial_iterations, use_resampling, resample_seed, norm_factor,
    compute_error_bound, verbose
        See :class:`~pyboosters.booster.Booster`.

    Attributes
    ----------
    cost_matrix_ : CostMatrix
        The cost matrix actually used during training.
    """

    _adjustment = "none"

    def __init__(
        self,
        base_estimator=None,
        *,
        cost_matrix=None,
        cost_matrix_source: str = "auto",
        on_demand_directory=None,
        default_cost_factor: float = 2.0,
        initialize_weights_using_costs: bool = False,
        combination: str = "mecc_ucl",
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
        self.cost_matrix = cost_matrix
        self.cost_matrix_source = str(cost_matrix_source)
        self.on_demand_directory = on_demand_directory
        self.default_cost_factor = float(default_cost_factor)
        self.initialize_weights_using_costs = bool(initialize_weights_using_costs)
        self.combination = str(combination)
        if self.cost_matrix_source not in COST_SOURCES:
            raise ConfigurationError(f"cost_matrix_source must be one of {COST_SOURCES}")
        if self.combination not in COMBINATIONS:
            raise ConfigurationError(f"combination must be one of {COMBINATIONS}")

    def _default_base_estimator(self):
        from sklearn.naive_bayes import GaussianNB
        return GaussianNB()

    def _alpha_rule(self) -> str:
        return "baseline"

    def _make_scheme(self):
        return CostSensitiveScheme(adjustment=self._adjustment, alpha_rule=self._alpha_rule())

    def _resolve_cost_matrix(self, data) -> CostMatrix:
        source = self.cost_matrix_source
        if source == "auto":
            source = "supplied" if self.cost_matrix is not None else "default"
        if source == "supplied":
            if self.cost_matrix is None:
                raise ConfigurationError("cost_matrix_source='supplied' but no cost_matrix given")
            return CostMatrix.coerce(self.cost_matrix)
        if source == "on_demand":
            directory = Path(self.on_demand_directory) if self.on_demand_directory else Path(os.getcwd())
            path = directory / f"{data.relation_name}.cost"
            if not path.is_file():
                raise ConfigurationError(f"on-demand cost file {path} not found")
            logger.info("loading cost matrix from %s", path)
            return CostMatrix.load(path)
        return CostMatrix.minority_class_sensitive(data.class_counts(), self.default_cost_factor)

    @property
    def cost_matrix_(self) -> CostMatrix:
        self._check_ready()
        return self.scheme_.cost_matrix


class CSB2(AbstractCSB):
    """
    CSB2 (Ting, 2000): cost-sensitive boosting with confidence-rated alpha.

    See :class:`AbstractCSB` for the parameters.
    """


class _AdaCostFamily(AbstractCSB):

    _default_alpha_rule = "cost_adjusted"

    def __init__(
        self,
        base_estimator=None,
        *,
        alpha_rule: str | None = None,
        cost_matrix=None,
        cost_matrix_source: str = "auto",
        on_demand_directory=None,
        default_cost_factor: float = 2.0,
        initialize_weights_using_costs: bool = False,
        combination: str = "mecc_ucl",
        initial_iterations: int = 10,
        use_resampling: bool = False,
        resample_seed: int = 1,
        norm_factor: float = 0.0,
        compute_error_bound: bool = False,
        verbose: int = 0,
    ):
        super().__init__(base_estimator, cost_matrix=cost_matrix,
                         cost_matrix_source=cost_matrix_source,
                         on_demand_directory=on_demand_directory,
                         default_cost_factor=default_cost_factor,
                         initialize_weights_using_costs=initialize_weights_using_costs,
                         combination=combination, initial_iterations=initial_iterations,
                         use_resampling=use_resampling, resample_seed=resample_seed,
                         norm_factor=norm_factor, compute_error_bound=compute_error_bound,
                         verbose=verbose)
        self.alpha_rule = alpha_rule
        if alpha_rule is not None and alpha_rule not in ALPHA_RULES:
            raise ConfigurationError(f"alpha_rule must be one of {ALPHA_RULES}")

    def _alpha_rule(self) -> str:
        return self.alpha_rule or self._default_alpha_rule


class AdaCost(_AdaCostFamily):
    """
    AdaCost (Fan, Stolfo, Zhang & Chan, 1999).

    The cost adjustment is ``0.5 c + 0.5`` for misclassified and
    ``-0.5 c + 0.5`` for correctly classified instances, ``c`` being the
    instance class's total misclassification cost divided by the largest
    such total.  It scales both the alpha statistic and the reweighting
    exponent.

    Parameters
    ----------
    alpha_rule : {"cost_adjusted", "baseline"} or None, default=None
        ``"cost_adjusted"`` (the default) applies the cost adjustment inside
        the alpha statistic; ``"baseline"`` uses the unadjusted CSB alpha.
    **other parameters
        See :class:`AbstractCSB`.
    """

    _adjustment = "adacost"


class AdaCostB1(_AdaCostFamily):
    """AdaCost variant whose cost adjustment is ``c`` itself for every instance."""

    _adjustment = "class_cost"


class AdaCostB2(_AdaCostFamily):
    """
    AdaCost.B1 reweighting combined with the unadjusted (baseline) alpha.

    Identical to ``AdaCostB1(alpha_rule="baseline")``.
    """

    _adjustment = "class_cost"
    _default_alpha_rule = "baseline"
