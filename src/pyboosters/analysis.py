# -*- coding: utf-8 -*-
"""
pyboosters.analysis
===================

Per-iteration statistics of a fitted booster on a data set.

:class:`BoosterAnalyzer` replays a booster's committed models one by one,
accumulating their votes, and records after every iteration the error rate
and total cost of the ensemble built so far and of the base model trained in
that iteration alone.  It can be updated incrementally after the booster has
been extended with ``iterate``.
"""

from __future__ import annotations
import csv
import io
import logging

import numpy as np

from .dataset import Dataset
from .exceptions import NotInitializedError
from .mh import AdaBoostMH

logger = logging.getLogger(__name__)

_COLUMNS = {
    "booster_error": "booster_errors",
    "booster_cost": "booster_costs",
    "base_error": "base_errors",
    "base_cost": "base_costs",
}


class BoosterAnalyzer:
    """
    Error and cost curves of a booster.

    Parameters
    ----------
    booster : Booster or AdaBoostMH
        A built booster.
    X : array-like of shape (n_samples, n_features)
    y : array-like of shape (n_samples,)
        True labels, drawn from ``booster.classes_``.
    cost_matrix : CostMatrix, array-like or None, default=None
        Costs used for the cost curves.  Defaults to the booster's own cost
        matrix for cost-sensitive boosters and to 0/1 costs otherwise.

    Attributes
    ----------
    booster_errors, booster_costs : list of float
        Ensemble error rate / total cost after each iteration.
    base_errors, base_costs : list of float
        Error rate / total cost of each iteration's base model; NaN when the
        base models predict partition bits (output-code boosters), and NaN
        costs for one-vs-rest boosters.
    """

    def __init__(self, booster, X, y, cost_matrix=None):
        self.booster = booster
        self.X = np.asarray(X, dtype=float)
        self.y_raw = y
        self.cost_matrix = cost_matrix
        self.booster_errors: list[float] = []
        self.booster_costs: list[float] = []
        self.base_errors: list[float] = []
        self.base_costs: list[float] = []
        self._started = False

    def _start(self):
        from .cost_sensitive import AbstractCSB, CostMatrix

        if not getattr(self.booster, "ready_", False):
            raise NotInitializedError("the booster must be built before it can be analyzed")
        data = Dataset(self.X, self.y_raw, classes=self.booster.classes_)
        if len(data) == 0:
            raise ValueError("no instances to analyze")
        if (data.y < 0).any():
            raise ValueError("every analyzed instance needs a class label")
        self.y = data.y
        k = len(self.booster.classes_)
        if self.cost_matrix is not None:
            cost = CostMatrix.coerce(self.cost_matrix)
        elif isinstance(self.booster, AbstractCSB):
            cost = self.booster.cost_matrix_
        else:
            cost = CostMatrix(np.ones((k, k)) - np.eye(k))
        if cost.size != k:
            raise ValueError(f"cost matrix is {cost.size}x{cost.size}, booster has {k} classes")
        self.cost = cost.values
        self._votes = np.zeros((len(self.y), k))
        self._started = True

    def _reset(self):
        for attr in _COLUMNS.values():
            getattr(self, attr).clear()
        self._votes[:] = 0.0

    def update(self) -> int:
        """Analyze the iterations committed since the last call; return how many.

        If the booster has discarded iterations since then, every curve is
        recomputed from the first iteration.
        """
        if not self._started:
            self._start()
        done = len(self.booster_errors)
        todo = self.booster.iteration_count
        if todo < done:
            logger.debug("booster shrank from %d to %d iterations, replaying", done, todo)
            self._reset()
            done = 0
        for i in range(done, todo):
            self._analyze(i)
        if todo > done:
            logger.debug("analyzed iterations %d to %d", done, todo - 1)
        return max(0, todo - done)

    def _analyze(self, index: int) -> None:
        n = len(self.y)
        self._votes += self.booster.iteration_votes(self.X, index)
        pred = np.argmax(self._votes, axis=1)
        wrong = pred != self.y
        self.booster_errors.append(float(wrong.mean()))
        self.booster_costs.append(float(self.cost[self.y, pred][wrong].sum()))

        if isinstance(self.booster, AdaBoostMH):
            # classes whose sub-booster stopped before ``index`` have no base model
            seen = np.zeros(n, dtype=bool)
            hits = np.zeros(n, dtype=bool)
            for c in range(len(self.booster.classes_)):
                mask = self.y == c
                sub = self.booster.booster_for_class(c)
                if mask.any() and index < sub.iteration_count:
                    seen[mask] = True
                    hits[mask] = sub.base_model_predictions(self.X[mask], index) == 1
            self.base_errors.append(float((~hits[seen]).mean()) if seen.any() else float("nan"))
            self.base_costs.append(float("nan"))
            return

        base = self.booster.base_model_predictions(self.X, index)
        if base is None:
            self.base_errors.append(float("nan"))
            self.base_costs.append(float("nan"))
            return
        base_wrong = base != self.y
        self.base_errors.append(float(base_wrong.mean()))
        self.base_costs.append(float(self.cost[self.y, base][base_wrong].sum()))

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def extremes(self) -> dict:
        """Smallest and largest value of every curve with the iteration it occurs at.

        Returns
        -------
        dict
            ``{column: {"min": (value, index), "max": (value, index)}}`` for
            every curve holding at least one finite value.
        """
        out = {}
        for name, attr in _COLUMNS.items():
            values = np.asarray(getattr(self, attr), dtype=float)
            if values.size == 0 or not np.isfinite(values).any():
                continue
            lo = int(np.nanargmin(values))
            hi = int(np.nanargmax(values))
            out[name] = {"min": (float(values[lo]), lo), "max": (float(values[hi]), hi)}
        return out

    def to_csv(self) -> str:
        """Curves as CSV text, one row per iteration."""
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(("iteration",) + tuple(_COLUMNS))
        for i in range(len(self.booster_errors)):
            writer.writerow((i, self.booster_errors[i], self.booster_costs[i],
                             self.base_errors[i], self.base_costs[i]))
        return buf.getvalue()
