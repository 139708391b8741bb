# -*- coding: utf-8 -*-
"""
pyboosters.stump
================

One-split decision trees used as the default weak learners.

:class:`DecisionStump` chooses the numeric threshold with the best
C4.5/C5.0 gain ratio (penalized by the fraction of known values) and stores
a class distribution per branch, so it can serve both discrete and real
boosting.  :class:`RegressionStump` chooses the threshold that most reduces
the weighted sum of squared errors, and is the default base model of
Gentle AdaBoost.

Both honour ``sample_weight`` and route instances with a missing value
down both branches in proportion to the branch weights seen in training.
"""

from __future__ import annotations
import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin, RegressorMixin
from sklearn.utils.validation import check_is_fitted


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _entropy(dist_vec: np.ndarray) -> float:
    tot = dist_vec.sum()
    if tot <= 0:
        return 0.0
    p = dist_vec / tot
    p = p[p > 0]
    return float(-np.sum(p * np.log2(p)))


def _split_info(children: list[np.ndarray]) -> float:
    tot = sum(d.sum() for d in children)
    if tot <= 0:
        return 0.0
    w = [d.sum() / tot for d in children if d.sum() > 0]
    return float(-sum(wi * np.log2(wi) for wi in w))


def _gain_ratio(parent: np.ndarray, children: list[np.ndarray]) -> float:
    g = _entropy(parent) - sum(d.sum() / max(parent.sum(), 1e-12) * _entropy(d) for d in children)
    s = _split_info(children)
    return float(g / s) if s > 0 else 0.0


def _candidate_boundaries(v: np.ndarray, max_thresholds: int) -> np.ndarray:
    """Positions ``i`` of sorted ``v`` where ``v[i] != v[i + 1]``, capped by quantile."""
    bd = np.nonzero(v[:-1] != v[1:])[0]
    if bd.size > max_thresholds:
        idxs = np.linspace(0, bd.size - 1, num=max_thresholds, dtype=int)
        bd = bd[idxs]
    return bd


def _check_fit_args(X, y, sample_weight):
    X = np.asarray(X, dtype=float)
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    y = np.asarray(y)
    if sample_weight is None:
        w = np.ones(len(y), dtype=float)
    else:
        w = np.asarray(sample_weight, dtype=float)
        if len(w) != len(y):
            raise ValueError("sample_weight must have the same length as y")
    return X, y, w


# -----------------------------------------------------------------------------
# Classifier
# -----------------------------------------------------------------------------
class DecisionStump(ClassifierMixin, BaseEstimator):
    """
    Single-split classification tree scored by gain ratio.

    Parameters
    ----------
    max_numeric_thresholds : int, default=64
        Number of candidate thresholds evaluated per feature.  When a feature
        has more distinct boundaries they are subsampled evenly over the
        sorted values.
    min_weight_leaf : float, default=0.0
        Minimum total weight each branch must receive.

    Attributes
    ----------
    classes_ : ndarray
        Labels seen during ``fit``.
    feature_index_ : int or None
        Feature used for the split; ``None`` when no useful split exists and
        the stump degenerates to the weighted class prior.
    threshold_ : float or None
        Instances with ``x[feature_index_] <= threshold_`` take the left branch.
    branch_distributions_ : ndarray of shape (2, n_classes)
        Normalized class distribution of the left and right branches.
    branch_weights_ : tuple of float
        Fraction of known-valued training weight sent to each branch.
    """

    def __init__(self, *, max_numeric_thresholds: int = 64, min_weight_leaf: float = 0.0):
        self.max_numeric_thresholds = int(max_numeric_thresholds)
        self.min_weight_leaf = float(min_weight_leaf)

    def fit(self, X, y, sample_weight=None):
        X, y, w = _check_fit_args(X, y, sample_weight)
        self.classes_, y_idx = np.unique(y, return_inverse=True)
        self.n_features_in_ = X.shape[1]
        k = len(self.classes_)
        parent = np.bincount(y_idx, weights=w, minlength=k).astype(float)
        self.prior_ = self._normalize(parent, np.full(k, 1.0 / k))

        feat, thr, left, right = self._best_split(X, y_idx, w, k)
        if feat is None:
            self.feature_index_ = None
            self.threshold_ = None
            self.branch_distributions_ = np.vstack([self.prior_, self.prior_])
            self.branch_weights_ = (0.5, 0.5)
            return self

        self.feature_index_ = int(feat)
        self.threshold_ = float(thr)
        self.branch_distributions_ = np.vstack([
            self._normalize(left, self.prior_), self._normalize(right, self.prior_)])
        swL, swR = float(left.sum()), float(right.sum())
        pl = swL / (swL + swR) if (swL + swR) > 0 else 0.5
        self.branch_weights_ = (pl, 1.0 - pl)
        return self

    def predict_proba(self, X):
        """
        Class probability estimates of the branch each instance falls in.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)

        Returns
        -------
        ndarray of shape (n_samples, n_classes)
            Instances missing the split feature receive the branch
            distributions blended by the training branch weights.
        """
        check_is_fitted(self, "classes_")
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        if self.feature_index_ is None:
            return np.tile(self.prior_, (X.shape[0], 1))
        col = X[:, self.feature_index_]
        left, right = self.branch_distributions_
        pl, pr = self.branch_weights_
        out = np.where((col <= self.threshold_)[:, None], left, right)
        miss = np.isnan(col)
        if miss.any():
            out[miss] = pl * left + pr * right
        return out

    def predict(self, X):
        proba = self.predict_proba(X)
        return self.classes_[np.argmax(proba, axis=1)]

    # ------------------------------------------------------------------
    # Split search
    # ------------------------------------------------------------------
    @staticmethod
    def _normalize(dist: np.ndarray, fallback: np.ndarray) -> np.ndarray:
        tot = dist.sum()
        return dist / tot if tot > 0 else fallback.copy()

    def _best_split(self, X, y_idx, w, k):
        """Compute the best numeric split by gain ratio with weights."""
        best_gain, best_feat, best_thr = 0.0, None, None
        best_left = best_right = None
        total_w = w.sum()
        if total_w <= 0:
            return None, None, None, None

        for j in range(X.shape[1]):
            col = X[:, j]
            known = ~np.isnan(col)
            if known.sum() <= 1:
                continue
            frac_known = w[known].sum() / total_w
            order = np.argsort(col[known], kind="mergesort")
            v = col[known][order]
            yk = y_idx[known][order]
            wk = w[known][order]
            bd = _candidate_boundaries(v, self.max_numeric_thresholds)
            if bd.size == 0:
                continue

            M = np.zeros((yk.shape[0], k), dtype=float)
            M[np.arange(yk.shape[0]), yk] = wk
            SW = M.cumsum(axis=0)
            total = SW[-1]

            for i in bd:
                left = SW[i]
                right = total - left
                if left.sum() < self.min_weight_leaf or right.sum() < self.min_weight_leaf:
                    continue
                gr = _gain_ratio(total, [left, right]) * frac_known
                if gr > best_gain + 1e-12:
                    best_gain, best_feat = gr, j
                    best_thr = 0.5 * (v[i] + v[i + 1])
                    best_left, best_right = left.copy(), right.copy()

        return best_feat, best_thr, best_left, best_right


# -----------------------------------------------------------------------------
# Regressor
# -----------------------------------------------------------------------------
class RegressionStump(RegressorMixin, BaseEstimator):
    """
    Single-split regression tree minimizing weighted squared error.

    Parameters
    ----------
    max_numeric_thresholds : int, default=64
        Number of candidate thresholds evaluated per feature.

    Attributes
    ----------
    feature_index_ : int or None
        Split feature, ``None`` when predicting the weighted mean everywhere.
    threshold_ : float or None
    values_ : tuple of float
        Weighted mean target of the left and right branches.
    branch_weights_ : tuple of float
    """

    def __init__(self, *, max_numeric_thresholds: int = 64):
        self.max_numeric_thresholds = int(max_numeric_thresholds)

    def fit(self, X, y, sample_weight=None):
        X, y, w = _check_fit_args(X, y, sample_weight)
        y = y.astype(float)
        self.n_features_in_ = X.shape[1]
        sw = w.sum()
        self.mean_ = float((w * y).sum() / sw) if sw > 0 else float(y.mean())
        self.feature_index_ = None
        self.threshold_ = None
        self.values_ = (self.mean_, self.mean_)
        self.branch_weights_ = (0.5, 0.5)

        sse_parent = float((w * (y - self.mean_) ** 2).sum())
        best_gain = 1e-12
        for j in range(X.shape[1]):
            col = X[:, j]
            known = ~np.isnan(col)
            if known.sum() <= 1:
                continue
            order = np.argsort(col[known], kind="mergesort")
            v = col[known][order]
            yk = y[known][order]
            wk = w[known][order]
            bd = _candidate_boundaries(v, self.max_numeric_thresholds)
            if bd.size == 0:
                continue

            csw = np.cumsum(wk)
            csy = np.cumsum(wk * yk)
            csy2 = np.cumsum(wk * yk * yk)
            SW, SY, SY2 = float(csw[-1]), float(csy[-1]), float(csy2[-1])
            # instances missing this feature keep the parent mean
            sse_missing = float((w[~known] * (y[~known] - self.mean_) ** 2).sum())

            for i in bd:
                swL, syL, sy2L = float(csw[i]), float(csy[i]), float(csy2[i])
                swR, syR, sy2R = SW - swL, SY - syL, SY2 - sy2L
                if swL <= 0 or swR <= 0:
                    continue
                sseL = sy2L - syL * syL / swL
                sseR = sy2R - syR * syR / swR
                gain = sse_parent - (sseL + sseR + sse_missing)
                if gain > best_gain:
                    best_gain = gain
                    self.feature_index_ = j
                    self.threshold_ = float(0.5 * (v[i] + v[i + 1]))
                    self.values_ = (syL / swL, syR / swR)
                    self.branch_weights_ = (swL / SW, swR / SW)
        return self

    def predict(self, X):
        check_is_fitted(self, "mean_")
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        if self.feature_index_ is None:
            return np.full(X.shape[0], self.mean_)
        col = X[:, self.feature_index_]
        vl, vr = self.values_
        out = np.where(col <= self.threshold_, vl, vr).astype(float)
        miss = np.isnan(col)
        if miss.any():
            pl, pr = self.branch_weights_
            out[miss] = pl * vl + pr * vr
        return out
