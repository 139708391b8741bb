# -*- coding: utf-8 -*-
"""
pyboosters.dataset
==================

A small numpy-backed training set.  Boosters copy the caller's data into a
:class:`Dataset` and then freely mutate its weight and label columns while
iterating.
"""

from __future__ import annotations
import numpy as np
from sklearn.utils.multiclass import type_of_target


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _is_missing(v) -> bool:
    return (v is None) or (isinstance(v, (float, np.floating)) and np.isnan(v))


# -----------------------------------------------------------------------------
# Dataset
# -----------------------------------------------------------------------------
class Dataset:
    """Feature matrix, integer-coded labels and mutable instance weights.

    Parameters
    ----------
    X : array-like of shape (n_samples, n_features)
        Feature values.  Numeric columns may hold ``NaN`` (or ``None``) for
        missing values.
    y : array-like of shape (n_samples,)
        Class labels.  ``None``/``NaN`` mark a missing class.
    weights : array-like of shape (n_samples,), optional
        Initial instance weights.  Defaults to 1 for every instance.
    classes : array-like, optional
        Ordered class labels.  When omitted the sorted distinct non-missing
        labels are used.
    relation_name : str, default="dataset"
        Name of the data set, used to look up on-demand cost matrices.

    Attributes
    ----------
    X : ndarray
    y : ndarray of int
        Index into ``classes`` for each instance, ``-1`` when missing.  The
        output-code and one-vs-rest boosters overwrite this column with
        binary codes while training.
    weights : ndarray of float
    classes : ndarray
    """

    def __init__(self, X, y, weights=None, *, classes=None, relation_name: str = "dataset"):
        raw_X = np.asarray(X)
        if raw_X.ndim == 1:
            raw_X = raw_X.reshape(-1, 1)
        raw_y = np.asarray(y, dtype=object).ravel()
        if raw_X.shape[0] != raw_y.shape[0]:
            raise ValueError("X and y must have the same number of rows")

        self.relation_name = str(relation_name)
        self._string_attributes = raw_X.dtype.kind in "OUS" and any(
            isinstance(v, (str, bytes)) for v in raw_X.ravel())
        self.X = raw_X if self._string_attributes else raw_X.astype(float)

        missing = np.array([_is_missing(v) for v in raw_y], dtype=bool)
        known = raw_y[~missing]
        if known.size:
            known_typed = np.asarray(known.tolist())
            self._numeric_class = type_of_target(known_typed) == "continuous"
        else:
            known_typed = known
            self._numeric_class = False

        if classes is None:
            classes = np.unique(known_typed) if known.size else np.array([])
        self.classes = np.asarray(classes)
        index = {c: i for i, c in enumerate(self.classes.tolist())}
        codes = np.full(raw_y.shape[0], -1, dtype=int)
        for i, v in enumerate(raw_y):
            if missing[i]:
                continue
            key = v.item() if isinstance(v, np.generic) else v
            if key not in index:
                raise ValueError(f"label {v!r} is not one of the declared classes")
            codes[i] = index[key]
        self.y = codes

        if weights is None:
            self.weights = np.ones(raw_y.shape[0], dtype=float)
        else:
            w = np.asarray(weights, dtype=float).ravel()
            if w.shape[0] != raw_y.shape[0]:
                raise ValueError("sample_weight must have the same length as y")
            if np.any(w < 0):
                raise ValueError("sample_weight must be non-negative")
            self.weights = w.copy()

    @classmethod
    def from_codes(cls, X, codes, weights, classes, relation_name="dataset") -> "Dataset":
        """Build a dataset directly from integer class codes (no label lookup)."""
        data = cls.__new__(cls)
        data.X = np.asarray(X)
        data.y = np.asarray(codes, dtype=int).copy()
        data.weights = np.asarray(weights, dtype=float).copy()
        data.classes = np.asarray(classes)
        data.relation_name = relation_name
        data._string_attributes = False
        data._numeric_class = False
        return data

    def __len__(self) -> int:
        return int(self.y.shape[0])

    @property
    def n_classes(self) -> int:
        return int(len(self.classes))

    @property
    def has_string_attributes(self) -> bool:
        return self._string_attributes

    @property
    def class_is_numeric(self) -> bool:
        return self._numeric_class

    def sum_of_weights(self) -> float:
        return float(self.weights.sum())

    def class_counts(self) -> np.ndarray:
        """Number of instances per class (missing labels ignored)."""
        known = self.y[self.y >= 0]
        return np.bincount(known, minlength=self.n_classes)

    def copy(self) -> "Dataset":
        data = Dataset.from_codes(self.X.copy(), self.y, self.weights, self.classes.copy(),
                                  self.relation_name)
        data._string_attributes = self._string_attributes
        data._numeric_class = self._numeric_class
        return data

    def drop_missing_class(self) -> int:
        """Remove instances whose class is missing; return how many were removed."""
        keep = self.y >= 0
        dropped = int((~keep).sum())
        if dropped:
            self.X = self.X[keep]
            self.y = self.y[keep]
            self.weights = self.weights[keep]
        return dropped

    def resample_with_weights(self, rng: np.random.RandomState) -> "Dataset":
        """Draw ``len(self)`` instances with replacement, proportionally to weight.

        The resample carries unit weights.  ``rng`` must be a
        ``numpy.random.RandomState``; the same state yields the same draw.
        """
        n = len(self)
        tot = self.weights.sum()
        p = self.weights / tot if tot > 0 else np.full(n, 1.0 / n)
        idx = rng.choice(n, size=n, replace=True, p=p)
        return Dataset.from_codes(self.X[idx], self.y[idx], np.ones(n), self.classes,
                                  self.relation_name)
