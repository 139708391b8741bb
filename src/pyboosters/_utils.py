# -*- coding: utf-8 -*-
"""
Numeric helpers shared by the boosting schemes.

Every ratio computed during boosting adds ``SMALL`` to both numerator and
denominator, so logs and divisions never see an exact zero.
"""

from __future__ import annotations
import numpy as np

SMALL = 1e-6


def safe_log_ratio(num, den):
    """``ln((num + SMALL) / (den + SMALL))``, elementwise."""
    return np.log((np.asarray(num, dtype=float) + SMALL) / (np.asarray(den, dtype=float) + SMALL))


def shift_and_normalize(votes: np.ndarray) -> np.ndarray:
    """Shift each row of ``votes`` to be non-negative and normalize it.

    Rows whose minimum is already non-negative are only normalized.  A row
    summing to zero becomes uniform.

    Parameters
    ----------
    votes : ndarray of shape (n_samples, n_classes) or (n_classes,)
        Unnormalized vote vectors.

    Returns
    -------
    ndarray
        Distributions with the same shape as ``votes``.
    """
    v = np.array(votes, dtype=float, copy=True)
    single = v.ndim == 1
    if single:
        v = v[None, :]
    mins = v.min(axis=1, keepdims=True)
    v -= np.minimum(mins, 0.0)
    tot = v.sum(axis=1, keepdims=True)
    k = v.shape[1]
    out = np.where(tot > 0, v / np.where(tot > 0, tot, 1.0), 1.0 / k)
    return out[0] if single else out


def split_signed(values: np.ndarray) -> np.ndarray:
    """Turn signed scores ``h`` into two-column votes ``[max(-h, 0), max(h, 0)]``."""
    h = np.asarray(values, dtype=float)
    return np.column_stack([np.maximum(-h, 0.0), np.maximum(h, 0.0)])


def aligned_proba(model, X, n_classes: int) -> np.ndarray:
    """Probability estimates of ``model`` laid out over ``range(n_classes)``.

    A model trained on a sample that lacked some class only reports the
    classes it saw; missing columns are filled with zeros.
    """
    proba = np.asarray(model.predict_proba(X), dtype=float)
    seen = np.asarray(model.classes_).astype(int)
    if len(seen) == n_classes and np.array_equal(seen, np.arange(n_classes)):
        return proba
    full = np.zeros((proba.shape[0], n_classes), dtype=float)
    full[:, seen] = proba
    return full
