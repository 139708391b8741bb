# -*- coding: utf-8 -*-
"""
pyboosters.bounds
=================

Bookkeeping for the optional training-error upper bound.

Each scheme computes a per-round multiplicative factor; the tracker only
stores the running product and whether the bound is still valid.  Nothing
here feeds back into training.
"""

from __future__ import annotations
import math


class ErrorUpperBound:
    """Running product of per-round bound factors.

    Parameters
    ----------
    enabled : bool
        When False every update is ignored and :attr:`value` stays at 1.
    scale : float, default=1.0
        Constant the reported value is multiplied by (``K - 1`` for the
        output-code boosters).

    Attributes
    ----------
    determined : bool
        False once a round invalidated the derivation of the bound.  Only
        :meth:`truncate` past that round makes it True again.
    history : list of float or None
        Reported value after each committed round (None when undetermined).
    """

    def __init__(self, enabled: bool = False, scale: float = 1.0):
        self.enabled = bool(enabled)
        self.scale = float(scale)
        self.determined = True
        self.history: list[float | None] = []
        self._product = 1.0
        self._products: list[float | None] = []

    def update(self, factor: float | None) -> None:
        """Multiply in ``factor``; ``None`` marks the bound undetermined."""
        if not self.enabled:
            return
        if self.determined:
            if factor is None or not math.isfinite(factor):
                self.determined = False
            else:
                self._product *= factor
        self._products.append(self._product if self.determined else None)
        self.history.append(self.value if self.determined else None)

    def truncate(self, size: int) -> None:
        """Forget every round after the first ``size`` ones."""
        if not self.enabled:
            return
        del self.history[size:]
        del self._products[size:]
        last = self._products[-1] if self._products else 1.0
        self.determined = last is not None
        self._product = 1.0 if last is None else last

    @property
    def value(self) -> float:
        """Reported bound; 1.0 when disabled or undetermined."""
        if not self.enabled or not self.determined:
            return 1.0
        return self.scale * self._product
