# -*- coding: utf-8 -*-
"""Ordered store of the (model, weight) pairs committed by a booster."""

from __future__ import annotations
from typing import Any, Iterator


class WeightedVoteRegistry:
    """Append-only list of trained models and their vote weights.

    The weight is whatever the owning scheme needs to turn a model's output
    into a vote: a float for most algorithms, an ``(alpha, beta)`` tuple for
    asymmetric ECC.  Index ``i`` is the model trained in iteration ``i``.
    """

    def __init__(self):
        self._models: list[Any] = []
        self._weights: list[Any] = []

    def add(self, model, weight) -> None:
        self._models.append(model)
        self._weights.append(weight)

    def model(self, index: int):
        return self._models[index]

    def weight(self, index: int):
        return self._weights[index]

    def truncate(self, size: int) -> None:
        """Keep only the first ``size`` entries."""
        del self._models[size:]
        del self._weights[size:]

    def clear(self) -> None:
        self.truncate(0)

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[tuple[Any, Any]]:
        return iter(zip(self._models, self._weights))
