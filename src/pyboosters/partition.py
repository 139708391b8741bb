# -*- coding: utf-8 -*-
"""
pyboosters.partition
====================

Binary partitions ("colorings") of a multi-class label set.

A partition assigns each of the ``K`` classes a bit; the output-code
boosters relabel every training instance with the bit of its class and train
a binary base model on the result.  One partition is stored per iteration so
that prediction can decode each model's output later.

Three generation strategies are provided:

* :class:`RandomPartitioner` flips an independent fair coin per class.
* :class:`EvenSplitPartitioner` flips biased coins whose bias drifts against
  the bits already drawn, so neither side grows much beyond 3/4 of the
  classes.
* :class:`PermutationPartitioner` randomly permutes a half/half partition.

Every strategy regenerates until both groups are non-empty (``K >= 2``).
"""

from __future__ import annotations
import numpy as np
from sklearn.utils import check_random_state

from .exceptions import ConfigurationError, InvalidIndexError


class OutputCodePartitioner:
    """Base class: storage and bookkeeping, generation left to subclasses.

    Parameters
    ----------
    seed : int, default=0
        Seed of the generator, re-applied by :meth:`reset`.
    """

    def __init__(self, seed: int = 0):
        self.seed = int(seed)
        self.n_classes = 0
        self._codes: list[np.ndarray] = []
        self._rng = check_random_state(self.seed)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(seed={self.seed})"

    def reset(self, n_classes: int) -> None:
        """Forget every stored partition and restart the generator."""
        n_classes = int(n_classes)
        if n_classes < 2:
            raise ConfigurationError("a partition needs at least two classes")
        self.n_classes = n_classes
        self._codes = []
        self._rng = check_random_state(self.seed)

    def __len__(self) -> int:
        return len(self._codes)

    def new_partition(self, index: int) -> np.ndarray:
        """Generate a partition for iteration ``index`` and store it.

        ``index`` may address an existing partition (which is overwritten) or
        be equal to the number of stored partitions (which appends).
        """
        if self.n_classes < 2:
            raise ConfigurationError("call reset(n_classes) before generating partitions")
        if index < 0 or index > len(self._codes):
            raise InvalidIndexError(f"cannot create partition {index}; {len(self._codes)} exist")
        codes = self._generate()
        while codes.all() or not codes.any():
            codes = self._generate()
        self._store(index, codes)
        return codes.copy()

    def set_partition(self, index: int, codes) -> None:
        codes = np.asarray(codes, dtype=bool)
        if codes.shape != (self.n_classes,):
            raise ValueError(f"partition must have {self.n_classes} entries")
        if index < 0 or index > len(self._codes):
            raise InvalidIndexError(f"cannot set partition {index}; {len(self._codes)} exist")
        self._store(index, codes.copy())

    def get_partition(self, index: int) -> np.ndarray:
        """Bits of every class for iteration ``index`` as an int array."""
        self._check_index(index)
        return self._codes[index].astype(int)

    def get_code(self, index: int, class_index: int) -> int:
        self._check_index(index)
        return int(self._codes[index][class_index])

    def encode(self, index: int, labels: np.ndarray) -> np.ndarray:
        """Map integer class codes to the bits of partition ``index``."""
        return self.get_partition(index)[np.asarray(labels, dtype=int)]

    def truncate(self, size: int) -> None:
        del self._codes[size:]

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------
    def _store(self, index: int, codes: np.ndarray) -> None:
        if index == len(self._codes):
            self._codes.append(codes)
        else:
            self._codes[index] = codes

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= len(self._codes):
            raise InvalidIndexError(f"no partition stored for iteration {index}")

    def _generate(self) -> np.ndarray:
        raise NotImplementedError


class RandomPartitioner(OutputCodePartitioner):
    """Each class goes to either group with probability 1/2."""

    def _generate(self) -> np.ndarray:
        return self._rng.random_sample(self.n_classes) < 0.5


class EvenSplitPartitioner(OutputCodePartitioner):
    """Coin flips whose bias compensates for the bits drawn so far.

    The probability of drawing a 0 starts at 1/2 and moves by ``1/K`` towards
    0 after every 1 drawn and towards 1 after every 0 drawn.  Once it leaves
    ``[0, 1]`` the remaining classes are forced to the minority group.
    """

    def _generate(self) -> np.ndarray:
        k = self.n_classes
        inc = 1.0 / k
        p_zero = 0.5
        codes = np.zeros(k, dtype=bool)
        for c in range(k):
            if self._rng.random_sample() >= p_zero:
                codes[c] = True
                p_zero += inc
                if p_zero > 1.0:
                    break
            else:
                p_zero -= inc
                if p_zero < 0.0:
                    codes[c + 1:] = True
                    break
        return codes


class PermutationPartitioner(OutputCodePartitioner):
    """Random permutation of a partition with ``K // 2`` classes in group 1.

    The permutation is applied cumulatively: each new partition shuffles the
    previous one, starting from the base partition after :meth:`reset`.
    """

    def reset(self, n_classes: int) -> None:
        super().reset(n_classes)
        self._current = np.zeros(self.n_classes, dtype=bool)
        self._current[: self.n_classes // 2] = True

    def _generate(self) -> np.ndarray:
        k = self.n_classes
        for i in range(k):
            j = self._rng.randint(k)
            self._current[i], self._current[j] = self._current[j], self._current[i]
        return self._current.copy()


PARTITIONERS = {
    "random": RandomPartitioner,
    "even_split": EvenSplitPartitioner,
    "permutation": PermutationPartitioner,
}


def make_partitioner(strategy, seed: int = 0) -> OutputCodePartitioner:
    """Resolve a partitioner name, class or instance to a fresh instance."""
    if strategy is None:
        raise ConfigurationError("no coloring strategy (partitioner) set")
    if isinstance(strategy, OutputCodePartitioner):
        return type(strategy)(seed=strategy.seed)
    if isinstance(strategy, str):
        try:
            return PARTITIONERS[strategy](seed=seed)
        except KeyError:
            raise ConfigurationError(
                f"unknown partitioner {strategy!r}; expected one of {sorted(PARTITIONERS)}") from None
    if isinstance(strategy, type) and issubclass(strategy, OutputCodePartitioner):
        return strategy(seed=seed)
    raise ConfigurationError(f"invalid partitioner {strategy!r}")
