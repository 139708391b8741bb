# -*- coding: utf-8 -*-
"""
pyboosters.exceptions
=====================

Error taxonomy shared by every booster, plus the tagged result returned by
``build``/``iterate``.

Fatal conditions are exceptions.  Stopping early is *not* a failure: the
iteration loop returns an :class:`IterationOutcome` describing what was
committed and additionally emits a :class:`StoppingCriterionReached`
warning so interactive users notice it.
"""

from __future__ import annotations
from dataclasses import dataclass

from sklearn.exceptions import NotFittedError


class BoostingError(Exception):
    """Base class of all errors raised by pyboosters."""


class ConfigurationError(BoostingError, ValueError):
    """Invalid estimator configuration (missing base model, partitioner, ...)."""


class UnsupportedDataError(BoostingError, ValueError):
    """The training data cannot be handled by the selected algorithm."""


class EmptyTrainingSetError(BoostingError, ValueError):
    """No instances remain after removing those with a missing class."""


class NotInitializedError(BoostingError, NotFittedError):
    """``iterate`` or a prediction method was called before ``build``."""


class NoModelError(NotInitializedError):
    """The booster was built but holds zero committed models."""


class InvalidIndexError(BoostingError, IndexError):
    """A model index outside ``[0, iteration_count)`` was requested."""


class StoppingCriterionReached(UserWarning):
    """Issued when an algorithm's stopping criterion ends iterating early."""


@dataclass(frozen=True)
class IterationOutcome:
    """Result of a call to ``build`` or ``iterate``.

    Attributes
    ----------
    committed : int
        Number of models appended to the ensemble by this call.
    stopped_early : bool
        True when the stopping criterion ended the call before the requested
        number of rounds.
    last_model_committed : bool
        Whether the model trained in the final round was kept.  Only relevant
        when ``stopped_early`` is True: the stopping round is kept only if it
        was the very first iteration of the ensemble.
    """
    committed: int
    stopped_early: bool = False
    last_model_committed: bool = True

    def __bool__(self) -> bool:
        return not self.stopped_early
