# pyboosters/__init__.py
"""
pyboosters: AdaBoost, output-code and cost-sensitive boosting (scikit-learn style).

Exports:
    - AdaBoostM1, AdaBoostM1W, RealAdaBoost, GentleAdaBoost
    - AdaBoostOC, AdaBoostECC
    - AdaBoostMH, CSAdaBoostMH
    - CSB2, AdaCost, AdaCostB1, AdaCostB2, CostMatrix
    - DecisionStump, RegressionStump
    - Dataset, BoosterAnalyzer
"""
import logging

from .adaboost import AdaBoostM1, AdaBoostM1W, GentleAdaBoost, RealAdaBoost
from .analysis import BoosterAnalyzer
from .booster import Booster
from .cost_sensitive import AbstractCSB, AdaCost, AdaCostB1, AdaCostB2, CostMatrix, CSB2
from .dataset import Dataset
from .exceptions import (
    ConfigurationError,
    EmptyTrainingSetError,
    InvalidIndexError,
    IterationOutcome,
    NoModelError,
    NotInitializedError,
    StoppingCriterionReached,
    UnsupportedDataError,
)
from .mh import AdaBoostMH, CSAdaBoostMH
from .output_codes import AdaBoostECC, AdaBoostOC
from .partition import EvenSplitPartitioner, PermutationPartitioner, RandomPartitioner
from .stump import DecisionStump, RegressionStump

logging.getLogger(__name__).addHandler(logging.NullHandler())


def setup_logging(level=logging.INFO, fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"):
    """Attach a stream handler to the ``pyboosters`` logger and return it."""
    logger = logging.getLogger(__name__)
    logger.setLevel(level)
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(handler)
    return logger


__all__ = [
    "AbstractCSB", "AdaBoostECC", "AdaBoostM1", "AdaBoostM1W", "AdaBoostMH", "AdaBoostOC",
    "AdaCost", "AdaCostB1", "AdaCostB2", "Booster", "BoosterAnalyzer", "CSAdaBoostMH", "CSB2",
    "ConfigurationError", "CostMatrix", "Dataset", "DecisionStump", "EmptyTrainingSetError",
    "EvenSplitPartitioner", "GentleAdaBoost", "InvalidIndexError", "IterationOutcome",
    "NoModelError", "NotInitializedError", "PermutationPartitioner", "RandomPartitioner",
    "RealAdaBoost", "RegressionStump", "StoppingCriterionReached", "UnsupportedDataError",
    "setup_logging",
]
__version__ = "0.1.0"
