"""
Base class for hyperparameter pruners.

A pruner consumes the stream of candidate classes and the observations,
estimates a prior weight per candidate, drops those below threshold, and
returns the retained classes with their prior hyperparameters. All pruners
MUST inherit from HyperparameterPruner and implement prune().
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

import numpy as np

from lcmix.evidence.types import LatentClass
from lcmix.mcmc.priors import MixtureHyperparameters


logger = logging.getLogger(__name__)


@dataclass
class PruningResult:
    """
    Output of a pruner.

    Attributes:
        retained_classes: Retained class labels, shape (M, D); row m is cluster m + 1
        prior_weights: Estimated prior weight of each retained class, shape (M,)
        hyperparameters: Priors for the sampler, None when M = 0
        n_candidates: Number of candidates examined
    """
    retained_classes: np.ndarray
    prior_weights: np.ndarray
    hyperparameters: Optional[MixtureHyperparameters]
    n_candidates: int = 0

    @property
    def n_retained(self) -> int:
        return int(self.retained_classes.shape[0])

    @property
    def classes_found(self) -> bool:
        return self.n_retained > 0


class HyperparameterPruner(ABC):
    """
    Base class for all pruners.

    Pruners MUST:
    - Declare name and version
    - Implement prune()
    - Consume candidates in a single pass (they may be a lazy stream)
    - Treat M = 0 as a valid result, not an error

    Example:
        @PrunerRegistry.register("my_pruner")
        class MyPruner(HyperparameterPruner):
            version = "1.0.0"

            def prune(self, candidates, observations):
                ...
    """

    name: str = ""
    version: str = "0.0.0"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the pruner.

        Args:
            config: Optional configuration dictionary
        """
        self.config = config or {}

    @abstractmethod
    def prune(
        self,
        candidates: Iterable[LatentClass],
        observations: np.ndarray,
    ) -> PruningResult:
        """
        Retain data-supported candidate classes and estimate their priors.

        Args:
            candidates: Candidate classes, each a D-tuple over {-1, 0, 1}
            observations: Data matrix, shape (n, D)

        Returns:
            PruningResult (possibly with M = 0)
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', version='{self.version}')"
