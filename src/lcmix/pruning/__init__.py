"""
Hyperparameter estimation and candidate pruning.

Provides:
    - PrunerRegistry for name-based pruner selection
    - HyperparameterPruner base class and PruningResult
    - ConcordancePruner, the default pruner

Pruners are registered on import via the @PrunerRegistry.register() decorator.
"""

from lcmix.pruning.registry import PrunerRegistry
from lcmix.pruning.base import HyperparameterPruner, PruningResult

# Import pruners to trigger registration
from lcmix.pruning.concordance import ConcordancePruner, sign_patterns

__all__ = [
    "PrunerRegistry",
    "HyperparameterPruner",
    "PruningResult",
    "ConcordancePruner",
    "sign_patterns",
]
