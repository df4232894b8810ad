"""
Pruner registry.

Pruners register under the name used by PruningConfig.method; the pipeline
builds the configured pruner through PrunerRegistry.create().
"""

import logging
from typing import Any, Dict, List, Optional, Type

from lcmix.pruning.base import HyperparameterPruner
from lcmix.utils.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


class PrunerRegistry:
    """
    Name-to-class mapping for hyperparameter pruners.

        @PrunerRegistry.register("concordance")
        class ConcordancePruner(HyperparameterPruner):
            ...

        pruner = PrunerRegistry.create("concordance", {"threshold": 0.5})
    """

    _registry: Dict[str, Type[HyperparameterPruner]] = {}

    @classmethod
    def register(cls, name: str):
        """
        Decorator to register a pruner class under name.

        Raises:
            TypeError: If the class is not a HyperparameterPruner
            ValueError: If name is already registered
        """
        def decorator(pruner_class: Type[HyperparameterPruner]):
            if not (isinstance(pruner_class, type) and issubclass(pruner_class, HyperparameterPruner)):
                raise TypeError(f"{pruner_class!r} is not a HyperparameterPruner subclass")
            if name in cls._registry:
                raise ValueError(
                    f"Pruner '{name}' is already registered by {cls._registry[name].__name__}"
                )

            pruner_class.name = name
            cls._registry[name] = pruner_class
            logger.debug(f"Registered pruner: {name} -> {pruner_class.__name__}")
            return pruner_class

        return decorator

    @classmethod
    def get(cls, name: str) -> Type[HyperparameterPruner]:
        """
        Registered pruner class for name.

        Raises:
            KeyError: If the pruner is not registered
        """
        if name not in cls._registry:
            raise KeyError(f"Unknown pruner: '{name}'. Available pruners: {cls._describe_available()}")
        return cls._registry[name]

    @classmethod
    def available(cls) -> List[str]:
        return sorted(cls._registry)

    @classmethod
    def create(cls, name: str, config: Optional[Dict[str, Any]] = None) -> HyperparameterPruner:
        """
        Instantiate the pruner registered under name.

        Raises:
            ConfigurationError: If name is unknown or the pruner rejects config
        """
        if name not in cls._registry:
            raise ConfigurationError(
                f"Unknown pruner: '{name}'. Available pruners: {cls._describe_available()}"
            )
        pruner = cls._registry[name](config)
        logger.debug(f"Created {pruner!r}")
        return pruner

    @classmethod
    def _describe_available(cls) -> str:
        return ", ".join(cls.available()) or "(none)"
