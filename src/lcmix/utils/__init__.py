"""
Shared utilities for lcmix.

Provides:
    - Exception hierarchy
    - Logging helpers
    - Configuration hashing
    - Input validation
    - Numerically careful linear algebra
"""

from lcmix.utils.exceptions import (
    LCMixError,
    ConfigurationError,
    EvidenceError,
    MissingEvidenceError,
    ResourceExhaustionError,
    PathLimitExceededError,
    NumericalRejection,
    ConsistencyError,
    SamplerCancelledError,
    GraphFormatError,
)
from lcmix.utils.logging import setup_logging, LoggerMixin

__all__ = [
    "LCMixError",
    "ConfigurationError",
    "EvidenceError",
    "MissingEvidenceError",
    "ResourceExhaustionError",
    "PathLimitExceededError",
    "NumericalRejection",
    "ConsistencyError",
    "SamplerCancelledError",
    "GraphFormatError",
    "setup_logging",
    "LoggerMixin",
]
