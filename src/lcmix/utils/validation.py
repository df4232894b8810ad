"""
Input validation utilities for lcmix.
"""

from typing import Any

import numpy as np

from lcmix.evidence.types import LABELS
from lcmix.utils.exceptions import ConfigurationError


def validate_observations(observations: Any) -> np.ndarray:
    """
    Validate and normalize an observation matrix.

    Args:
        observations: Array-like of shape (n, D)

    Returns:
        Float64 array of shape (n, D)

    Raises:
        ConfigurationError: If the matrix is not 2-D, is empty, or holds
            non-finite values
    """
    x = np.asarray(observations, dtype=np.float64)

    if x.ndim != 2:
        raise ConfigurationError(
            f"Observations must be a 2-D (n, D) matrix, got shape {x.shape}"
        )
    if x.shape[0] == 0:
        raise ConfigurationError("No observations supplied (n = 0)")
    if x.shape[1] == 0:
        raise ConfigurationError("Observations have zero dimensions (D = 0)")
    if not np.all(np.isfinite(x)):
        n_bad = int(np.sum(~np.all(np.isfinite(x), axis=1)))
        raise ConfigurationError(
            f"Observations contain non-finite values in {n_bad} row(s)"
        )

    return x


def validate_label_matrix(classes: Any, n_dims: int = None) -> np.ndarray:
    """
    Validate a matrix of latent classes.

    Args:
        classes: Array-like of shape (M, D) with values in {-1, 0, 1}
        n_dims: Expected D (optional)

    Returns:
        int8 array of shape (M, D)

    Raises:
        ConfigurationError: If M = 0, the shape is wrong, or a label is invalid
    """
    arr = np.asarray(classes)

    if arr.ndim != 2:
        raise ConfigurationError(
            f"Retained classes must be a 2-D (M, D) matrix, got shape {arr.shape}"
        )
    if arr.shape[0] == 0:
        raise ConfigurationError("No retained classes supplied (M = 0)")
    if n_dims is not None and arr.shape[1] != n_dims:
        raise ConfigurationError(
            f"Retained classes have {arr.shape[1]} dimensions, observations have {n_dims}"
        )
    if not np.all(np.isin(arr, LABELS)):
        bad = sorted(set(np.unique(arr).tolist()) - set(LABELS))
        raise ConfigurationError(f"Invalid class labels {bad}; expected values in {LABELS}")

    return arr.astype(np.int8)


def validate_nstep(nstep: Any) -> int:
    """
    Validate the number of sampler iterations.

    nstep = 0 is allowed and yields chains holding only the initial state.

    Raises:
        ConfigurationError: If nstep is not a non-negative integer
    """
    if isinstance(nstep, bool) or not isinstance(nstep, (int, np.integer)):
        raise ConfigurationError(f"nstep must be an integer, got {type(nstep).__name__}")
    if nstep < 0:
        raise ConfigurationError(f"nstep must be >= 0, got {nstep}")
    return int(nstep)
