"""
Pytest configuration and shared fixtures for lcmix tests.

This module provides:
    - Synthetic mixture data
    - Evidence stores
    - Temporary output locations
"""

import pytest
import tempfile
from pathlib import Path

import numpy as np

from tests.fixtures import (
    full_evidence_store,
    generate_mixture,
    simple_hyperparameters,
)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def three_classes():
    """Three well-separated classes over D = 3, one with a null dimension."""
    return np.array([
        [1, 1, 0],
        [-1, 0, 1],
        [1, -1, -1],
    ], dtype=np.int8)


@pytest.fixture
def mixture_data(three_classes):
    """(observations, truth) with 34 observations per class (n = 102)."""
    return generate_mixture(three_classes, n_per_class=34, noise=0.25, seed=7)


@pytest.fixture
def mixture_hyperparameters(three_classes):
    return simple_hyperparameters(three_classes)


@pytest.fixture
def evidence_d3():
    """Fully supported evidence for D = 3."""
    return full_evidence_store(3)


@pytest.fixture
def fast_sampler_config():
    """Seeded sampler options for short runs."""
    return {"seed": 1234}
