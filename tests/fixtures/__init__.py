"""Test fixtures for lcmix tests."""

from tests.fixtures.synthetic_mixture import (
    generate_mixture,
    full_evidence_store,
    evidence_from_classes,
    simple_hyperparameters,
)

__all__ = [
    "generate_mixture",
    "full_evidence_store",
    "evidence_from_classes",
    "simple_hyperparameters",
]
