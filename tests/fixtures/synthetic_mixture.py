"""
Synthetic latent-class data generators for testing.

These generators create mixtures with known class structure so pruning and
sampling can be checked against ground truth.
"""

import numpy as np
from typing import Iterable, Optional, Tuple

from lcmix.evidence.types import LABELS, PairEvidence, PairwiseEvidenceStore
from lcmix.mcmc.priors import MixtureHyperparameters


def generate_mixture(
    classes: np.ndarray,
    n_per_class: int = 50,
    signal: float = 3.0,
    noise: float = 0.5,
    seed: int = 42,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Generate observations from a latent-class Gaussian mixture.

    Args:
        classes: Class label matrix, shape (M, D)
        n_per_class: Observations drawn per class
        signal: |mean| on signed dimensions
        noise: Standard deviation of isotropic noise
        seed: Random seed for reproducibility

    Returns:
        (observations of shape (M * n_per_class, D), 0-based true class per row)
    """
    rng = np.random.default_rng(seed)
    classes = np.asarray(classes, dtype=np.float64)
    m, d = classes.shape

    truth = np.repeat(np.arange(m), n_per_class)
    x = classes[truth] * signal + rng.normal(0.0, noise, size=(m * n_per_class, d))

    return x, truth


def full_evidence_store(n_dims: int, include_non_adjacent: bool = False) -> PairwiseEvidenceStore:
    """Evidence supporting every label pair on every adjacent boundary."""
    store = PairwiseEvidenceStore()
    for d in range(n_dims - 1):
        store.add(PairEvidence.fully_supported(d, d + 1))
    if include_non_adjacent:
        for i in range(n_dims):
            for j in range(i + 2, n_dims):
                store.add(PairEvidence.fully_supported(i, j))
    return store


def evidence_from_classes(
    classes: Iterable[Iterable[int]],
    n_dims: int,
    non_adjacent: bool = False,
) -> PairwiseEvidenceStore:
    """
    Evidence supporting exactly the label pairs the given classes use.

    Args:
        classes: Classes whose label pairs should be supported
        n_dims: Number of dimensions D
        non_adjacent: Also add evidence for non-adjacent pairs
    """
    classes = [tuple(c) for c in classes]
    store = PairwiseEvidenceStore()
    for i in range(n_dims):
        for j in range(i + 1, n_dims):
            if j - i > 1 and not non_adjacent:
                continue
            used = {(c[i], c[j]) for c in classes}
            records = [(a, b, (a, b) in used) for a in LABELS for b in LABELS]
            store.add(PairEvidence.from_records(i, j, records))
    return store


def simple_hyperparameters(
    classes: np.ndarray,
    scale: Optional[float] = 3.0,
) -> MixtureHyperparameters:
    """Weakly informative priors centred on the class signs."""
    return MixtureHyperparameters.weakly_informative(classes, scale=scale)
