"""
Concordance pruner.

Each observation is summarised by its thresholded sign pattern: label
sign(x_d) where |x_d| > threshold, else 0. A candidate's prior weight is the
fraction of observations sharing its pattern; unmatched or low-weight
candidates are dropped. Hyperparameters for the survivors come from the
moments of their matched observations.
"""

import logging
from typing import Dict, Iterable, List, Tuple

import numpy as np
from pydantic import ValidationError

from lcmix.config import PruningConfig
from lcmix.evidence.types import LatentClass
from lcmix.mcmc.priors import MixtureHyperparameters
from lcmix.mcmc.state import project_mean
from lcmix.pruning.base import HyperparameterPruner, PruningResult
from lcmix.pruning.registry import PrunerRegistry
from lcmix.utils.exceptions import ConfigurationError
from lcmix.utils.linalg import regularize_covariance
from lcmix.utils.validation import validate_observations


logger = logging.getLogger(__name__)


def sign_patterns(observations: np.ndarray, threshold: float) -> np.ndarray:
    """Thresholded sign pattern of every observation, shape (n, D), int8."""
    signs = np.sign(observations).astype(np.int8)
    return np.where(np.abs(observations) > threshold, signs, 0).astype(np.int8)


@PrunerRegistry.register("concordance")
class ConcordancePruner(HyperparameterPruner):
    """
    Retains candidates whose sign pattern is observed in the data.

    Config keys (see PruningConfig):
        threshold: |x| above which a coordinate counts as signal
        min_weight: Minimum fraction of observations matching a class
        bound: Minimum |prior mean| on signed dimensions
        flex_mu: Class-specific (True) or pooled per-label (False) prior means
        mean_precision: Prior precision of each mean coordinate
    """

    version = "1.0.0"

    def __init__(self, config=None):
        super().__init__(config)
        try:
            self.settings = PruningConfig(**self.config)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid pruning config: {e}")

    def prune(
        self,
        candidates: Iterable[LatentClass],
        observations: np.ndarray,
    ) -> PruningResult:
        x = validate_observations(observations)
        n_obs, n_dims = x.shape
        patterns = sign_patterns(x, self.settings.threshold)

        members: Dict[Tuple[int, ...], List[int]] = {}
        for row, pattern in enumerate(map(tuple, patterns.tolist())):
            members.setdefault(pattern, []).append(row)
        logger.debug(f"{len(members)} distinct sign patterns among {n_obs} observations")

        retained: List[LatentClass] = []
        retained_rows: List[np.ndarray] = []
        n_candidates = 0
        for candidate in candidates:
            n_candidates += 1
            if len(candidate) != n_dims:
                raise ConfigurationError(
                    f"Candidate class has {len(candidate)} dimensions, observations have {n_dims}"
                )
            rows = members.get(tuple(candidate))
            if rows and len(rows) / n_obs >= self.settings.min_weight:
                retained.append(tuple(candidate))
                retained_rows.append(np.asarray(rows))

        if not retained:
            logger.warning(
                f"No candidate class retained out of {n_candidates}; no structure found"
            )
            return PruningResult(
                retained_classes=np.empty((0, n_dims), dtype=np.int8),
                prior_weights=np.empty(0),
                hyperparameters=None,
                n_candidates=n_candidates,
            )

        classes = np.asarray(retained, dtype=np.int8)
        counts = np.array([len(rows) for rows in retained_rows], dtype=np.float64)
        logger.info(
            f"Retained {len(retained)} of {n_candidates} candidate classes "
            f"covering {int(counts.sum())} of {n_obs} observations"
        )

        hyperparameters = self._estimate_hyperparameters(x, patterns, classes, retained_rows, counts)
        return PruningResult(
            retained_classes=classes,
            prior_weights=counts / n_obs,
            hyperparameters=hyperparameters,
            n_candidates=n_candidates,
        )

    def _estimate_hyperparameters(
        self,
        x: np.ndarray,
        patterns: np.ndarray,
        classes: np.ndarray,
        retained_rows: List[np.ndarray],
        counts: np.ndarray,
    ) -> MixtureHyperparameters:
        n_obs, n_dims = x.shape
        n_clusters = classes.shape[0]
        nu0 = float(n_dims + 2)

        pooled_cov = self._covariance(x) if n_obs > 1 else np.eye(n_dims)
        label_means = self._pooled_label_means(x, patterns)

        mu0 = np.zeros((n_clusters, n_dims))
        psi = np.empty((n_clusters, n_dims, n_dims))
        for m, rows in enumerate(retained_rows):
            members = x[rows]
            if self.settings.flex_mu:
                raw_mean = members.mean(axis=0)
            else:
                raw_mean = np.array([label_means.get((d, int(classes[m, d])), 0.0)
                                     for d in range(n_dims)])
            mu0[m] = project_mean(raw_mean, classes[m], self.settings.bound)

            if len(rows) > n_dims:
                cov = self._covariance(members)
            else:
                logger.warning(
                    f"Class {m + 1} has {len(rows)} members; using pooled covariance for its prior"
                )
                cov = pooled_cov
            psi[m] = (nu0 + n_dims + 1) * cov

        return MixtureHyperparameters(
            alpha=np.maximum(counts, 1.0),
            mu0=mu0,
            mean_precision=np.full(n_clusters, self.settings.mean_precision),
            psi=psi,
            nu0=np.full(n_clusters, nu0),
        )

    @staticmethod
    def _covariance(values: np.ndarray) -> np.ndarray:
        cov = np.atleast_2d(np.cov(values, rowvar=False))
        return regularize_covariance(cov, min_eigenvalue=1e-3)

    @staticmethod
    def _pooled_label_means(x: np.ndarray, patterns: np.ndarray) -> Dict[Tuple[int, int], float]:
        """Mean of x[:, d] over observations labelled l in dimension d, for l = +/-1."""
        means = {}
        for d in range(x.shape[1]):
            for label in (-1, 1):
                mask = patterns[:, d] == label
                if np.any(mask):
                    means[(d, label)] = float(x[mask, d].mean())
        return means
