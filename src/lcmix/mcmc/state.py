"""
Mixture sampler state.

A MixtureState is replaced, never mutated, between iterations. Each cluster
owns a private ClusterState (parameters plus proposal tuning), so cluster
updates can run concurrently against a shared read-only snapshot of
assignments and weights.
"""

from dataclasses import dataclass, replace
from typing import List

import numpy as np

from lcmix.mcmc.priors import MixtureHyperparameters
from lcmix.mcmc.tuning import RobbinsMonroTuner
from lcmix.utils.linalg import cholesky_or_reject, mvn_logpdf


@dataclass(frozen=True)
class ClusterState:
    """
    Parameters and tuning state of one cluster.

    Attributes:
        mean: Mean vector, shape (D,)
        covariance: Covariance matrix, shape (D, D)
        chol: Lower Cholesky factor of covariance
        log_scale: Robbins-Monro state s = log(tuning_df - D - 1)
        tuning_df: Degrees of freedom of the next covariance proposal
        accepted: Whether the latest covariance proposal was accepted
        n_accepted: Accepted proposals so far
    """
    mean: np.ndarray
    covariance: np.ndarray
    chol: np.ndarray
    log_scale: float
    tuning_df: float
    accepted: bool = False
    n_accepted: int = 0

    def evolve(self, **changes) -> "ClusterState":
        return replace(self, **changes)


@dataclass(frozen=True)
class MixtureState:
    """
    Full sampler state at one iteration.

    Attributes:
        clusters: One ClusterState per retained class
        weights: Mixing weights on the simplex, shape (M,)
        assignments: 0-based cluster index per observation, shape (n,)
    """
    clusters: List[ClusterState]
    weights: np.ndarray
    assignments: np.ndarray

    @property
    def n_clusters(self) -> int:
        return len(self.clusters)

    def means(self) -> np.ndarray:
        return np.stack([c.mean for c in self.clusters])

    def counts(self) -> np.ndarray:
        return np.bincount(self.assignments, minlength=self.n_clusters)


def project_mean(mean: np.ndarray, labels: np.ndarray, bound: float = 0.0) -> np.ndarray:
    """
    Move a mean onto its class constraint set.

    Null dimensions become 0. Signed dimensions keep their value when it has
    the right sign and magnitude >= bound, otherwise they are set to
    label * bound.
    """
    labels = labels.astype(np.float64)
    magnitude = np.maximum(labels * mean, bound)
    return np.where(labels == 0, 0.0, labels * magnitude)


def initialize_state(
    observations: np.ndarray,
    classes: np.ndarray,
    hyperparameters: MixtureHyperparameters,
    tuner: RobbinsMonroTuner,
    initial_tuning_df: float,
    bound: float = 0.0,
) -> MixtureState:
    """
    Iteration-0 state.

    Means are the projected prior means, covariances the inverse-Wishart prior
    modes, weights the normalised Dirichlet concentrations, and each
    observation goes to its maximum-posterior cluster.
    """
    n_dims = observations.shape[1]
    log_scale = tuner.initial_log_scale(initial_tuning_df, n_dims)
    tuning_df = tuner.df_from_log_scale(log_scale, n_dims)

    clusters = []
    for m in range(classes.shape[0]):
        covariance = hyperparameters.prior_mode_covariance(m)
        clusters.append(ClusterState(
            mean=project_mean(hyperparameters.mu0[m], classes[m], bound),
            covariance=covariance,
            chol=cholesky_or_reject(covariance),
            log_scale=log_scale,
            tuning_df=tuning_df,
        ))

    weights = hyperparameters.alpha / hyperparameters.alpha.sum()
    log_post = np.column_stack([
        np.log(weights[m]) + mvn_logpdf(observations, c.mean, c.chol)
        for m, c in enumerate(clusters)
    ])
    assignments = np.argmax(log_post, axis=1).astype(np.int64)

    return MixtureState(clusters=clusters, weights=weights, assignments=assignments)
