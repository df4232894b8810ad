"""
Posterior chains produced by the mixture sampler.

All chains are indexed consistently by cluster (row m of retained_classes is
cluster id m + 1) and by iteration 0..nstep, where iteration 0 is the initial
state.
"""

from dataclasses import dataclass

import numpy as np

from lcmix.utils.exceptions import ConfigurationError, ConsistencyError


@dataclass
class SamplerResult:
    """
    Output chains of MixtureSampler.run.

    Attributes:
        retained_classes: Class label matrix, shape (M, D)
        mean_chains: Cluster means, shape (M, nstep + 1, D)
        covariance_chains: Cluster covariances, shape (M, D, D, nstep + 1)
        weight_chain: Mixing weights, shape (M, nstep + 1)
        assignment_chain: 1-based cluster ids, shape (n, nstep + 1)
        acceptance_chain: Covariance acceptance indicators, shape (M, nstep + 1)
        tuning_df_chain: Proposal degrees of freedom, shape (M, nstep + 1)
    """
    retained_classes: np.ndarray
    mean_chains: np.ndarray
    covariance_chains: np.ndarray
    weight_chain: np.ndarray
    assignment_chain: np.ndarray
    acceptance_chain: np.ndarray
    tuning_df_chain: np.ndarray

    @property
    def n_clusters(self) -> int:
        return int(self.retained_classes.shape[0])

    @property
    def n_dims(self) -> int:
        return int(self.retained_classes.shape[1])

    @property
    def n_observations(self) -> int:
        return int(self.assignment_chain.shape[0])

    @property
    def nstep(self) -> int:
        return int(self.weight_chain.shape[1]) - 1

    def check_assignments(self) -> None:
        """
        Verify every assignment references a cluster id in 1..M.

        Raises:
            ConsistencyError: If any id is out of range
        """
        chain = self.assignment_chain
        bad = (chain < 1) | (chain > self.n_clusters)
        if np.any(bad):
            values = sorted(set(chain[bad].tolist()))
            raise ConsistencyError(
                f"Assignment chain references cluster ids {values[:10]} outside 1..{self.n_clusters}",
                bad_values=values,
            )

    def cluster_mean_chain(self, cluster_id: int) -> np.ndarray:
        """Mean chain of one cluster (1-based id), shape (nstep + 1, D)."""
        return self.mean_chains[self._index(cluster_id)]

    def cluster_covariance_chain(self, cluster_id: int) -> np.ndarray:
        """Covariance chain of one cluster (1-based id), shape (D, D, nstep + 1)."""
        return self.covariance_chains[self._index(cluster_id)]

    def acceptance_rates(self, burnin: int = 0) -> np.ndarray:
        """Per-cluster acceptance rate over iterations burnin+1..nstep."""
        window = self._window(burnin)
        if window.stop - window.start <= 0:
            return np.full(self.n_clusters, np.nan)
        return self.acceptance_chain[:, window].mean(axis=1)

    def posterior_means(self, burnin: int = 0) -> np.ndarray:
        """Posterior mean of each cluster mean, shape (M, D)."""
        return self.mean_chains[:, self._window(burnin, include_initial=True), :].mean(axis=1)

    def posterior_weights(self, burnin: int = 0) -> np.ndarray:
        """Posterior mean mixing weights, shape (M,)."""
        return self.weight_chain[:, self._window(burnin, include_initial=True)].mean(axis=1)

    def _index(self, cluster_id: int) -> int:
        if not 1 <= cluster_id <= self.n_clusters:
            raise ConfigurationError(f"Cluster id {cluster_id} outside 1..{self.n_clusters}")
        return cluster_id - 1

    def _window(self, burnin: int, include_initial: bool = False) -> slice:
        if burnin < 0:
            raise ConfigurationError(f"burnin must be >= 0, got {burnin}")
        start = burnin if include_initial and burnin == 0 else burnin + 1
        return slice(min(start, self.nstep + 1), self.nstep + 1)
