"""
Adaptive Metropolis-within-Gibbs sampler for latent-class Gaussian mixtures.

Each iteration:
    1. Gibbs-draw every observation's cluster
    2. Gibbs-draw mixing weights from their Dirichlet conditional
    3. Per cluster, draw the sign-constrained mean
    4. Per cluster, Metropolis-Hastings update of the covariance, then adapt
       that cluster's proposal degrees of freedom toward the target
       acceptance rate

Steps 3-4 read a snapshot of assignments and weights and write only their
own cluster state, so they may run on a thread pool. Each cluster draws from
its own generator spawned from the run seed, which keeps results identical
for any worker count.
"""

from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np
from tqdm import tqdm

from lcmix.config import SamplerConfig, build_sampler_config
from lcmix.mcmc.priors import MixtureHyperparameters
from lcmix.mcmc.results import SamplerResult
from lcmix.mcmc.state import ClusterState, MixtureState, initialize_state
from lcmix.mcmc.tuning import RobbinsMonroTuner
from lcmix.mcmc.updates import sample_assignments, sample_weights, update_cluster
from lcmix.utils.exceptions import SamplerCancelledError
from lcmix.utils.logging import LoggerMixin
from lcmix.utils.validation import validate_label_matrix, validate_nstep, validate_observations


class SamplerStatus(Enum):
    """Sampler run state."""
    RUNNING = "running"
    COMPLETED = "completed"


class _ChainRecorder:
    """Preallocated chain buffers filled one iteration at a time."""

    def __init__(self, n_obs: int, n_clusters: int, n_dims: int, nstep: int):
        n_iter = nstep + 1
        self.means = np.empty((n_clusters, n_iter, n_dims))
        self.covariances = np.empty((n_clusters, n_dims, n_dims, n_iter))
        self.weights = np.empty((n_clusters, n_iter))
        self.assignments = np.empty((n_obs, n_iter), dtype=np.int32)
        self.acceptance = np.zeros((n_clusters, n_iter), dtype=np.int8)
        self.tuning_df = np.empty((n_clusters, n_iter))

    def record(self, t: int, state: MixtureState) -> None:
        for m, cluster in enumerate(state.clusters):
            self.means[m, t] = cluster.mean
            self.covariances[m, :, :, t] = cluster.covariance
            self.acceptance[m, t] = int(cluster.accepted) if t > 0 else 0
            self.tuning_df[m, t] = cluster.tuning_df
        self.weights[:, t] = state.weights
        self.assignments[:, t] = state.assignments + 1

    def result(self, classes: np.ndarray) -> SamplerResult:
        return SamplerResult(
            retained_classes=classes,
            mean_chains=self.means,
            covariance_chains=self.covariances,
            weight_chain=self.weights,
            assignment_chain=self.assignments,
            acceptance_chain=self.acceptance,
            tuning_df_chain=self.tuning_df,
        )


class MixtureSampler(LoggerMixin):
    """
    Adaptive MCMC over a fixed set of retained latent classes.

    The sampler is either running or completed; nstep is fixed per call and
    a run either returns full chains or raises.

    Args:
        config: SamplerConfig or dict of its fields
        progress_callback: Called as progress_callback(iteration, nstep)
            after every iteration
        should_stop: Polled at each iteration boundary; returning True
            cancels the run with SamplerCancelledError

    Example:
        >>> sampler = MixtureSampler({"seed": 1})
        >>> result = sampler.run(x, hyperparameters, classes, nstep=1000)
        >>> result.acceptance_rates(burnin=500)
    """

    def __init__(
        self,
        config: Optional[Union[SamplerConfig, Dict[str, Any]]] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ):
        if isinstance(config, SamplerConfig):
            self.config = config
        else:
            self.config = build_sampler_config(config)
        self.progress_callback = progress_callback
        self.should_stop = should_stop
        self.tuner = RobbinsMonroTuner(
            target=self.config.target_acceptance,
            rate=self.config.adaptation_rate,
            decay=self.config.adaptation_decay,
            min_log_scale=self.config.min_log_scale,
            max_log_scale=self.config.max_log_scale,
        )
        self.status: Optional[SamplerStatus] = None
        self.iteration = 0
        self.nstep = 0

    def run(
        self,
        observations: np.ndarray,
        hyperparameters: MixtureHyperparameters,
        retained_classes: np.ndarray,
        nstep: int,
    ) -> SamplerResult:
        """
        Sample the mixture posterior.

        Args:
            observations: Data matrix, shape (n, D)
            hyperparameters: Priors for the M retained classes
            retained_classes: Class labels, shape (M, D); row m is cluster m + 1
            nstep: Number of iterations after the initial state

        Returns:
            SamplerResult with chains of length nstep + 1

        Raises:
            ConfigurationError: If n = 0, M = 0, nstep < 0 or shapes disagree
            SamplerCancelledError: If should_stop() returned True
            ConsistencyError: If an assignment falls outside 1..M
        """
        x = validate_observations(observations)
        classes = validate_label_matrix(retained_classes, n_dims=x.shape[1])
        nstep = validate_nstep(nstep)
        hyperparameters.validate(classes.shape[0], x.shape[1])

        n_obs, n_dims = x.shape
        n_clusters = classes.shape[0]
        bound = self.config.bound

        self.status = SamplerStatus.RUNNING
        self.iteration = 0
        self.nstep = nstep
        self.logger.info(
            f"Sampling {n_clusters} clusters over {n_obs} observations "
            f"(D={n_dims}, nstep={nstep}, target acceptance={self.config.target_acceptance})"
        )

        try:
            seeds = np.random.SeedSequence(self.config.seed).spawn(n_clusters + 1)
            rng = np.random.default_rng(seeds[0])
            cluster_rngs = [np.random.default_rng(s) for s in seeds[1:]]

            state = initialize_state(
                x, classes, hyperparameters, self.tuner, self.config.initial_tuning_df, bound
            )
            recorder = _ChainRecorder(n_obs, n_clusters, n_dims, nstep)
            recorder.record(0, state)

            executor = None
            if self.config.n_workers > 1 and n_clusters > 1:
                executor = ThreadPoolExecutor(max_workers=min(self.config.n_workers, n_clusters))
            try:
                for t in tqdm(range(1, nstep + 1), desc="Sampling", unit="iter",
                              disable=not self.config.show_progress):
                    if self.should_stop is not None and self.should_stop():
                        raise SamplerCancelledError(
                            f"Sampling cancelled after iteration {t - 1} of {nstep}",
                            iteration=t - 1,
                            nstep=nstep,
                        )
                    state = self._step(x, classes, hyperparameters, state, t, rng,
                                       cluster_rngs, executor)
                    recorder.record(t, state)
                    self.iteration = t
                    if self.progress_callback is not None:
                        self.progress_callback(t, nstep)
            finally:
                if executor is not None:
                    executor.shutdown(wait=True)

            result = recorder.result(classes)
            result.check_assignments()
        except BaseException:
            self.status = None
            raise

        self.status = SamplerStatus.COMPLETED
        if nstep > 0:
            rates = ", ".join(f"{r:.2f}" for r in result.acceptance_rates())
            self.logger.info(f"Sampling complete; covariance acceptance rates: [{rates}]")
        else:
            self.logger.info("Sampling complete; nstep=0, chains hold the initial state only")

        return result

    def _step(
        self,
        x: np.ndarray,
        classes: np.ndarray,
        hyper: MixtureHyperparameters,
        state: MixtureState,
        t: int,
        rng: np.random.Generator,
        cluster_rngs: List[np.random.Generator],
        executor: Optional[ThreadPoolExecutor],
    ) -> MixtureState:
        """One full Metropolis-within-Gibbs iteration."""
        means = [c.mean for c in state.clusters]
        chols = [c.chol for c in state.clusters]
        assignments = sample_assignments(x, state.weights, means, chols, rng)
        counts = np.bincount(assignments, minlength=len(state.clusters))
        weights = sample_weights(counts, hyper.alpha, rng)

        def update(m: int) -> ClusterState:
            return update_cluster(
                state.clusters[m],
                x[assignments == m],
                classes[m],
                hyper.mu0[m],
                hyper.mean_precision[m],
                hyper.psi[m],
                hyper.nu0[m],
                self.tuner,
                t,
                cluster_rngs[m],
                self.config.bound,
            )

        indices = range(len(state.clusters))
        if executor is not None:
            clusters = list(executor.map(update, indices))
        else:
            clusters = [update(m) for m in indices]

        self.logger.debug(
            f"Iteration {t}: counts={counts.tolist()}, "
            f"accepted={[int(c.accepted) for c in clusters]}"
        )
        return MixtureState(clusters=clusters, weights=weights, assignments=assignments)
