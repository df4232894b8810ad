"""
Metropolis-within-Gibbs update kernels.

Each function draws one block of the mixture state given the rest:

    sample_assignments   Gibbs, categorical per observation
    sample_weights       Gibbs, Dirichlet
    sample_mean          Gibbs, sign-constrained Gaussian (one coordinate sweep)
    covariance_step      adaptive Metropolis-Hastings, inverse-Wishart proposal

All randomness comes from the numpy Generator passed in.
"""

import logging
from typing import List, Tuple

import numpy as np
from scipy.linalg import cho_solve
from scipy.special import logsumexp
from scipy.stats import invwishart, truncnorm

from lcmix.mcmc.state import ClusterState
from lcmix.mcmc.tuning import RobbinsMonroTuner
from lcmix.utils.exceptions import NumericalRejection
from lcmix.utils.linalg import cholesky_or_reject, mvn_logpdf, symmetrize


logger = logging.getLogger(__name__)

# Floor for mixing weights before taking logs
MIN_WEIGHT = np.finfo(np.float64).tiny


# =============================================================================
# Assignments and Weights
# =============================================================================

def assignment_log_probs(
    observations: np.ndarray,
    weights: np.ndarray,
    means: List[np.ndarray],
    chols: List[np.ndarray],
) -> np.ndarray:
    """
    Normalised log posterior cluster probabilities, shape (n, M).
    """
    log_w = np.log(np.maximum(weights, MIN_WEIGHT))
    log_p = np.column_stack([
        log_w[m] + mvn_logpdf(observations, means[m], chols[m])
        for m in range(len(means))
    ])
    return log_p - logsumexp(log_p, axis=1, keepdims=True)


def sample_assignments(
    observations: np.ndarray,
    weights: np.ndarray,
    means: List[np.ndarray],
    chols: List[np.ndarray],
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Draw a 0-based cluster index for every observation.

    Uses one uniform per observation against the cumulative posterior
    probabilities.
    """
    probs = np.exp(assignment_log_probs(observations, weights, means, chols))
    cum = np.cumsum(probs, axis=1)
    u = rng.random(observations.shape[0])[:, None] * cum[:, -1:]
    z = np.sum(u >= cum, axis=1)
    return np.minimum(z, len(means) - 1).astype(np.int64)


def sample_weights(
    counts: np.ndarray,
    alpha: np.ndarray,
    rng: np.random.Generator,
) -> np.ndarray:
    """Draw mixing weights from Dirichlet(alpha + counts)."""
    weights = rng.dirichlet(alpha + counts)
    # Renormalise against rounding so rows stay on the simplex
    return weights / weights.sum()


# =============================================================================
# Means
# =============================================================================

def sample_mean(
    cluster_obs: np.ndarray,
    current_mean: np.ndarray,
    chol: np.ndarray,
    labels: np.ndarray,
    mu0: np.ndarray,
    mean_precision: float,
    rng: np.random.Generator,
    bound: float = 0.0,
) -> np.ndarray:
    """
    Draw a cluster mean from its sign-constrained full conditional.

    Coordinates with label 0 are fixed at exactly 0. The remaining (free)
    coordinates have Gaussian conditional precision
    mean_precision * I + n * Sigma^-1 restricted to the free block; each free
    coordinate is redrawn in turn from its univariate conditional truncated
    to [bound, inf) for label +1 or (-inf, -bound] for label -1.

    Args:
        cluster_obs: Observations assigned to the cluster, shape (n_m, D)
        current_mean: Current mean (already on the constraint set)
        chol: Lower Cholesky factor of the cluster covariance
        labels: Class labels, shape (D,)
        mu0: Prior mean
        mean_precision: Prior precision per coordinate
        rng: Random generator
        bound: Minimum |mean| on signed coordinates

    Returns:
        New mean, shape (D,)
    """
    n_dims = labels.shape[0]
    free = np.flatnonzero(labels != 0)
    new_mean = np.zeros(n_dims)
    if free.size == 0:
        return new_mean

    n_obs = cluster_obs.shape[0]
    sigma_inv = cho_solve((chol, True), np.eye(n_dims))
    precision = mean_precision * np.eye(n_dims) + n_obs * sigma_inv
    shift = mean_precision * mu0
    if n_obs > 0:
        shift = shift + sigma_inv @ cluster_obs.sum(axis=0)

    p_ff = precision[np.ix_(free, free)]
    b_f = shift[free]
    mu_f = current_mean[free].astype(np.float64).copy()

    for k, dim in enumerate(free):
        cond_prec = p_ff[k, k]
        cond_mean = (b_f[k] - p_ff[k] @ mu_f + cond_prec * mu_f[k]) / cond_prec
        sd = 1.0 / np.sqrt(cond_prec)
        if labels[dim] > 0:
            lower, upper = bound, np.inf
        else:
            lower, upper = -np.inf, -bound
        a = (lower - cond_mean) / sd
        b = (upper - cond_mean) / sd
        mu_f[k] = truncnorm.rvs(a, b, loc=cond_mean, scale=sd, random_state=rng)

    new_mean[free] = mu_f
    return new_mean


# =============================================================================
# Covariances
# =============================================================================

def covariance_log_target(
    covariance: np.ndarray,
    cluster_obs: np.ndarray,
    mean: np.ndarray,
    psi: np.ndarray,
    nu0: float,
) -> Tuple[float, np.ndarray]:
    """
    Log conditional density of a covariance, up to a constant.

    log InvWishart(Sigma; psi, nu0) + sum_i log N(x_i; mean, Sigma)

    Returns:
        (log target, Cholesky factor of covariance)

    Raises:
        NumericalRejection: If covariance is not SPD or the value is not finite
    """
    chol = cholesky_or_reject(covariance)
    log_prior = invwishart.logpdf(covariance, df=nu0, scale=psi)
    log_lik = float(np.sum(mvn_logpdf(cluster_obs, mean, chol))) if cluster_obs.shape[0] else 0.0
    value = float(log_prior) + log_lik
    if not np.isfinite(value):
        raise NumericalRejection("Covariance log target is not finite")
    return value, chol


def propose_covariance(
    covariance: np.ndarray,
    tuning_df: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Inverse-Wishart proposal centred on the current covariance.

    Scale (df - D - 1) * Sigma gives the proposal mean Sigma.
    """
    n_dims = covariance.shape[0]
    scale = (tuning_df - n_dims - 1.0) * covariance
    draw = invwishart.rvs(df=tuning_df, scale=scale, random_state=rng)
    return symmetrize(np.atleast_2d(draw).reshape(n_dims, n_dims))


def proposal_log_density(to: np.ndarray, given: np.ndarray, tuning_df: float) -> float:
    n_dims = given.shape[0]
    return float(invwishart.logpdf(to, df=tuning_df, scale=(tuning_df - n_dims - 1.0) * given))


def covariance_step(
    cluster: ClusterState,
    cluster_obs: np.ndarray,
    mean: np.ndarray,
    psi: np.ndarray,
    nu0: float,
    rng: np.random.Generator,
) -> Tuple[np.ndarray, np.ndarray, bool]:
    """
    One Metropolis-Hastings update of a cluster covariance.

    Non-SPD proposals and non-finite densities count as rejections.

    Returns:
        (covariance, Cholesky factor, accepted)
    """
    current = cluster.covariance
    try:
        current_target, _ = covariance_log_target(current, cluster_obs, mean, psi, nu0)
    except NumericalRejection as e:
        # Any valid proposal will be accepted
        logger.debug(f"Current covariance has no finite target density: {e}")
        current_target = -np.inf

    try:
        proposal = propose_covariance(current, cluster.tuning_df, rng)
        proposal_target, proposal_chol = covariance_log_target(
            proposal, cluster_obs, mean, psi, nu0
        )
        log_ratio = (
            proposal_target
            - current_target
            + proposal_log_density(current, proposal, cluster.tuning_df)
            - proposal_log_density(proposal, current, cluster.tuning_df)
        )
        if np.isnan(log_ratio):
            raise NumericalRejection("Metropolis log ratio is undefined")
    except (NumericalRejection, np.linalg.LinAlgError, ValueError) as e:
        logger.debug(f"Covariance proposal rejected: {e}")
        return current, cluster.chol, False

    if np.log(rng.random()) < log_ratio:
        return proposal, proposal_chol, True
    return current, cluster.chol, False


def update_cluster(
    cluster: ClusterState,
    cluster_obs: np.ndarray,
    labels: np.ndarray,
    mu0: np.ndarray,
    mean_precision: float,
    psi: np.ndarray,
    nu0: float,
    tuner: RobbinsMonroTuner,
    iteration: int,
    rng: np.random.Generator,
    bound: float = 0.0,
) -> ClusterState:
    """
    Mean then covariance update for one cluster, followed by df adaptation.

    Reads only its own arguments and returns a new ClusterState.
    """
    mean = sample_mean(
        cluster_obs, cluster.mean, cluster.chol, labels, mu0, mean_precision, rng, bound
    )
    covariance, chol, accepted = covariance_step(cluster, cluster_obs, mean, psi, nu0, rng)

    n_dims = labels.shape[0]
    log_scale = tuner.adapt(cluster.log_scale, accepted, iteration)

    return cluster.evolve(
        mean=mean,
        covariance=covariance,
        chol=chol,
        log_scale=log_scale,
        tuning_df=tuner.df_from_log_scale(log_scale, n_dims),
        accepted=accepted,
        n_accepted=cluster.n_accepted + int(accepted),
    )
