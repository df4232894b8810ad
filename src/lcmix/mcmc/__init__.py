"""
Adaptive MCMC for latent-class Gaussian mixtures.

Provides:
    - MixtureHyperparameters for Dirichlet / Normal / inverse-Wishart priors
    - MixtureSampler, the adaptive Metropolis-within-Gibbs sampler
    - SamplerResult holding the posterior chains
"""

from lcmix.mcmc.priors import MixtureHyperparameters
from lcmix.mcmc.results import SamplerResult
from lcmix.mcmc.sampler import MixtureSampler, SamplerStatus
from lcmix.mcmc.state import ClusterState, MixtureState, initialize_state, project_mean
from lcmix.mcmc.tuning import RobbinsMonroTuner

__all__ = [
    "MixtureHyperparameters",
    "SamplerResult",
    "MixtureSampler",
    "SamplerStatus",
    "ClusterState",
    "MixtureState",
    "initialize_state",
    "project_mean",
    "RobbinsMonroTuner",
]
