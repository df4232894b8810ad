"""
lcmix: Latent-Class Gaussian Mixtures

A Python package for fitting structured Gaussian mixtures whose components are
latent classes in {-1, 0, 1}^D, using pairwise evidence to prune the class set
before adaptive MCMC.

Architecture:
    - evidence/ : Pairwise evidence, layered evidence graph, path enumeration
    - pruning/  : Hyperparameter pruners with registry pattern
    - mcmc/     : Priors, mixture state and the adaptive mixture sampler
    - io/       : Evidence tables, graph files, class tables, HDF5 chains
    - pipeline/ : End-to-end orchestration
    - config.py : Pydantic configuration models and loaders
    - utils/    : Shared utilities (logging, hashing, validation, linear algebra)
"""

__version__ = "0.1.0"
__author__ = "lcmix developers"

# Lazy imports to avoid circular dependencies
# Users should import from subpackages directly:
#   from lcmix.evidence import EvidenceGraphBuilder, PathEnumerator
#   from lcmix.mcmc import MixtureSampler
