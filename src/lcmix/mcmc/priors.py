"""
Prior hyperparameters for the latent-class mixture.

Per cluster m:
    weights     ~ Dirichlet(alpha)
    mean_m      ~ N(mu0_m, I / mean_precision_m), restricted to the class
                  constraint set (null dims fixed at 0, signed dims sign-bound)
    covariance_m ~ InvWishart(psi_m, nu0_m)
"""

import logging
from dataclasses import dataclass

import numpy as np

from lcmix.utils.exceptions import ConfigurationError
from lcmix.utils.linalg import is_positive_definite


logger = logging.getLogger(__name__)


@dataclass
class MixtureHyperparameters:
    """
    Per-cluster prior hyperparameters.

    Attributes:
        alpha: Dirichlet concentration, shape (M,)
        mu0: Prior means, shape (M, D)
        mean_precision: Prior precision of each mean coordinate, shape (M,)
        psi: Inverse-Wishart scale matrices, shape (M, D, D)
        nu0: Inverse-Wishart degrees of freedom, shape (M,)
    """
    alpha: np.ndarray
    mu0: np.ndarray
    mean_precision: np.ndarray
    psi: np.ndarray
    nu0: np.ndarray

    def __post_init__(self):
        self.alpha = np.asarray(self.alpha, dtype=np.float64)
        self.mu0 = np.asarray(self.mu0, dtype=np.float64)
        self.mean_precision = np.asarray(self.mean_precision, dtype=np.float64)
        self.psi = np.asarray(self.psi, dtype=np.float64)
        self.nu0 = np.asarray(self.nu0, dtype=np.float64)

    @property
    def n_clusters(self) -> int:
        return int(self.alpha.shape[0])

    @property
    def n_dims(self) -> int:
        return int(self.mu0.shape[1])

    @classmethod
    def weakly_informative(
        cls,
        classes: np.ndarray,
        scale: float = 1.0,
        mean_precision: float = 0.01,
    ) -> "MixtureHyperparameters":
        """
        Vague priors for a set of classes.

        Prior means sit at +/- scale on signed dimensions and 0 elsewhere,
        with identity-scaled inverse-Wishart priors at nu0 = D + 2.
        """
        classes = np.asarray(classes)
        m, d = classes.shape
        nu0 = float(d + 2)
        return cls(
            alpha=np.ones(m),
            mu0=classes.astype(np.float64) * scale,
            mean_precision=np.full(m, mean_precision),
            psi=np.repeat(np.eye(d)[None, :, :] * (nu0 + d + 1), m, axis=0),
            nu0=np.full(m, nu0),
        )

    def validate(self, n_clusters: int, n_dims: int) -> None:
        """
        Check shapes and parameter domains against the mixture layout.

        Raises:
            ConfigurationError: On any mismatch or invalid value
        """
        expected = {
            "alpha": (n_clusters,),
            "mu0": (n_clusters, n_dims),
            "mean_precision": (n_clusters,),
            "psi": (n_clusters, n_dims, n_dims),
            "nu0": (n_clusters,),
        }
        for name, shape in expected.items():
            actual = getattr(self, name).shape
            if actual != shape:
                raise ConfigurationError(
                    f"Hyperparameter '{name}' has shape {actual}, expected {shape}"
                )

        if np.any(self.alpha <= 0) or not np.all(np.isfinite(self.alpha)):
            raise ConfigurationError("Dirichlet concentrations (alpha) must be positive")
        if np.any(self.mean_precision <= 0) or not np.all(np.isfinite(self.mean_precision)):
            raise ConfigurationError("Mean prior precisions must be positive and finite")
        if not np.all(np.isfinite(self.nu0)) or np.any(self.nu0 <= n_dims - 1):
            raise ConfigurationError(
                f"Inverse-Wishart degrees of freedom must be finite and exceed D - 1 = {n_dims - 1}"
            )
        if not np.all(np.isfinite(self.mu0)):
            raise ConfigurationError("Prior means must be finite")
        for m in range(n_clusters):
            if not is_positive_definite(self.psi[m]):
                raise ConfigurationError(
                    f"Inverse-Wishart scale for cluster {m + 1} is not positive-definite"
                )

    def prior_mode_covariance(self, cluster: int) -> np.ndarray:
        """Mode of the inverse-Wishart prior, psi / (nu0 + D + 1)."""
        return self.psi[cluster] / (self.nu0[cluster] + self.n_dims + 1)
