"""
Linear algebra helpers shared by the pruner and the sampler.

Covariance matrices flow through Cholesky factors; anything that cannot be
factorised is reported as a NumericalRejection so the caller can decide
whether that is fatal.
"""

import numpy as np
from scipy.linalg import solve_triangular

from lcmix.utils.exceptions import NumericalRejection


LOG_2PI = np.log(2.0 * np.pi)


def symmetrize(matrix: np.ndarray) -> np.ndarray:
    """Return (A + A^T) / 2."""
    return 0.5 * (matrix + matrix.T)


def cholesky_or_reject(matrix: np.ndarray, symmetry_tol: float = 1e-8) -> np.ndarray:
    """
    Lower Cholesky factor of a symmetric positive-definite matrix.

    Args:
        matrix: Square matrix
        symmetry_tol: Maximum allowed relative asymmetry

    Returns:
        Lower-triangular L with L @ L.T == matrix

    Raises:
        NumericalRejection: If the matrix is non-finite, asymmetric or not
            positive-definite
    """
    if not np.all(np.isfinite(matrix)):
        raise NumericalRejection("Matrix contains non-finite entries")

    scale = max(float(np.max(np.abs(matrix))), 1.0)
    if np.max(np.abs(matrix - matrix.T)) > symmetry_tol * scale:
        raise NumericalRejection("Matrix is not symmetric")

    try:
        return np.linalg.cholesky(matrix)
    except np.linalg.LinAlgError as e:
        raise NumericalRejection(f"Matrix is not positive-definite: {e}") from e


def is_positive_definite(matrix: np.ndarray) -> bool:
    """Check whether a matrix is symmetric positive-definite."""
    try:
        cholesky_or_reject(matrix)
    except NumericalRejection:
        return False
    return True


def log_det_from_cholesky(chol: np.ndarray) -> float:
    """log|A| from the lower Cholesky factor of A."""
    return 2.0 * float(np.sum(np.log(np.diag(chol))))


def mvn_logpdf(x: np.ndarray, mean: np.ndarray, chol: np.ndarray) -> np.ndarray:
    """
    Multivariate normal log density for each row of x.

    Args:
        x: Observations, shape (n, D)
        mean: Mean vector, shape (D,)
        chol: Lower Cholesky factor of the covariance, shape (D, D)

    Returns:
        Log densities, shape (n,)
    """
    d = x.shape[1]
    z = solve_triangular(chol, (x - mean).T, lower=True, check_finite=False)
    maha = np.sum(z * z, axis=0)
    return -0.5 * (d * LOG_2PI + log_det_from_cholesky(chol) + maha)


def regularize_covariance(cov: np.ndarray, min_eigenvalue: float = 1e-6) -> np.ndarray:
    """
    Project a symmetric matrix onto the positive-definite cone.

    Eigenvalues below min_eigenvalue are raised to it.
    """
    eigvals, eigvecs = np.linalg.eigh(symmetrize(cov))
    eigvals = np.maximum(eigvals, min_eigenvalue)
    return symmetrize((eigvecs * eigvals) @ eigvecs.T)
