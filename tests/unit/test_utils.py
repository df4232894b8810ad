"""
Unit tests for lcmix.utils: exceptions, logging, hashing, validation and
linear algebra helpers.
"""

import numpy as np
import pytest

from lcmix.utils.exceptions import (
    ConfigurationError,
    ConsistencyError,
    EvidenceError,
    GraphFormatError,
    LCMixError,
    MissingEvidenceError,
    NumericalRejection,
    PathLimitExceededError,
    ResourceExhaustionError,
    SamplerCancelledError,
)
from lcmix.utils.hashing import hash_config, verify_hash
from lcmix.utils.linalg import (
    cholesky_or_reject,
    is_positive_definite,
    log_det_from_cholesky,
    mvn_logpdf,
    regularize_covariance,
)
from lcmix.utils.logging import LoggerMixin, setup_logging
from lcmix.utils.validation import validate_label_matrix, validate_nstep, validate_observations


class TestExceptions:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize("exc_class", [
        ConfigurationError,
        EvidenceError,
        MissingEvidenceError,
        ResourceExhaustionError,
        PathLimitExceededError,
        NumericalRejection,
        ConsistencyError,
        SamplerCancelledError,
        GraphFormatError,
    ])
    def test_all_inherit_from_base(self, exc_class):
        assert issubclass(exc_class, LCMixError)

    def test_evidence_errors_are_configuration_errors(self):
        assert issubclass(EvidenceError, ConfigurationError)
        assert issubclass(MissingEvidenceError, ConfigurationError)

    def test_path_limit_carries_count(self):
        err = PathLimitExceededError("too many", n_paths=10, limit=10)
        assert err.n_paths == 10
        assert str(err) == "too many"


class TestHashing:
    """Tests for hash_config()."""

    def test_deterministic_and_order_independent(self):
        assert hash_config({"a": 1, "b": 2}) == hash_config({"b": 2, "a": 1})

    def test_prefix(self):
        assert hash_config({"a": 1}).startswith("sha256:")

    def test_different_configs_differ(self):
        assert hash_config({"a": 1}) != hash_config({"a": 2})

    def test_verify(self):
        h = hash_config({"nstep": 10})
        assert verify_hash({"nstep": 10}, h)
        assert not verify_hash({"nstep": 11}, h)

    def test_verify_accepts_bytes(self):
        h = hash_config({"nstep": 10})
        assert verify_hash({"nstep": 10}, h.encode())


class TestLogging:
    """Tests for logging helpers."""

    def test_logger_mixin_name(self):
        class Worker(LoggerMixin):
            pass

        assert Worker().logger.name.endswith(".Worker")

    def test_setup_logging_accepts_styles(self):
        setup_logging(level="debug", format_style="minimal")
        setup_logging(level="INFO")


class TestValidation:
    """Tests for input validation."""

    def test_observations_cast_to_float(self):
        x = validate_observations([[1, 2], [3, 4]])
        assert x.dtype == np.float64

    @pytest.mark.parametrize("bad", [
        np.zeros(3),
        np.zeros((0, 2)),
        np.zeros((3, 0)),
        np.array([[1.0, np.nan]]),
    ])
    def test_bad_observations_raise(self, bad):
        with pytest.raises(ConfigurationError):
            validate_observations(bad)

    def test_label_matrix(self):
        out = validate_label_matrix([[1, 0, -1]], n_dims=3)
        assert out.dtype == np.int8

    def test_label_matrix_rejects_bad_labels(self):
        with pytest.raises(ConfigurationError, match="Invalid class labels"):
            validate_label_matrix([[1, 2]])

    @pytest.mark.parametrize("nstep", [0, 1, np.int64(5)])
    def test_valid_nstep(self, nstep):
        assert validate_nstep(nstep) == int(nstep)

    @pytest.mark.parametrize("nstep", [-1, 2.5, True, "10"])
    def test_invalid_nstep(self, nstep):
        with pytest.raises(ConfigurationError):
            validate_nstep(nstep)


class TestLinalg:
    """Tests for linear algebra helpers."""

    def test_cholesky(self):
        a = np.array([[4.0, 2.0], [2.0, 3.0]])
        chol = cholesky_or_reject(a)
        np.testing.assert_allclose(chol @ chol.T, a)

    @pytest.mark.parametrize("bad", [
        np.array([[1.0, 2.0], [2.0, 1.0]]),
        np.array([[1.0, 0.5], [0.0, 1.0]]),
        np.array([[np.inf, 0.0], [0.0, 1.0]]),
    ])
    def test_cholesky_rejects(self, bad):
        with pytest.raises(NumericalRejection):
            cholesky_or_reject(bad)
        assert not is_positive_definite(bad)

    def test_log_det(self):
        a = np.diag([2.0, 3.0])
        assert log_det_from_cholesky(np.linalg.cholesky(a)) == pytest.approx(np.log(6.0))

    def test_mvn_logpdf_matches_scipy(self):
        from scipy.stats import multivariate_normal

        rng = np.random.default_rng(0)
        cov = np.array([[2.0, 0.4], [0.4, 1.0]])
        mean = np.array([1.0, -1.0])
        x = rng.normal(size=(5, 2))

        expected = multivariate_normal(mean=mean, cov=cov).logpdf(x)

        np.testing.assert_allclose(mvn_logpdf(x, mean, np.linalg.cholesky(cov)), expected)

    def test_regularize_covariance(self):
        a = np.array([[1.0, 1.0], [1.0, 1.0]])
        out = regularize_covariance(a, min_eigenvalue=1e-3)

        assert is_positive_definite(out)
        assert np.min(np.linalg.eigvalsh(out)) >= 1e-3 - 1e-12
