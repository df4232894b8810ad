"""
Unit tests for the adaptive mixture sampler.
"""

import logging

import numpy as np
import pytest

from lcmix.config import SamplerConfig
from lcmix.mcmc.sampler import MixtureSampler, SamplerStatus
from lcmix.utils.exceptions import ConfigurationError, SamplerCancelledError
from tests.fixtures import generate_mixture, simple_hyperparameters


class TestSamplerShapes:
    """Chain layout for a short run."""

    def test_chain_shapes(self, mixture_data, three_classes, mixture_hyperparameters,
                          fast_sampler_config):
        x, _ = mixture_data
        sampler = MixtureSampler(fast_sampler_config)

        result = sampler.run(x, mixture_hyperparameters, three_classes, nstep=10)

        assert result.mean_chains.shape == (3, 11, 3)
        assert result.covariance_chains.shape == (3, 3, 3, 11)
        assert result.weight_chain.shape == (3, 11)
        assert result.assignment_chain.shape == (102, 11)
        assert result.acceptance_chain.shape == (3, 11)
        assert result.tuning_df_chain.shape == (3, 11)
        np.testing.assert_array_equal(result.retained_classes, three_classes)

    def test_three_clusters_hundred_observations(self, mixture_data, three_classes,
                                                 mixture_hyperparameters, fast_sampler_config):
        x, _ = mixture_data
        result = MixtureSampler(fast_sampler_config).run(
            x[:100], mixture_hyperparameters, three_classes, nstep=10
        )

        assert len(result.mean_chains) == 3
        assert all(chain.shape == (11, 3) for chain in result.mean_chains)
        assert result.assignment_chain.shape == (100, 11)
        assert set(np.unique(result.assignment_chain)) <= {1, 2, 3}

    def test_assignments_are_one_based(self, mixture_data, three_classes,
                                       mixture_hyperparameters, fast_sampler_config):
        x, _ = mixture_data
        result = MixtureSampler(fast_sampler_config).run(
            x, mixture_hyperparameters, three_classes, nstep=10
        )

        assert result.assignment_chain.min() >= 1
        assert result.assignment_chain.max() <= 3

    def test_weights_on_simplex(self, mixture_data, three_classes, mixture_hyperparameters,
                                fast_sampler_config):
        x, _ = mixture_data
        result = MixtureSampler(fast_sampler_config).run(
            x, mixture_hyperparameters, three_classes, nstep=10
        )

        np.testing.assert_allclose(result.weight_chain.sum(axis=0), 1.0, atol=1e-12)
        assert np.all(result.weight_chain >= 0)

    def test_null_dimensions_stay_zero(self, mixture_data, three_classes,
                                       mixture_hyperparameters, fast_sampler_config):
        x, _ = mixture_data
        result = MixtureSampler(fast_sampler_config).run(
            x, mixture_hyperparameters, three_classes, nstep=10
        )

        assert np.all(result.mean_chains[0, :, 2] == 0.0)
        assert np.all(result.mean_chains[1, :, 1] == 0.0)

    def test_signed_dimensions_keep_sign(self, mixture_data, three_classes,
                                         mixture_hyperparameters, fast_sampler_config):
        x, _ = mixture_data
        result = MixtureSampler(fast_sampler_config).run(
            x, mixture_hyperparameters, three_classes, nstep=10
        )

        signs = np.sign(result.mean_chains)
        for m in range(3):
            for d in range(3):
                if three_classes[m, d] != 0:
                    assert np.all(signs[m, :, d] == three_classes[m, d])

    def test_covariances_symmetric_positive_definite(self, mixture_data, three_classes,
                                                     mixture_hyperparameters,
                                                     fast_sampler_config):
        x, _ = mixture_data
        result = MixtureSampler(fast_sampler_config).run(
            x, mixture_hyperparameters, three_classes, nstep=10
        )

        for m in range(3):
            for t in range(11):
                cov = result.covariance_chains[m, :, :, t]
                np.testing.assert_allclose(cov, cov.T)
                assert np.all(np.linalg.eigvalsh(cov) > 0)

    def test_initial_acceptance_is_zero(self, mixture_data, three_classes,
                                        mixture_hyperparameters, fast_sampler_config):
        x, _ = mixture_data
        result = MixtureSampler(fast_sampler_config).run(
            x, mixture_hyperparameters, three_classes, nstep=5
        )

        assert np.all(result.acceptance_chain[:, 0] == 0)
        assert set(np.unique(result.acceptance_chain)) <= {0, 1}

    def test_nstep_zero_returns_initial_state(self, mixture_data, three_classes,
                                              mixture_hyperparameters, fast_sampler_config):
        x, truth = mixture_data
        sampler = MixtureSampler(fast_sampler_config)

        result = sampler.run(x, mixture_hyperparameters, three_classes, nstep=0)

        assert result.nstep == 0
        assert result.mean_chains.shape == (3, 1, 3)
        np.testing.assert_array_equal(result.assignment_chain[:, 0], truth + 1)
        assert sampler.status is SamplerStatus.COMPLETED

    def test_single_cluster(self, fast_sampler_config):
        classes = np.array([[1, -1]], dtype=np.int8)
        x, _ = generate_mixture(classes, n_per_class=30, seed=2)

        result = MixtureSampler(fast_sampler_config).run(
            x, simple_hyperparameters(classes), classes, nstep=5
        )

        assert np.all(result.assignment_chain == 1)
        np.testing.assert_allclose(result.weight_chain, 1.0)


class TestSamplerBehaviour:
    """Statistical and run-control behaviour."""

    def test_recovers_cluster_means(self, mixture_data, three_classes,
                                    mixture_hyperparameters, fast_sampler_config):
        x, _ = mixture_data
        result = MixtureSampler(fast_sampler_config).run(
            x, mixture_hyperparameters, three_classes, nstep=200
        )

        expected = three_classes * 3.0
        np.testing.assert_allclose(result.posterior_means(burnin=50), expected, atol=0.3)
        np.testing.assert_allclose(result.posterior_weights(burnin=50), 1.0 / 3, atol=0.1)

    def test_acceptance_rate_approaches_target(self):
        classes = np.array([[1, 0], [-1, 1]], dtype=np.int8)
        x, _ = generate_mixture(classes, n_per_class=50, seed=11)
        sampler = MixtureSampler({"seed": 5, "target_acceptance": 0.3})

        result = sampler.run(x, simple_hyperparameters(classes), classes, nstep=2000)

        rates = result.acceptance_rates(burnin=500)
        np.testing.assert_allclose(rates, 0.3, atol=0.1)

    def test_tuning_df_moves_from_initial_value(self, mixture_data, three_classes,
                                                mixture_hyperparameters):
        sampler = MixtureSampler({"seed": 3, "initial_tuning_df": 100.0})
        x, _ = mixture_data

        result = sampler.run(x, mixture_hyperparameters, three_classes, nstep=20)

        np.testing.assert_allclose(result.tuning_df_chain[:, 0], 100.0)
        assert np.all(result.tuning_df_chain > 3 + 1)
        assert not np.allclose(result.tuning_df_chain[:, -1], 100.0)

    def test_same_seed_same_chains(self, mixture_data, three_classes, mixture_hyperparameters):
        x, _ = mixture_data

        a = MixtureSampler({"seed": 99}).run(x, mixture_hyperparameters, three_classes, nstep=15)
        b = MixtureSampler({"seed": 99}).run(x, mixture_hyperparameters, three_classes, nstep=15)

        np.testing.assert_array_equal(a.mean_chains, b.mean_chains)
        np.testing.assert_array_equal(a.assignment_chain, b.assignment_chain)

    def test_worker_count_does_not_change_chains(self, mixture_data, three_classes,
                                                 mixture_hyperparameters):
        x, _ = mixture_data

        serial = MixtureSampler({"seed": 8, "n_workers": 1}).run(
            x, mixture_hyperparameters, three_classes, nstep=15
        )
        threaded = MixtureSampler({"seed": 8, "n_workers": 3}).run(
            x, mixture_hyperparameters, three_classes, nstep=15
        )

        np.testing.assert_array_equal(serial.mean_chains, threaded.mean_chains)
        np.testing.assert_array_equal(serial.covariance_chains, threaded.covariance_chains)
        np.testing.assert_array_equal(serial.acceptance_chain, threaded.acceptance_chain)

    def test_progress_callback(self, mixture_data, three_classes, mixture_hyperparameters,
                               fast_sampler_config):
        x, _ = mixture_data
        calls = []

        MixtureSampler(fast_sampler_config, progress_callback=lambda t, n: calls.append((t, n))).run(
            x, mixture_hyperparameters, three_classes, nstep=4
        )

        assert calls == [(1, 4), (2, 4), (3, 4), (4, 4)]

    def test_cancellation(self, mixture_data, three_classes, mixture_hyperparameters,
                          fast_sampler_config):
        x, _ = mixture_data
        done = []
        sampler = MixtureSampler(
            fast_sampler_config,
            progress_callback=lambda t, n: done.append(t),
            should_stop=lambda: len(done) >= 3,
        )

        with pytest.raises(SamplerCancelledError) as exc_info:
            sampler.run(x, mixture_hyperparameters, three_classes, nstep=50)

        assert exc_info.value.iteration == 3
        assert exc_info.value.nstep == 50
        assert sampler.status is None
        assert sampler.iteration == 3

    def test_logs_acceptance_rates(self, mixture_data, three_classes, mixture_hyperparameters,
                                   fast_sampler_config, caplog):
        x, _ = mixture_data

        with caplog.at_level(logging.INFO, logger="lcmix.mcmc.sampler"):
            MixtureSampler(fast_sampler_config).run(
                x, mixture_hyperparameters, three_classes, nstep=3
            )

        assert "acceptance rates" in caplog.text


class TestSamplerValidation:
    """Configuration errors raised before sampling starts."""

    def test_status_before_run(self):
        assert MixtureSampler().status is None

    def test_accepts_config_model(self):
        config = SamplerConfig(seed=4, target_acceptance=0.4)
        sampler = MixtureSampler(config)
        assert sampler.tuner.target == 0.4

    def test_invalid_config_raises(self):
        with pytest.raises(ConfigurationError):
            MixtureSampler({"target_acceptance": 1.5})

    def test_no_observations_raises(self, three_classes, mixture_hyperparameters):
        with pytest.raises(ConfigurationError, match="n = 0"):
            MixtureSampler().run(np.empty((0, 3)), mixture_hyperparameters, three_classes, 5)

    def test_no_classes_raises(self, mixture_data, mixture_hyperparameters):
        x, _ = mixture_data
        with pytest.raises(ConfigurationError, match="M = 0"):
            MixtureSampler().run(x, mixture_hyperparameters, np.empty((0, 3), dtype=np.int8), 5)

    def test_negative_nstep_raises(self, mixture_data, three_classes, mixture_hyperparameters):
        x, _ = mixture_data
        with pytest.raises(ConfigurationError, match="nstep"):
            MixtureSampler().run(x, mixture_hyperparameters, three_classes, -1)

    def test_dimension_mismatch_raises(self, mixture_data, mixture_hyperparameters):
        x, _ = mixture_data
        with pytest.raises(ConfigurationError):
            MixtureSampler().run(x, mixture_hyperparameters, np.array([[1, 0]]), 5)

    def test_hyperparameter_mismatch_raises(self, mixture_data, three_classes):
        x, _ = mixture_data
        hyper = simple_hyperparameters(three_classes[:2])
        with pytest.raises(ConfigurationError):
            MixtureSampler().run(x, hyper, three_classes, 5)

    def test_infinite_degrees_of_freedom_raises(self, mixture_data, three_classes):
        x, _ = mixture_data
        hyper = simple_hyperparameters(three_classes)
        hyper.nu0[:] = np.inf
        sampler = MixtureSampler()

        with pytest.raises(ConfigurationError, match="degrees of freedom"):
            sampler.run(x, hyper, three_classes, 5)

        assert sampler.status is None
