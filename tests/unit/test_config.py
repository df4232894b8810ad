"""
Unit tests for configuration loading and validation.
"""

import json

import pytest

from lcmix.config import (
    PipelineConfig,
    PruningConfig,
    SamplerConfig,
    build_pipeline_config,
    build_sampler_config,
    load_pipeline_config,
)
from lcmix.utils.exceptions import ConfigurationError


class TestSamplerConfig:
    """Tests for SamplerConfig."""

    def test_defaults(self):
        config = SamplerConfig()

        assert config.target_acceptance == 0.30
        assert config.initial_tuning_df == 100.0
        assert config.n_workers == 1
        assert config.seed is None

    def test_target_acceptance_must_be_open_interval(self):
        with pytest.raises(ConfigurationError):
            build_sampler_config({"target_acceptance": 0.0})
        with pytest.raises(ConfigurationError):
            build_sampler_config({"target_acceptance": 1.0})

    def test_log_scale_range_must_be_ordered(self):
        with pytest.raises(ConfigurationError, match="min_log_scale"):
            build_sampler_config({"min_log_scale": 3.0, "max_log_scale": 1.0})

    def test_decay_range(self):
        with pytest.raises(ConfigurationError):
            build_sampler_config({"adaptation_decay": 0.4})

    def test_none_gives_defaults(self):
        assert build_sampler_config(None) == SamplerConfig()


class TestPipelineConfig:
    """Tests for PipelineConfig."""

    def test_nested_defaults(self):
        config = build_pipeline_config({"nstep": 100})

        assert config.sampler == SamplerConfig()
        assert config.pruning == PruningConfig()
        assert config.max_paths is None
        assert not config.require_all_pairs

    def test_nstep_required_and_positive(self):
        with pytest.raises(ConfigurationError):
            build_pipeline_config({})
        with pytest.raises(ConfigurationError):
            build_pipeline_config({"nstep": 0})

    def test_max_paths_positive(self):
        with pytest.raises(ConfigurationError):
            build_pipeline_config({"nstep": 10, "max_paths": 0})

    def test_bound_passed_to_pruning_and_sampler(self):
        config = build_pipeline_config({"nstep": 10, "bound": 0.5})

        assert config.pruning.bound == 0.5
        assert config.sampler.bound == 0.5

    def test_flex_mu_passed_to_pruning(self):
        config = build_pipeline_config({"nstep": 10, "flex_mu": True})
        assert config.pruning.flex_mu is True

    def test_nested_dicts(self):
        config = PipelineConfig(nstep=5, sampler={"seed": 3}, pruning={"threshold": 2.0})

        assert config.sampler.seed == 3
        assert config.pruning.threshold == 2.0

    def test_unset_pass_through_keeps_nested_values(self):
        config = PipelineConfig(nstep=5, pruning={"bound": 1.5})
        assert config.pruning.bound == 1.5

    def test_pass_through_leaves_caller_models_untouched(self):
        sampler = SamplerConfig(seed=1)
        pruning = PruningConfig(threshold=0.5)

        config = PipelineConfig(nstep=5, sampler=sampler, pruning=pruning, bound=0.5, flex_mu=True)

        assert config.sampler.bound == 0.5
        assert config.pruning.bound == 0.5
        assert config.pruning.flex_mu is True
        assert config.sampler.seed == 1
        assert sampler.bound == 0.0
        assert pruning.bound == 0.0
        assert pruning.flex_mu is False

    def test_shared_sampler_config_reused_across_pipelines(self):
        shared = SamplerConfig(seed=1)

        bounded = PipelineConfig(nstep=5, sampler=shared, bound=0.5)
        unbounded = PipelineConfig(nstep=5, sampler=shared)

        assert bounded.sampler.bound == 0.5
        assert unbounded.sampler.bound == 0.0

    def test_pruning_bound_reaches_sampler(self):
        config = PipelineConfig(nstep=5, pruning={"bound": 1.5})
        assert config.sampler.bound == 1.5

    def test_explicit_sampler_bound_wins_over_pruning_bound(self):
        config = PipelineConfig(nstep=5, pruning={"bound": 1.5}, sampler={"bound": 0.2})

        assert config.sampler.bound == 0.2
        assert config.pruning.bound == 1.5


class TestLoadPipelineConfig:
    """Tests for load_pipeline_config()."""

    def test_loads_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"nstep": 50, "sampler": {"seed": 1}}))

        config = load_pipeline_config(path)

        assert config.nstep == 50
        assert config.sampler.seed == 1

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_pipeline_config(tmp_path / "missing.json")

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_pipeline_config(path)

    def test_schema_error_names_source(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"nstep": -3}))

        with pytest.raises(ConfigurationError, match="config.json"):
            load_pipeline_config(path)
