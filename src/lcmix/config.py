"""
Configuration loading and validation for lcmix.

Uses Pydantic for schema validation.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from lcmix.utils.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class SamplerConfig(BaseModel):
    """Configuration for the adaptive mixture sampler."""

    target_acceptance: float = Field(default=0.30, gt=0, lt=1)
    initial_tuning_df: float = Field(default=100.0, gt=0)
    adaptation_rate: float = Field(default=1.0, gt=0)
    adaptation_decay: float = Field(default=0.6, gt=0.5, le=1.0)
    min_log_scale: float = -2.0
    max_log_scale: float = 14.0
    bound: float = Field(default=0.0, ge=0)
    seed: Optional[int] = None
    n_workers: int = Field(default=1, ge=1)
    show_progress: bool = False

    @model_validator(mode="after")
    def check_log_scale_range(self):
        if self.min_log_scale >= self.max_log_scale:
            raise ValueError(
                f"min_log_scale ({self.min_log_scale}) must be below "
                f"max_log_scale ({self.max_log_scale})"
            )
        return self


class PruningConfig(BaseModel):
    """Configuration for hyperparameter estimation and class pruning."""

    method: str = "concordance"
    threshold: float = Field(default=1.0, ge=0)
    min_weight: float = Field(default=0.0, ge=0, le=1)
    bound: float = Field(default=0.0, ge=0)
    flex_mu: bool = False
    mean_precision: float = Field(default=0.01, gt=0)


class PipelineConfig(BaseModel):
    """Configuration for an end-to-end fit."""

    nstep: int = Field(gt=0)
    sampler: SamplerConfig = Field(default_factory=SamplerConfig)
    pruning: PruningConfig = Field(default_factory=PruningConfig)
    max_paths: Optional[int] = Field(default=None, gt=0)
    require_all_pairs: bool = False
    bound: Optional[float] = Field(default=None, ge=0)
    flex_mu: Optional[bool] = None

    @model_validator(mode="after")
    def pass_through_upstream_flags(self):
        """
        Push pipeline-level bound/flex_mu down to pruning and sampling.

        Nested configs are copied, never modified in place. Without a
        pipeline-level bound, a bound set only on pruning also applies to
        the sampler unless the sampler sets its own.
        """
        if self.bound is not None:
            self.pruning = self.pruning.model_copy(update={"bound": self.bound})
            self.sampler = self.sampler.model_copy(update={"bound": self.bound})
        elif "bound" not in self.sampler.model_fields_set and self.pruning.bound > 0:
            self.sampler = self.sampler.model_copy(update={"bound": self.pruning.bound})
        if self.flex_mu is not None:
            self.pruning = self.pruning.model_copy(update={"flex_mu": self.flex_mu})
        return self


# =============================================================================
# Configuration Loading Functions
# =============================================================================

def load_json_config(path: Path) -> Dict[str, Any]:
    """
    Load a JSON configuration file.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dictionary

    Raises:
        ConfigurationError: If file cannot be loaded or parsed
    """
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {path}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}")


def load_pipeline_config(path: Union[str, Path]) -> PipelineConfig:
    """
    Load and validate a pipeline configuration file.

    Args:
        path: Path to JSON config

    Returns:
        Validated PipelineConfig

    Raises:
        ConfigurationError: If config not found or invalid
    """
    path = Path(path)
    data = load_json_config(path)
    return build_pipeline_config(data, source=str(path))


def build_pipeline_config(data: Dict[str, Any], source: str = "<dict>") -> PipelineConfig:
    """
    Validate a configuration dictionary.

    Raises:
        ConfigurationError: If the data violates the schema
    """
    try:
        return PipelineConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid pipeline config in {source}: {e}")


def build_sampler_config(data: Optional[Dict[str, Any]] = None) -> SamplerConfig:
    """
    Validate sampler options.

    Raises:
        ConfigurationError: If the options violate the schema
    """
    try:
        return SamplerConfig(**(data or {}))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid sampler config: {e}")
