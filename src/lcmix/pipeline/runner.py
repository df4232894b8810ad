"""
Pipeline runner for latent-class mixture fitting.

Stages:
    1. Build the evidence graph from adjacent-pair evidence
    2. Enumerate candidate classes (optionally filtered by all-pairs evidence)
    3. Prune candidates and estimate prior hyperparameters
    4. Run the adaptive mixture sampler

Configuration and resource errors abort the run before any artifact is
written. A pruning step that retains no class ends the run cleanly with
classes_found=False.
"""

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np

from lcmix.config import PipelineConfig, build_pipeline_config
from lcmix.evidence.enumeration import PathEnumerator, filter_by_pairwise_evidence
from lcmix.evidence.graph import EvidenceGraph, EvidenceGraphBuilder
from lcmix.evidence.types import PairwiseEvidenceStore
from lcmix.io.chain_store import write_chains
from lcmix.io.graph_file import write_graph
from lcmix.io.tables import write_classes
from lcmix.mcmc.results import SamplerResult
from lcmix.mcmc.sampler import MixtureSampler
from lcmix.pruning import PrunerRegistry
from lcmix.utils.validation import validate_observations


logger = logging.getLogger(__name__)


# =============================================================================
# Artifact Names
# =============================================================================

GRAPH_FILENAME = "evidence_graph.txt"
CLASSES_FILENAME = "retained_classes.tsv"
CHAINS_FILENAME = "chains.h5"


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class PipelineResult:
    """Result of an end-to-end fit."""
    graph: EvidenceGraph
    n_candidates: int
    retained_classes: np.ndarray
    prior_weights: np.ndarray
    sampler_result: Optional[SamplerResult] = None
    artifacts: Dict[str, Path] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @property
    def classes_found(self) -> bool:
        return self.retained_classes.shape[0] > 0


# =============================================================================
# Pipeline
# =============================================================================

def run_pipeline(
    observations: np.ndarray,
    evidence: PairwiseEvidenceStore,
    config: Union[PipelineConfig, Dict[str, Any]],
    *,
    output_dir: Optional[Union[str, Path]] = None,
    overwrite: bool = False,
    progress_callback: Optional[Callable[[int, int], None]] = None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> PipelineResult:
    """
    Fit the latent-class mixture end to end.

    Args:
        observations: Data matrix, shape (n, D)
        evidence: Pairwise evidence covering every adjacent dimension pair
        config: PipelineConfig or dict of its fields
        output_dir: If given, write the graph file, class table and chains here
        overwrite: Replace existing artifacts in output_dir
        progress_callback: Forwarded to MixtureSampler
        should_stop: Forwarded to MixtureSampler

    Returns:
        PipelineResult; sampler_result is None when no class was retained

    Raises:
        ConfigurationError: On invalid config, observations or missing evidence
        PathLimitExceededError: If enumeration exceeds config.max_paths
        SamplerCancelledError: If should_stop() requested cancellation
        FileExistsError: If output_dir already holds artifacts and overwrite=False
    """
    if not isinstance(config, PipelineConfig):
        config = build_pipeline_config(config)

    x = validate_observations(observations)
    n_obs, n_dims = x.shape
    if output_dir is not None:
        _check_artifacts_absent(Path(output_dir), overwrite)
    warnings: List[str] = []

    logger.info(f"Starting latent-class fit: n={n_obs}, D={n_dims}, nstep={config.nstep}")

    # Stage 1: evidence graph
    graph = EvidenceGraphBuilder().build(evidence, n_dims)

    # Stage 2: candidate classes
    candidates = PathEnumerator(max_paths=config.max_paths).enumerate(graph)
    stream = candidates
    if config.require_all_pairs:
        stream = filter_by_pairwise_evidence(candidates, evidence)

    # Stage 3: pruning
    pruner = PrunerRegistry.create(config.pruning.method, config.pruning.model_dump())
    pruning = pruner.prune(stream, x)

    if not pruning.classes_found:
        message = (
            f"No latent class retained from {pruning.n_candidates} candidates; "
            "skipping sampler"
        )
        logger.warning(message)
        warnings.append(message)
        return PipelineResult(
            graph=graph,
            n_candidates=pruning.n_candidates,
            retained_classes=pruning.retained_classes,
            prior_weights=pruning.prior_weights,
            warnings=warnings,
        )

    # Stage 4: sampling
    sampler = MixtureSampler(
        config.sampler,
        progress_callback=progress_callback,
        should_stop=should_stop,
    )
    sampler_result = sampler.run(
        x, pruning.hyperparameters, pruning.retained_classes, config.nstep
    )

    artifacts: Dict[str, Path] = {}
    if output_dir is not None:
        artifacts = _write_artifacts(
            Path(output_dir), graph, pruning.retained_classes, sampler_result, config, overwrite
        )

    logger.info(
        f"Latent-class fit complete: {pruning.n_retained} clusters from "
        f"{pruning.n_candidates} candidates"
    )

    return PipelineResult(
        graph=graph,
        n_candidates=pruning.n_candidates,
        retained_classes=pruning.retained_classes,
        prior_weights=pruning.prior_weights,
        sampler_result=sampler_result,
        artifacts=artifacts,
        warnings=warnings,
    )


def _check_artifacts_absent(output_dir: Path, overwrite: bool) -> None:
    if overwrite:
        return
    existing = [
        name for name in (GRAPH_FILENAME, CLASSES_FILENAME, CHAINS_FILENAME)
        if (output_dir / name).exists()
    ]
    if existing:
        raise FileExistsError(
            f"Artifacts already exist in {output_dir}: {existing}; pass overwrite=True to replace"
        )


def _write_artifacts(
    output_dir: Path,
    graph: EvidenceGraph,
    classes: np.ndarray,
    result: SamplerResult,
    config: PipelineConfig,
    overwrite: bool,
) -> Dict[str, Path]:
    """
    Write the graph file, class table and chain archive as one set.

    All three are written into a staging directory and only moved into
    output_dir once every write has succeeded.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    _check_artifacts_absent(output_dir, overwrite)

    staging = Path(tempfile.mkdtemp(prefix=".lcmix-", suffix=".partial", dir=output_dir))
    try:
        staged = {
            "graph": write_graph(graph, staging / GRAPH_FILENAME),
            "classes": write_classes(classes, staging / CLASSES_FILENAME),
            "chains": write_chains(
                result,
                staging / CHAINS_FILENAME,
                config=config.model_dump(),
                overwrite=True,
            ),
        }
        artifacts = {}
        for key, path in staged.items():
            target = output_dir / path.name
            os.replace(path, target)
            artifacts[key] = target
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    logger.info(f"Wrote {len(artifacts)} artifacts to {output_dir}")
    return artifacts
