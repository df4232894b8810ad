"""
Pipeline orchestration for lcmix.

Provides:
    - run_pipeline chaining graph building, enumeration, pruning and sampling
    - PipelineResult
"""

from lcmix.pipeline.runner import (
    run_pipeline,
    PipelineResult,
    GRAPH_FILENAME,
    CLASSES_FILENAME,
    CHAINS_FILENAME,
)

__all__ = [
    "run_pipeline",
    "PipelineResult",
    "GRAPH_FILENAME",
    "CLASSES_FILENAME",
    "CHAINS_FILENAME",
]
