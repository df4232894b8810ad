"""
Pairwise evidence and candidate-class enumeration.

Provides:
    - PairEvidence / PairwiseEvidenceStore for pairwise support flags
    - EvidenceGraphBuilder producing a layered EvidenceGraph
    - PathEnumerator streaming candidate classes from the graph
"""

from lcmix.evidence.types import (
    LABELS,
    LatentClass,
    PairEvidence,
    PairwiseEvidenceStore,
)
from lcmix.evidence.graph import EvidenceGraph, EvidenceGraphBuilder
from lcmix.evidence.enumeration import (
    CandidateSequence,
    PathEnumerator,
    count_paths,
    filter_by_pairwise_evidence,
)

__all__ = [
    "LABELS",
    "LatentClass",
    "PairEvidence",
    "PairwiseEvidenceStore",
    "EvidenceGraph",
    "EvidenceGraphBuilder",
    "CandidateSequence",
    "PathEnumerator",
    "count_paths",
    "filter_by_pairwise_evidence",
]
