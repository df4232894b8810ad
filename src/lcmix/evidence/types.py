"""
Pairwise evidence data model.

Evidence for a pair of dimensions (i, j) is a set of records
(label_i, label_j, supported) over the 9 possible label pairs. It comes from
an external pairwise mixture fit; this module only stores and queries it.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from lcmix.utils.exceptions import EvidenceError


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Canonical label order. Every traversal and table in the package uses it.
LABELS: Tuple[int, int, int] = (-1, 0, 1)
LABEL_INDEX: Dict[int, int] = {label: idx for idx, label in enumerate(LABELS)}

LabelPair = Tuple[int, int]
LatentClass = Tuple[int, ...]


def _check_label(label: int, dim_pair: Tuple[int, int]) -> int:
    if isinstance(label, bool) or label not in LABEL_INDEX:
        raise EvidenceError(
            f"Invalid label {label!r} for dimension pair {dim_pair}; expected one of {LABELS}",
            dim_pair=dim_pair,
        )
    return int(label)


# =============================================================================
# Pair Evidence
# =============================================================================

@dataclass(frozen=True)
class PairEvidence:
    """
    Support flags for the label pairs of one dimension pair.

    Label pairs with no record are treated as unsupported.

    Attributes:
        dim_i: First dimension (0-based)
        dim_j: Second dimension (0-based)
        support: Mapping (label_i, label_j) -> supported
    """
    dim_i: int
    dim_j: int
    support: Dict[LabelPair, bool] = field(default_factory=dict)

    def __post_init__(self):
        if self.dim_i == self.dim_j:
            raise EvidenceError(
                f"Evidence must relate two distinct dimensions, got ({self.dim_i}, {self.dim_j})",
                dim_pair=(self.dim_i, self.dim_j),
            )
        for a, b in self.support:
            _check_label(a, self.dims)
            _check_label(b, self.dims)

    @property
    def dims(self) -> Tuple[int, int]:
        return (self.dim_i, self.dim_j)

    @classmethod
    def from_records(
        cls,
        dim_i: int,
        dim_j: int,
        records: Iterable[Tuple[int, int, bool]],
    ) -> "PairEvidence":
        """
        Build evidence from (label_i, label_j, supported) records.

        Raises:
            EvidenceError: If a label pair is recorded more than once or a
                label is invalid
        """
        support: Dict[LabelPair, bool] = {}
        for label_i, label_j, supported in records:
            key = (_check_label(label_i, (dim_i, dim_j)), _check_label(label_j, (dim_i, dim_j)))
            if key in support:
                raise EvidenceError(
                    f"Duplicate evidence record for labels {key} on dimensions ({dim_i}, {dim_j})",
                    dim_pair=(dim_i, dim_j),
                )
            support[key] = bool(supported)
        return cls(dim_i, dim_j, support)

    @classmethod
    def from_weights(
        cls,
        dim_i: int,
        dim_j: int,
        weights: np.ndarray,
        min_weight: float = 0.0,
    ) -> "PairEvidence":
        """
        Derive support from a 3x3 table of pairwise mixing weights.

        Rows index label_i and columns label_j, both in LABELS order. A pair
        is supported when its weight is strictly above min_weight.

        Args:
            dim_i: First dimension
            dim_j: Second dimension
            weights: Array of shape (3, 3)
            min_weight: Degeneracy threshold

        Raises:
            EvidenceError: If weights is not 3x3
        """
        weights = np.asarray(weights, dtype=np.float64)
        if weights.shape != (3, 3):
            raise EvidenceError(
                f"Pairwise weights must be 3x3, got {weights.shape}",
                dim_pair=(dim_i, dim_j),
            )
        support = {
            (a, b): bool(weights[ia, ib] > min_weight)
            for ia, a in enumerate(LABELS)
            for ib, b in enumerate(LABELS)
        }
        return cls(dim_i, dim_j, support)

    @classmethod
    def fully_supported(cls, dim_i: int, dim_j: int) -> "PairEvidence":
        """Evidence supporting all 9 label pairs."""
        return cls(dim_i, dim_j, {(a, b): True for a in LABELS for b in LABELS})

    def is_supported(self, label_i: int, label_j: int) -> bool:
        return self.support.get((label_i, label_j), False)

    def supported_pairs(self) -> List[LabelPair]:
        """Supported label pairs in LABELS x LABELS order."""
        return [(a, b) for a in LABELS for b in LABELS if self.is_supported(a, b)]

    def transposed(self) -> "PairEvidence":
        """Same evidence oriented as (dim_j, dim_i)."""
        return PairEvidence(
            self.dim_j,
            self.dim_i,
            {(b, a): flag for (a, b), flag in self.support.items()},
        )

    def records(self) -> Iterator[Tuple[int, int, bool]]:
        """All stored records in LABELS x LABELS order."""
        for a in LABELS:
            for b in LABELS:
                if (a, b) in self.support:
                    yield a, b, self.support[(a, b)]


# =============================================================================
# Evidence Store
# =============================================================================

class PairwiseEvidenceStore:
    """
    Evidence for unordered dimension pairs.

    Pairs are stored under (min(i, j), max(i, j)); lookups re-orient as needed.

    Example:
        >>> store = PairwiseEvidenceStore()
        >>> store.add(PairEvidence.fully_supported(0, 1))
        >>> store.get(1, 0).dims
        (1, 0)
    """

    def __init__(self, evidence: Optional[Iterable[PairEvidence]] = None):
        self._pairs: Dict[Tuple[int, int], PairEvidence] = {}
        for item in evidence or []:
            self.add(item)

    def add(self, evidence: PairEvidence, overwrite: bool = False) -> None:
        """
        Add evidence for a dimension pair.

        Raises:
            EvidenceError: If the pair is already present and overwrite=False
        """
        if evidence.dim_i > evidence.dim_j:
            evidence = evidence.transposed()
        key = evidence.dims
        if key in self._pairs and not overwrite:
            raise EvidenceError(f"Evidence for dimensions {key} already present", dim_pair=key)
        self._pairs[key] = evidence

    def get(self, dim_i: int, dim_j: int) -> Optional[PairEvidence]:
        """Evidence oriented as (dim_i, dim_j), or None if absent."""
        key = (min(dim_i, dim_j), max(dim_i, dim_j))
        evidence = self._pairs.get(key)
        if evidence is None:
            return None
        return evidence if dim_i <= dim_j else evidence.transposed()

    def adjacent(self, dim: int) -> Optional[PairEvidence]:
        """Evidence for the boundary (dim, dim + 1)."""
        return self.get(dim, dim + 1)

    def missing_adjacent(self, n_dims: int) -> List[Tuple[int, int]]:
        """Adjacent pairs (d, d + 1) with no evidence, for d in 0..n_dims-2."""
        return [(d, d + 1) for d in range(n_dims - 1) if (d, d + 1) not in self._pairs]

    def pairs(self) -> List[Tuple[int, int]]:
        return sorted(self._pairs)

    def __contains__(self, dims: Tuple[int, int]) -> bool:
        i, j = dims
        return (min(i, j), max(i, j)) in self._pairs

    def __iter__(self) -> Iterator[PairEvidence]:
        for key in sorted(self._pairs):
            yield self._pairs[key]

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        return f"PairwiseEvidenceStore(n_pairs={len(self)})"
