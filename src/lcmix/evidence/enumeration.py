"""
Lazy enumeration of candidate latent classes.

A candidate class is a full path through the evidence graph, i.e. one label
per dimension such that every adjacent label pair is supported. The number
of paths can be combinatorially large, so paths are streamed by a
depth-first traversal instead of being materialised.
"""

import logging
from typing import FrozenSet, Iterable, Iterator, List, Optional

import numpy as np

from lcmix.evidence.graph import EvidenceGraph
from lcmix.evidence.types import LABELS, LatentClass, PairwiseEvidenceStore
from lcmix.utils.exceptions import ConfigurationError, PathLimitExceededError


logger = logging.getLogger(__name__)


def count_paths(graph: EvidenceGraph) -> int:
    """
    Exact number of full paths, by forward dynamic programming over layers.

    Runs in O(D) time regardless of how many paths exist.
    """
    counts = {label: 1 for label in LABELS}
    for layer in range(graph.n_layers - 1):
        nxt = {label: 0 for label in LABELS}
        for a, b in graph.transitions[layer]:
            nxt[b] += counts[a]
        counts = nxt
    return sum(counts.values())


def _live_labels(graph: EvidenceGraph) -> List[FrozenSet[int]]:
    """
    Labels at each layer from which the final layer is reachable.

    The traversal only descends into live nodes, so its cost is bounded by
    the number of emitted paths rather than by dead-end branches.
    """
    live = [frozenset()] * graph.n_layers
    live[-1] = frozenset(LABELS)
    for layer in range(graph.n_layers - 2, -1, -1):
        live[layer] = frozenset(
            a for a, b in graph.transitions[layer] if b in live[layer + 1]
        )
    return live


class CandidateSequence:
    """
    Restartable, lazily evaluated sequence of candidate classes.

    Each call to iter() starts an independent traversal, so the same graph
    can be enumerated any number of times with identical results.

    Example:
        >>> candidates = PathEnumerator().enumerate(graph)
        >>> candidates.count()
        9
        >>> next(iter(candidates))
        (-1, -1)
    """

    def __init__(self, graph: EvidenceGraph, max_paths: Optional[int] = None):
        self.graph = graph
        self.max_paths = max_paths

    def __iter__(self) -> Iterator[LatentClass]:
        return self._traverse()

    def _traverse(self) -> Iterator[LatentClass]:
        graph = self.graph
        last = graph.n_layers - 1
        live = _live_labels(graph)

        def children(layer: int, label: int) -> Iterator[int]:
            return iter([b for b in graph.successors(layer, label) if b in live[layer + 1]])

        emitted = 0
        prefix: List[int] = []
        # stack[k] iterates the remaining label choices for layer k
        stack = [iter([label for label in LABELS if label in live[0]])]

        while stack:
            try:
                label = next(stack[-1])
            except StopIteration:
                stack.pop()
                if prefix:
                    prefix.pop()
                continue

            prefix.append(label)
            layer = len(prefix) - 1

            if layer == last:
                if self.max_paths is not None and emitted >= self.max_paths:
                    raise PathLimitExceededError(
                        f"Path enumeration exceeded max_paths={self.max_paths} "
                        f"after {emitted} candidate classes",
                        n_paths=emitted,
                        limit=self.max_paths,
                    )
                emitted += 1
                yield tuple(prefix)
                prefix.pop()
            else:
                stack.append(children(layer, label))

    def count(self) -> int:
        """Number of paths, computed without enumerating them."""
        return count_paths(self.graph)

    def to_array(self) -> np.ndarray:
        """
        Materialise all candidates as an (n, D) int8 array.

        Honors max_paths; raises PathLimitExceededError past the cap.
        """
        rows = list(self)
        if not rows:
            return np.empty((0, self.graph.n_layers), dtype=np.int8)
        return np.asarray(rows, dtype=np.int8)

    def __repr__(self) -> str:
        return f"CandidateSequence(n_layers={self.graph.n_layers}, max_paths={self.max_paths})"


class PathEnumerator:
    """
    Enumerates source-to-sink paths of an evidence graph.

    Children are visited in label order (-1, 0, 1), so enumeration order is
    reproducible. The enumerator has no depth limit beyond D; callers bound
    the output with max_paths.

    Args:
        max_paths: Optional cap on the number of paths a traversal may emit
    """

    def __init__(self, max_paths: Optional[int] = None):
        if max_paths is not None and max_paths < 1:
            raise ConfigurationError(f"max_paths must be positive, got {max_paths}")
        self.max_paths = max_paths

    def enumerate(self, graph: EvidenceGraph) -> CandidateSequence:
        """
        Lazily enumerate all candidate classes of a graph.

        A graph with a reachability gap yields an empty sequence.
        """
        candidates = CandidateSequence(graph, self.max_paths)
        n_paths = candidates.count()
        if n_paths == 0:
            logger.warning("Evidence graph has no complete path; no candidate classes")
        else:
            logger.info(f"Evidence graph supports {n_paths} candidate classes")
        return candidates


def filter_by_pairwise_evidence(
    candidates: Iterable[LatentClass],
    store: PairwiseEvidenceStore,
) -> Iterator[LatentClass]:
    """
    Drop candidates contradicted by non-adjacent pairwise evidence.

    Adjacent pairs already hold by construction of the graph. Dimension
    pairs with no evidence in the store do not filter anything.

    Args:
        candidates: Candidate classes (e.g. a CandidateSequence)
        store: Pairwise evidence, possibly covering non-adjacent pairs

    Yields:
        Candidates whose every covered label pair is supported
    """
    checks = None
    for candidate in candidates:
        if checks is None:
            n_dims = len(candidate)
            checks = [
                store.get(i, j)
                for i, j in store.pairs()
                if j - i > 1 and j < n_dims
            ]
            logger.debug(f"Filtering candidates against {len(checks)} non-adjacent pairs")
        if all(ev.is_supported(candidate[ev.dim_i], candidate[ev.dim_j]) for ev in checks):
            yield candidate
