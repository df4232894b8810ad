"""
Layered evidence graph.

One layer per dimension, one node per label per layer. An edge joins
(d, a) to (d + 1, b) iff the pairwise evidence for (d, d + 1) supports the
label pair (a, b). Every full path through the graph is a candidate latent
class.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Iterator, List, Tuple

from lcmix.evidence.types import LABELS, LABEL_INDEX, LabelPair, PairwiseEvidenceStore
from lcmix.utils.exceptions import ConfigurationError, MissingEvidenceError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvidenceGraph:
    """
    Immutable layered DAG over dimension labels.

    Node ids are 3 * layer + index(label), with labels in LABELS order.

    Attributes:
        n_layers: Number of dimensions D
        transitions: For each boundary (d, d + 1), the supported label pairs
    """
    n_layers: int
    transitions: Tuple[FrozenSet[LabelPair], ...]

    def __post_init__(self):
        if self.n_layers < 1:
            raise ConfigurationError(f"Evidence graph needs at least one layer, got {self.n_layers}")
        if len(self.transitions) != self.n_layers - 1:
            raise ConfigurationError(
                f"Graph with {self.n_layers} layers needs {self.n_layers - 1} boundaries, "
                f"got {len(self.transitions)}"
            )
        for boundary in self.transitions:
            for a, b in boundary:
                if a not in LABEL_INDEX or b not in LABEL_INDEX:
                    raise ConfigurationError(f"Invalid edge labels ({a}, {b})")

    @classmethod
    def from_edges(cls, n_layers: int, edges: Iterable[Tuple[int, int, int]]) -> "EvidenceGraph":
        """
        Build a graph from (layer, label_at_layer, label_at_next_layer) triples.

        Raises:
            ConfigurationError: If an edge starts outside 0..n_layers-2
        """
        boundaries: List[set] = [set() for _ in range(max(n_layers - 1, 0))]
        for layer, a, b in edges:
            if not 0 <= layer < n_layers - 1:
                raise ConfigurationError(
                    f"Edge from layer {layer} is outside a {n_layers}-layer graph"
                )
            boundaries[layer].add((a, b))
        return cls(n_layers, tuple(frozenset(s) for s in boundaries))

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    @staticmethod
    def node_id(layer: int, label: int) -> int:
        return 3 * layer + LABEL_INDEX[label]

    @staticmethod
    def node_at(node_id: int) -> Tuple[int, int]:
        """(layer, label) for a node id."""
        layer, idx = divmod(node_id, 3)
        return layer, LABELS[idx]

    @property
    def n_nodes(self) -> int:
        return 3 * self.n_layers

    def nodes(self) -> Iterator[Tuple[int, int, int]]:
        """Yield (node_id, layer, label) in id order."""
        for layer in range(self.n_layers):
            for label in LABELS:
                yield self.node_id(layer, label), layer, label

    # -------------------------------------------------------------------------
    # Edges
    # -------------------------------------------------------------------------

    @property
    def n_edges(self) -> int:
        return sum(len(boundary) for boundary in self.transitions)

    def has_edge(self, layer: int, label: int, next_label: int) -> bool:
        return (label, next_label) in self.transitions[layer]

    def successors(self, layer: int, label: int) -> Tuple[int, ...]:
        """Labels reachable at layer + 1 from (layer, label), in LABELS order."""
        if layer >= self.n_layers - 1:
            return ()
        boundary = self.transitions[layer]
        return tuple(b for b in LABELS if (label, b) in boundary)

    def edges(self) -> Iterator[Tuple[int, int, int]]:
        """Yield (layer, label, next_label) in a deterministic order."""
        for layer, boundary in enumerate(self.transitions):
            for a in LABELS:
                for b in LABELS:
                    if (a, b) in boundary:
                        yield layer, a, b

    def edge_ids(self) -> Iterator[Tuple[int, int]]:
        """Yield (source_id, target_id) for every edge."""
        for layer, a, b in self.edges():
            yield self.node_id(layer, a), self.node_id(layer + 1, b)

    def empty_boundaries(self) -> List[int]:
        """Layers d whose boundary (d, d + 1) has no supported edge."""
        return [layer for layer, boundary in enumerate(self.transitions) if not boundary]

    def __repr__(self) -> str:
        return f"EvidenceGraph(n_layers={self.n_layers}, n_edges={self.n_edges})"


class EvidenceGraphBuilder:
    """
    Assembles an EvidenceGraph from adjacent-pair evidence.

    Example:
        >>> graph = EvidenceGraphBuilder().build(store, n_dims=4)
        >>> graph.n_edges
        27
    """

    def build(self, store: PairwiseEvidenceStore, n_dims: int) -> EvidenceGraph:
        """
        Build the layered graph for D = n_dims dimensions.

        Args:
            store: Pairwise evidence; must cover every (d, d + 1)
            n_dims: Number of dimensions

        Returns:
            EvidenceGraph with an edge per supported adjacent label pair

        Raises:
            ConfigurationError: If n_dims < 1
            MissingEvidenceError: If any adjacent pair has no evidence
        """
        if n_dims < 1:
            raise ConfigurationError(f"n_dims must be >= 1, got {n_dims}")

        missing = store.missing_adjacent(n_dims)
        if missing:
            raise MissingEvidenceError(
                f"Missing pairwise evidence for adjacent dimension pairs: {missing}",
                missing_pairs=missing,
            )

        transitions = tuple(
            frozenset(store.adjacent(d).supported_pairs()) for d in range(n_dims - 1)
        )
        graph = EvidenceGraph(n_dims, transitions)

        empty = graph.empty_boundaries()
        if empty:
            logger.warning(
                f"No supported label pair across boundaries {[(d, d + 1) for d in empty]}; "
                "graph has no complete path"
            )
        logger.info(f"Built evidence graph: {n_dims} layers, {graph.n_edges} edges")

        return graph
