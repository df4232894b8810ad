"""
Text interchange format for evidence graphs.

Layout:

    # lcmix evidence graph
    @attributes
    format_version  1
    n_layers        3
    @nodes
    id  layer  label
    0   0      -1
    ...
    @edges
    source  target
    0       4
    ...

Node ids are explicit and carry their layer (partition) and label. There is
one edge line per supported label-pair transition. Reading a written file
gives back an equal graph.
"""

import logging
from pathlib import Path
from typing import Dict, List, Tuple, Union

from lcmix.evidence.graph import EvidenceGraph
from lcmix.evidence.types import LABEL_INDEX
from lcmix.utils.exceptions import ConfigurationError, GraphFormatError


logger = logging.getLogger(__name__)


FORMAT_VERSION = 1
SECTIONS = ("@attributes", "@nodes", "@edges")


def write_graph(graph: EvidenceGraph, path: Union[str, Path]) -> Path:
    """
    Write an evidence graph to a text file.

    Args:
        graph: Graph to write
        path: Output path (parent directories are created)

    Returns:
        Path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        "# lcmix evidence graph",
        "@attributes",
        f"format_version\t{FORMAT_VERSION}",
        f"n_layers\t{graph.n_layers}",
        "@nodes",
        "id\tlayer\tlabel",
    ]
    lines.extend(f"{node_id}\t{layer}\t{label}" for node_id, layer, label in graph.nodes())
    lines.append("@edges")
    lines.append("source\ttarget")
    lines.extend(f"{source}\t{target}" for source, target in graph.edge_ids())

    with open(path, "w") as f:
        f.write("\n".join(lines) + "\n")

    logger.info(f"Wrote evidence graph ({graph.n_layers} layers, {graph.n_edges} edges) to {path}")
    return path


def _split_sections(path: Path) -> Dict[str, List[Tuple[int, List[str]]]]:
    sections: Dict[str, List[Tuple[int, List[str]]]] = {}
    current = None
    with open(path) as f:
        for line_number, raw in enumerate(f, start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("@"):
                if line not in SECTIONS:
                    raise GraphFormatError(
                        f"Unknown section '{line}'", file_path=str(path), line_number=line_number
                    )
                current = line
                sections[current] = []
                continue
            if current is None:
                raise GraphFormatError(
                    "Content before the first section", file_path=str(path), line_number=line_number
                )
            sections[current].append((line_number, line.split()))

    for name in SECTIONS:
        if name not in sections:
            raise GraphFormatError(f"Missing section '{name}'", file_path=str(path))
    return sections


def _to_ints(fields: List[str], expected: int, path: Path, line_number: int) -> List[int]:
    if len(fields) != expected:
        raise GraphFormatError(
            f"Expected {expected} fields, got {len(fields)}",
            file_path=str(path),
            line_number=line_number,
        )
    try:
        return [int(value) for value in fields]
    except ValueError:
        raise GraphFormatError(
            f"Non-integer field in {fields}", file_path=str(path), line_number=line_number
        )


def read_graph(path: Union[str, Path]) -> EvidenceGraph:
    """
    Read an evidence graph written by write_graph.

    Raises:
        FileNotFoundError: If the file does not exist
        GraphFormatError: If the file is malformed, repeats an edge, or has an
            edge that is not between adjacent layers
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Graph file not found: {path}")

    sections = _split_sections(path)

    attributes = {fields[0]: fields[1:] for _, fields in sections["@attributes"] if fields}
    if "n_layers" not in attributes or len(attributes["n_layers"]) != 1:
        raise GraphFormatError("Missing or malformed n_layers attribute", file_path=str(path))
    try:
        n_layers = int(attributes["n_layers"][0])
    except ValueError:
        raise GraphFormatError("n_layers is not an integer", file_path=str(path))

    nodes: Dict[int, Tuple[int, int]] = {}
    for line_number, fields in sections["@nodes"]:
        if fields == ["id", "layer", "label"]:
            continue
        node_id, layer, label = _to_ints(fields, 3, path, line_number)
        if label not in LABEL_INDEX or not 0 <= layer < n_layers:
            raise GraphFormatError(
                f"Node {node_id} has invalid layer/label ({layer}, {label})",
                file_path=str(path),
                line_number=line_number,
            )
        if node_id in nodes:
            raise GraphFormatError(
                f"Duplicate node id {node_id}", file_path=str(path), line_number=line_number
            )
        nodes[node_id] = (layer, label)

    edges = []
    seen_edges = set()
    for line_number, fields in sections["@edges"]:
        if fields == ["source", "target"]:
            continue
        source, target = _to_ints(fields, 2, path, line_number)
        if (source, target) in seen_edges:
            raise GraphFormatError(
                f"Duplicate edge ({source}, {target})", file_path=str(path), line_number=line_number
            )
        seen_edges.add((source, target))
        if source not in nodes or target not in nodes:
            raise GraphFormatError(
                f"Edge ({source}, {target}) references an unknown node",
                file_path=str(path),
                line_number=line_number,
            )
        (src_layer, src_label), (dst_layer, dst_label) = nodes[source], nodes[target]
        if dst_layer != src_layer + 1:
            raise GraphFormatError(
                f"Edge ({source}, {target}) does not join adjacent layers",
                file_path=str(path),
                line_number=line_number,
            )
        edges.append((src_layer, src_label, dst_label))

    try:
        graph = EvidenceGraph.from_edges(n_layers, edges)
    except ConfigurationError as e:
        raise GraphFormatError(f"Invalid graph in {path}: {e}", file_path=str(path))

    logger.debug(f"Read evidence graph ({graph.n_layers} layers, {graph.n_edges} edges) from {path}")
    return graph
