"""
I/O module for lcmix.

Handles:
    - Pairwise evidence and retained-class tables (pandas)
    - Evidence graph interchange files
    - HDF5 chain archives (h5py)
"""

from lcmix.io.tables import (
    read_pair_evidence,
    write_pair_evidence,
    read_classes,
    write_classes,
)
from lcmix.io.graph_file import read_graph, write_graph
from lcmix.io.chain_store import (
    write_chains,
    read_chains,
    read_chain_attributes,
    chains_match_config,
)

__all__ = [
    "read_pair_evidence",
    "write_pair_evidence",
    "read_classes",
    "write_classes",
    "read_graph",
    "write_graph",
    "write_chains",
    "read_chains",
    "read_chain_attributes",
    "chains_match_config",
]
