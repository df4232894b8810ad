"""
Tabular I/O for pairwise evidence and retained classes.

Evidence tables have one row per record with columns
dim_i, dim_j, label_i, label_j, supported. Class tables have one row per
class with columns dim_0 .. dim_{D-1}. Both are written as tab-separated
text (comma-separated when the path ends in .csv).
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np
import pandas as pd

from lcmix.evidence.types import LABELS, PairEvidence, PairwiseEvidenceStore
from lcmix.utils.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


EVIDENCE_COLUMNS = ["dim_i", "dim_j", "label_i", "label_j", "supported"]

_TRUE_STRINGS = {"true", "t", "yes", "1"}
_FALSE_STRINGS = {"false", "f", "no", "0"}


def _separator(path: Path) -> str:
    return "," if path.suffix.lower() == ".csv" else "\t"


def _parse_flag(value) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, np.integer)) and value in (0, 1):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ConfigurationError(f"Cannot interpret supported flag {value!r}")


# =============================================================================
# Pairwise Evidence
# =============================================================================

def read_pair_evidence(path: Union[str, Path]) -> PairwiseEvidenceStore:
    """
    Load pairwise evidence from a table.

    Args:
        path: Path to a .tsv/.txt (tab) or .csv (comma) file

    Returns:
        PairwiseEvidenceStore

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigurationError: If columns are missing or values invalid
        EvidenceError: If a record is duplicated or a label invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Evidence table not found: {path}")

    df = pd.read_csv(path, sep=_separator(path))
    missing = [c for c in EVIDENCE_COLUMNS if c not in df.columns]
    if missing:
        raise ConfigurationError(f"Evidence table {path} is missing columns: {missing}")

    store = PairwiseEvidenceStore()
    for (dim_i, dim_j), group in df.groupby(["dim_i", "dim_j"], sort=True):
        records = [
            (int(row.label_i), int(row.label_j), _parse_flag(row.supported))
            for row in group.itertuples(index=False)
        ]
        store.add(PairEvidence.from_records(int(dim_i), int(dim_j), records))

    logger.info(f"Loaded evidence for {len(store)} dimension pairs from {path}")
    return store


def write_pair_evidence(store: PairwiseEvidenceStore, path: Union[str, Path]) -> Path:
    """Write pairwise evidence as a table, one row per record."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    rows = [
        {"dim_i": ev.dim_i, "dim_j": ev.dim_j, "label_i": a, "label_j": b, "supported": flag}
        for ev in store
        for a, b, flag in ev.records()
    ]
    pd.DataFrame(rows, columns=EVIDENCE_COLUMNS).to_csv(path, sep=_separator(path), index=False)

    logger.info(f"Wrote {len(rows)} evidence records to {path}")
    return path


# =============================================================================
# Class Tables
# =============================================================================

def write_classes(classes: np.ndarray, path: Union[str, Path]) -> Path:
    """
    Write a class matrix, one row per class.

    Row order is preserved; row m is cluster id m + 1.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    classes = np.asarray(classes, dtype=np.int8)
    if classes.ndim != 2:
        raise ConfigurationError(f"Class matrix must be 2-D, got shape {classes.shape}")
    columns = [f"dim_{d}" for d in range(classes.shape[1])]
    pd.DataFrame(classes, columns=columns).to_csv(path, sep=_separator(path), index=False)

    logger.info(f"Wrote {classes.shape[0]} classes to {path}")
    return path


def read_classes(path: Union[str, Path]) -> np.ndarray:
    """
    Read a class matrix written by write_classes.

    Returns:
        int8 array of shape (M, D)

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigurationError: If values fall outside {-1, 0, 1}
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Class table not found: {path}")

    df = pd.read_csv(path, sep=_separator(path))
    values = df.to_numpy()
    if values.size and not np.all(np.isin(values, LABELS)):
        raise ConfigurationError(f"Class table {path} holds labels outside {LABELS}")
    return values.astype(np.int8).reshape(len(df), len(df.columns))
