"""
HDF5 archive for sampler chains.

One .h5 file per run:

    /retained_classes   (M, D)            int8
    /means              (M, nstep+1, D)   float64
    /covariances        (M, D, D, nstep+1) float64
    /weights            (M, nstep+1)      float64
    /assignments        (n, nstep+1)      int32, values 1..M
    /acceptance         (M, nstep+1)      int8
    /tuning_df          (M, nstep+1)      float64

Root attributes record the package version, creation time, run dimensions
and a hash of the configuration. Archives are written to a temporary file
and renamed on success, so a failed write never leaves a partial archive.
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

import h5py
import numpy as np

from lcmix import __version__
from lcmix.mcmc.results import SamplerResult
from lcmix.utils.hashing import hash_config, verify_hash


logger = logging.getLogger(__name__)


_DATASETS = {
    "retained_classes": "retained_classes",
    "means": "mean_chains",
    "covariances": "covariance_chains",
    "weights": "weight_chain",
    "assignments": "assignment_chain",
    "acceptance": "acceptance_chain",
    "tuning_df": "tuning_df_chain",
}


def write_chains(
    result: SamplerResult,
    hdf5_path: Union[str, Path],
    config: Optional[Dict[str, Any]] = None,
    overwrite: bool = False,
) -> Path:
    """
    Write sampler chains to an HDF5 archive.

    Args:
        result: Chains to write
        hdf5_path: Path for the archive (should end with .h5)
        config: Configuration used for the run, hashed into the attributes
        overwrite: If True, replace an existing archive

    Returns:
        Path written

    Raises:
        FileExistsError: If the file exists and overwrite=False
    """
    hdf5_path = Path(hdf5_path)

    if hdf5_path.suffix.lower() not in (".h5", ".hdf5"):
        logger.warning(f"HDF5 file has non-standard extension: {hdf5_path.suffix}")

    if hdf5_path.exists() and not overwrite:
        raise FileExistsError(f"HDF5 file already exists: {hdf5_path}")

    hdf5_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = hdf5_path.with_name(hdf5_path.name + ".partial")

    try:
        with h5py.File(str(tmp_path), mode="w") as root:
            root.attrs["lcmix_version"] = __version__
            root.attrs["created_at"] = datetime.now(timezone.utc).isoformat()
            root.attrs["nstep"] = result.nstep
            root.attrs["n_clusters"] = result.n_clusters
            root.attrs["n_observations"] = result.n_observations
            root.attrs["n_dims"] = result.n_dims
            root.attrs["config_hash"] = hash_config(config or {})

            for name, attr in _DATASETS.items():
                data = getattr(result, attr)
                root.create_dataset(name, data=data, dtype=data.dtype, compression="gzip")
        os.replace(tmp_path, hdf5_path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    logger.info(
        f"Wrote chains ({result.n_clusters} clusters, {result.nstep + 1} iterations) to {hdf5_path}"
    )
    return hdf5_path


def read_chains(hdf5_path: Union[str, Path]) -> SamplerResult:
    """
    Read an archive written by write_chains.

    Raises:
        FileNotFoundError: If the file does not exist
        KeyError: If a required dataset is missing
    """
    hdf5_path = Path(hdf5_path)
    if not hdf5_path.exists():
        raise FileNotFoundError(f"HDF5 file not found: {hdf5_path}")

    with h5py.File(str(hdf5_path), mode="r") as root:
        missing = [name for name in _DATASETS if name not in root]
        if missing:
            raise KeyError(f"Chain archive {hdf5_path} is missing datasets: {missing}")
        arrays = {attr: np.asarray(root[name][()]) for name, attr in _DATASETS.items()}

    return SamplerResult(**arrays)


def read_chain_attributes(hdf5_path: Union[str, Path]) -> Dict[str, Any]:
    """Root attributes of a chain archive."""
    with h5py.File(str(hdf5_path), mode="r") as root:
        return {key: root.attrs[key] for key in root.attrs}


def chains_match_config(hdf5_path: Union[str, Path], config: Dict[str, Any]) -> bool:
    """True if the archive was produced with this configuration."""
    return verify_hash(config, read_chain_attributes(hdf5_path).get("config_hash", ""))
