"""
Configuration hashing utilities for lcmix.

Used to stamp chain archives with the configuration that produced them.
"""

import hashlib
import json
from typing import Any, Dict, Union


def hash_config(config: Dict[str, Any], prefix: str = "sha256") -> str:
    """
    Produce deterministic hash of a configuration dictionary.

    Args:
        config: Configuration dictionary to hash
        prefix: Hash prefix (default: "sha256")

    Returns:
        Hash string in format "prefix:hash_value"

    Example:
        >>> hash_config({"nstep": 1000, "target_acceptance": 0.3})
        'sha256:...'
    """
    # Sort keys for determinism
    serialized = json.dumps(config, sort_keys=True, separators=(",", ":"), default=str)
    hash_value = hashlib.sha256(serialized.encode()).hexdigest()[:16]
    return f"{prefix}:{hash_value}"


def verify_hash(config: Dict[str, Any], expected_hash: Union[str, bytes]) -> bool:
    """
    Verify that a config matches a hash stored in an archive attribute.

    h5py may return string attributes as bytes; both forms are accepted.
    """
    if isinstance(expected_hash, bytes):
        expected_hash = expected_hash.decode()
    return hash_config(config) == expected_hash
