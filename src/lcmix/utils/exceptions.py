"""
Exception hierarchy for lcmix.

All custom exceptions inherit from LCMixError.
"""

from typing import List, Optional, Tuple


class LCMixError(Exception):
    """
    Base exception for all lcmix errors.

    All custom exceptions MUST inherit from this class.
    """
    pass


class ConfigurationError(LCMixError):
    """
    Invalid configuration, parameters or inputs.

    Raised before any work begins when:
    - No observations (n = 0) or no retained classes (M = 0) reach the sampler
    - nstep is negative
    - Observation, class and hyperparameter shapes disagree
    - Config file not found or malformed
    """
    pass


class EvidenceError(ConfigurationError):
    """
    Malformed pairwise evidence.

    Raised when:
    - A label outside {-1, 0, 1} appears in an evidence record
    - The same label pair is recorded twice for one dimension pair
    - A record pairs a dimension with itself
    """

    def __init__(
        self,
        message: str,
        dim_pair: Optional[Tuple[int, int]] = None,
    ):
        super().__init__(message)
        self.dim_pair = dim_pair


class MissingEvidenceError(ConfigurationError):
    """
    Evidence is missing for one or more adjacent dimension pairs.

    The evidence graph needs a record set for every (d, d+1) boundary.
    """

    def __init__(
        self,
        message: str,
        missing_pairs: Optional[List[Tuple[int, int]]] = None,
    ):
        super().__init__(message)
        self.missing_pairs = missing_pairs or []


class ResourceExhaustionError(LCMixError):
    """
    An operator-configured resource cap was exceeded.

    Fatal for the run. Results are never silently truncated.
    """
    pass


class PathLimitExceededError(ResourceExhaustionError):
    """
    Path enumeration produced more candidates than max_paths allows.

    Attributes:
        n_paths: Number of paths emitted before the cap was hit
        limit: The configured cap
    """

    def __init__(
        self,
        message: str,
        n_paths: int = 0,
        limit: Optional[int] = None,
    ):
        super().__init__(message)
        self.n_paths = n_paths
        self.limit = limit


class NumericalRejection(LCMixError):
    """
    A proposed state cannot be evaluated.

    Raised when:
    - A proposed covariance is not symmetric positive-definite
    - The log target density is not finite

    Always caught by the covariance step and counted as a Metropolis rejection.
    """
    pass


class ConsistencyError(LCMixError):
    """
    Internal bookkeeping invariant violated.

    Raised when an assignment references a cluster id outside 1..M.
    Indicates a bug; never swallowed.
    """

    def __init__(
        self,
        message: str,
        bad_values: Optional[List[int]] = None,
    ):
        super().__init__(message)
        self.bad_values = bad_values or []


class SamplerCancelledError(LCMixError):
    """
    Sampling was cancelled at an iteration boundary.

    Attributes:
        iteration: Last completed iteration
        nstep: Requested number of iterations
    """

    def __init__(
        self,
        message: str,
        iteration: int = 0,
        nstep: int = 0,
    ):
        super().__init__(message)
        self.iteration = iteration
        self.nstep = nstep


class GraphFormatError(LCMixError):
    """
    Evidence graph file is malformed.

    Raised when:
    - A required section is missing
    - A node or edge line cannot be parsed
    - An edge skips or reverses layers
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        line_number: Optional[int] = None,
    ):
        super().__init__(message)
        self.file_path = file_path
        self.line_number = line_number
