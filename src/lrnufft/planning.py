"""
Planning for the low-rank NUFFT.

this module extracts the algorithmic parameters of a set of nonuniform
points and picks the rank of the kernel approximation needed to reach a
requested accuracy. both are computed once per plan.
"""

import logging
import numpy as np
from scipy.special import lambertw
from typing import NamedTuple

from .errors import InvalidArgument, NumericalFailure

logger = logging.getLogger("lrnufft.planning")

# constants of the asymptotic rank bound
RANK_SCALE = 5.0
RANK_LOG_DIVISOR = 7.0
ACCURACY_NUMERATOR = 10.0


class AlgorithmicParameters(NamedTuple):
    """
    Per-point-set quantities driving the transform.

    anchor is the nearest grid node round(N*x), target_index the 0-based
    FFT output row each point reads from, and gamma the largest distance of
    N*x from its anchor.
    """
    anchor: np.ndarray
    target_index: np.ndarray
    gamma: float


def as_points(x, name: str = "points") -> np.ndarray:
    """Validate a vector of sample points and return it as float64."""
    x = np.asarray(x)
    if x.ndim != 1:
        raise InvalidArgument(f"{name} must be a 1D array, got shape {x.shape}")
    if x.shape[0] == 0:
        raise InvalidArgument(f"{name} must not be empty")
    if np.iscomplexobj(x):
        raise InvalidArgument(f"{name} must be real, got dtype {x.dtype}")
    x = x.astype(np.float64, copy=False)
    if not np.all(np.isfinite(x)):
        raise InvalidArgument(f"{name} must be finite")
    return x


def validate_epsilon(epsilon: float) -> float:
    """Check the requested accuracy lies in the open interval (0, 1)."""
    try:
        epsilon = float(epsilon)
    except (TypeError, ValueError):
        raise InvalidArgument(f"accuracy must be a real number, got {epsilon!r}") from None
    if not (0.0 < epsilon < 1.0):
        raise InvalidArgument(f"accuracy must lie in (0, 1), got {epsilon}")
    return epsilon


def find_algorithmic_parameters(x) -> AlgorithmicParameters:
    """
    Compute grid anchors, gather indices and gamma for the points x.

    Args:
        x: 1D array of N real points, nominally in [0, 1)

    Returns:
        AlgorithmicParameters with anchor = round(N*x),
        target_index = round(N*x) mod N and gamma = max |N*x - anchor|
    """
    x = as_points(x)
    n = x.shape[0]
    nx = n * x
    anchor = np.rint(nx)
    target_index = np.mod(anchor.astype(np.int64), n)
    gamma = float(np.max(np.abs(nx - anchor)))
    return AlgorithmicParameters(anchor, target_index, gamma)


def find_rank(gamma: float, epsilon: float) -> int:
    """
    Number of Chebyshev terms needed to reach accuracy epsilon.

    K = ceil(5 gamma exp(W(ln(10/epsilon) / (7 gamma)))) with W the
    principal branch of the Lambert W function. Points sitting exactly on
    the grid (gamma == 0) make the kernel a permutation, so K = 1.

    Args:
        gamma: Largest scaled deviation from the grid (>= 0)
        epsilon: Target accuracy in (0, 1)

    Returns:
        Rank K >= 1
    """
    epsilon = validate_epsilon(epsilon)
    gamma = float(gamma)
    if not np.isfinite(gamma) or gamma < 0:
        raise InvalidArgument(f"gamma must be finite and non-negative, got {gamma}")
    if gamma == 0.0:
        return 1

    z = np.log(ACCURACY_NUMERATOR / epsilon) / gamma / RANK_LOG_DIVISOR
    w = lambertw(z, k=0)
    if not np.isfinite(w):
        raise NumericalFailure(f"Lambert W did not converge for argument {z}")
    rank = RANK_SCALE * gamma * np.exp(w.real)
    if not np.isfinite(rank):
        raise NumericalFailure(f"rank estimate overflowed for gamma={gamma}, epsilon={epsilon}")
    return max(1, int(np.ceil(rank)))
