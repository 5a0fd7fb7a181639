"""
Chebyshev polynomial evaluation.
"""

import numpy as np

from .errors import InvalidArgument


def chebyshev_vandermonde(n: int, x: np.ndarray) -> np.ndarray:
    """
    Evaluate the Chebyshev polynomials T_0, ..., T_n at the points x.

    Uses the three-term recurrence T_k = 2x T_{k-1} - T_{k-2}, which stays
    accurate for large n where the closed forms do not.

    Args:
        n: Highest degree to evaluate (n >= 0)
        x: 1D array of evaluation points, nominally in [-1, 1]

    Returns:
        Array of shape (len(x), n + 1); column k holds T_k(x)
    """
    if n < 0:
        raise InvalidArgument(f"degree bound must be non-negative, got {n}")

    x = np.asarray(x)
    if x.ndim != 1:
        raise InvalidArgument(f"evaluation points must be 1D, got shape {x.shape}")
    dtype = x.dtype if np.issubdtype(x.dtype, np.floating) else np.float64

    tcheb = np.empty((x.shape[0], n + 1), dtype=dtype)
    tcheb[:, 0] = 1.0
    if n > 0:
        tcheb[:, 1] = x

    two_x = 2 * x
    for k in range(2, n + 1):
        tcheb[:, k] = two_x * tcheb[:, k - 1] - tcheb[:, k - 2]
    return tcheb
