"""
Low-rank factorisation of the NUFFT kernel.
"""

import logging
import numpy as np
from typing import Optional, Tuple

from .bessel import bessel_coeffs
from .chebyshev import chebyshev_vandermonde
from .errors import InvalidArgument, NumericalFailure
from .planning import AlgorithmicParameters, as_points, find_algorithmic_parameters

logger = logging.getLogger("lrnufft.lowrank")


def construct_ak(x, K: int,
                 params: Optional[AlgorithmicParameters] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build rank-K factors (u, v) with u @ v.T ~ exp(-2*pi*i*(x_j - anchor_j/N)*k).

    u carries the point dependence: the residuals er = N*x - anchor are
    mapped to [-1, 1] by dividing by gamma, expanded in Chebyshev
    polynomials and projected onto the kernel's Bessel coefficients, after
    the phase exp(-i*pi*er). v is the Chebyshev basis on the uniform grid
    2k/N - 1.

    Args:
        x: 1D array of N real points
        K: Rank of the approximation
        params: Parameters of x from find_algorithmic_parameters, if the
            caller already has them

    Returns:
        (u, v): complex (N, K) column-space factor and real (N, K)
        row-space factor
    """
    x = as_points(x)
    K = int(K)
    if K < 1:
        raise InvalidArgument(f"rank must be at least 1, got {K}")
    if params is None:
        params = find_algorithmic_parameters(x)

    n = x.shape[0]
    gamma = params.gamma
    er = n * x - params.anchor

    if gamma > 0:
        scaled = er / gamma
    else:
        # every residual is zero and only T_0 is used
        scaled = np.zeros_like(er)

    cfs = bessel_coeffs(K, gamma)
    u = np.exp(-1j * np.pi * er)[:, None] * (chebyshev_vandermonde(K - 1, scaled) @ cfs)
    v = chebyshev_vandermonde(K - 1, 2.0 * np.arange(n) / n - 1.0)

    if not np.all(np.isfinite(u)):
        raise NumericalFailure(f"low-rank factor is not finite for K={K}, gamma={gamma}")
    logger.debug(f"Built rank-{K} factors for {n} points (gamma={gamma:.6g})")
    return u, v
