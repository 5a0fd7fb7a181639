"""
Chebyshev coefficients of the oscillatory NUFFT kernel.

the kernel exp(-2*pi*i*x*y) on [-gamma, gamma] x [0, 1] has a bivariate
Chebyshev expansion whose coefficients are products of Bessel functions of
the first kind. the coefficient matrix only depends on the rank and on gamma,
so it is memoized here.
"""

import logging
import threading
import numpy as np
from scipy.special import jv
from typing import Dict, Tuple

from .errors import InvalidArgument, NumericalFailure

logger = logging.getLogger("lrnufft.bessel")

MAX_CACHE_SIZE = 128

_coeff_cache: Dict[Tuple[int, float], np.ndarray] = {}
_cache_lock = threading.Lock()
_cache_hits = 0
_cache_misses = 0


def _compute_bessel_coeffs(K: int, gamma: float) -> np.ndarray:
    cfs = np.zeros((K, K), dtype=np.complex128)
    arg = -gamma * np.pi / 2.0
    for p in range(K):
        # only entries with q - p even are nonzero
        q = np.arange(p % 2, K, 2)
        cfs[p, q] = 4.0 * (1j ** q) * jv((p + q) / 2, arg) * jv((q - p) / 2, arg)
    cfs[0, :] /= 2.0
    cfs[:, 0] /= 2.0
    return cfs


def bessel_coeffs(K: int, gamma: float) -> np.ndarray:
    """
    Chebyshev coefficient matrix of exp(-2*pi*i*x*y) over [-gamma, gamma] x [0, 1].

    Entry (p, q) is 4 i^q J_{(p+q)/2}(-gamma*pi/2) J_{(q-p)/2}(-gamma*pi/2)
    when q - p is even and zero otherwise, with row 0 and column 0 halved.

    Args:
        K: Rank of the expansion (K >= 1)
        gamma: Half-width of the residual interval (gamma >= 0)

    Returns:
        Read-only complex array of shape (K, K). Do not modify it; copy first.
    """
    global _cache_hits, _cache_misses

    K = int(K)
    gamma = float(gamma)
    if K < 1:
        raise InvalidArgument(f"rank must be at least 1, got {K}")
    if not np.isfinite(gamma) or gamma < 0:
        raise InvalidArgument(f"gamma must be finite and non-negative, got {gamma}")

    key = (K, gamma)
    with _cache_lock:
        cached = _coeff_cache.get(key)
        if cached is not None:
            _cache_hits += 1
            return cached
        _cache_misses += 1

    cfs = _compute_bessel_coeffs(K, gamma)
    if not np.all(np.isfinite(cfs)):
        raise NumericalFailure(f"Bessel coefficients are not finite for K={K}, gamma={gamma}")
    cfs.setflags(write=False)

    with _cache_lock:
        if MAX_CACHE_SIZE > 0:
            while len(_coeff_cache) >= MAX_CACHE_SIZE:
                # evict oldest entry, dicts keep insertion order
                _coeff_cache.pop(next(iter(_coeff_cache)))
            _coeff_cache.setdefault(key, cfs)
    logger.debug(f"Computed {K}x{K} Bessel coefficients for gamma={gamma:.6g}")
    return cfs


def clear_cache():
    """Drop all memoized coefficient matrices."""
    global _cache_hits, _cache_misses
    with _cache_lock:
        _coeff_cache.clear()
        _cache_hits = 0
        _cache_misses = 0


def get_stats() -> Dict[str, int]:
    """Size and hit counters of the coefficient cache."""
    with _cache_lock:
        return {
            'cached_matrices': len(_coeff_cache),
            'cache_hits': _cache_hits,
            'cache_misses': _cache_misses,
        }
