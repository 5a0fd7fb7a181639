"""
NUFFT plans.

a plan is built once for a set of nonuniform points and a target accuracy,
then applied to as many coefficient vectors as needed. building a plan costs
one low-rank factorisation of the kernel; applying it costs K FFTs of length
N plus O(N*K) elementwise work.

Basic usage:
    import numpy as np
    import lrnufft

    x = np.sort(np.random.random(1024))
    plan = lrnufft.build_nufft1(x, 1e-10)
    f = plan.apply(c)  # f[j] ~ sum_k c[k] exp(-2j*pi*x[j]*k)
"""

import logging
import numpy as np
from typing import Optional, Tuple

from . import core
from .errors import DimensionMismatch
from .lowrank import construct_ak
from .planning import as_points, find_algorithmic_parameters, find_rank, validate_epsilon

logger = logging.getLogger("lrnufft.plan")

DEFAULT_EPSILON = 1e-12


def _readonly(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


def _as_coefficients(c, n: int) -> np.ndarray:
    c = np.asarray(c)
    if c.ndim != 1:
        raise DimensionMismatch(f"coefficients must be a 1D vector, got shape {c.shape}")
    if c.shape[0] != n:
        raise DimensionMismatch(f"plan was built for {n} points, got {c.shape[0]} coefficients")
    return c.astype(np.complex128, copy=False)


def _factorize(x: np.ndarray, epsilon: Optional[float]):
    """Parameters, rank and low-rank factors shared by both plan types."""
    epsilon = validate_epsilon(DEFAULT_EPSILON if epsilon is None else epsilon)
    params = find_algorithmic_parameters(x)
    rank = find_rank(params.gamma, epsilon)
    u, v = construct_ak(x, rank, params)
    logger.debug(f"Factorized kernel: n={x.shape[0]}, gamma={params.gamma:.6g}, "
                 f"epsilon={epsilon:.1e}, rank={rank}")
    return params, rank, u, v, epsilon


class NUFFT1Plan:
    """
    Type-1 plan: f[j] = sum_k c[k] exp(-2*pi*i*x[j]*k), k = 0..N-1.

    The captured factors are read-only; the plan can be applied from
    several threads at once.
    """

    def __init__(self, points: np.ndarray, u: np.ndarray, v: np.ndarray,
                 target_index: np.ndarray, gamma: float, epsilon: float):
        self._points = _readonly(points)
        self._u = _readonly(u)
        self._v = _readonly(v)
        self._target_index = _readonly(target_index)
        self._gamma = gamma
        self._epsilon = epsilon

    @property
    def n(self) -> int:
        return self._points.shape[0]

    @property
    def rank(self) -> int:
        return self._u.shape[1]

    @property
    def gamma(self) -> float:
        return self._gamma

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.n, self.n)

    @property
    def dtype(self):
        return np.dtype(np.complex128)

    @property
    def points(self) -> np.ndarray:
        return self._points

    @property
    def target_index(self) -> np.ndarray:
        return self._target_index

    @property
    def factors(self) -> Tuple[np.ndarray, np.ndarray]:
        return self._u, self._v

    def apply(self, c) -> np.ndarray:
        """
        Apply the transform to a coefficient vector of length N.

        Scales the columns of v by c, transforms each column with an FFT,
        gathers the rows at the target indices, weights them by u and sums
        the K columns.
        """
        c = _as_coefficients(c, self.n)
        block = core.fft(c[:, None] * self._v, axis=0)
        return (self._u * block[self._target_index, :]) @ np.ones(self.rank)

    __call__ = apply

    def transpose(self) -> "NUFFT2Plan":
        """Type-2 plan for the frequencies N*x, sharing this plan's factors."""
        return NUFFT2Plan(_readonly(self.n * self._points), self._u, self._v,
                          self._target_index, self._gamma, self._epsilon)

    def apply_adjoint(self, d) -> np.ndarray:
        """Apply the conjugate transpose: g[k] = sum_j d[j] exp(2*pi*i*x[j]*k)."""
        d = _as_coefficients(d, self.n)
        return np.conj(self.transpose().apply(np.conj(d)))

    def __repr__(self):
        return (f"NUFFT1Plan(n={self.n}, rank={self.rank}, "
                f"gamma={self._gamma:.3g}, epsilon={self._epsilon:.1e})")


class NUFFT2Plan:
    """
    Type-2 plan: f[k] = sum_j c[j] exp(-2*pi*i*k*w[j]/N), k = 0..N-1.

    Reuses the type-1 factorisation of the points w/N with the roles of u
    and v exchanged and the FFT replaced by a conjugated inverse FFT.
    """

    def __init__(self, frequencies: np.ndarray, u: np.ndarray, v: np.ndarray,
                 target_index: np.ndarray, gamma: float, epsilon: float):
        self._frequencies = _readonly(frequencies)
        self._u = _readonly(u)
        self._v = _readonly(v)
        self._target_index = _readonly(target_index)
        self._gamma = gamma
        self._epsilon = epsilon

    @property
    def n(self) -> int:
        return self._frequencies.shape[0]

    @property
    def rank(self) -> int:
        return self._u.shape[1]

    @property
    def gamma(self) -> float:
        return self._gamma

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.n, self.n)

    @property
    def dtype(self):
        return np.dtype(np.complex128)

    @property
    def frequencies(self) -> np.ndarray:
        return self._frequencies

    @property
    def target_index(self) -> np.ndarray:
        return self._target_index

    @property
    def factors(self) -> Tuple[np.ndarray, np.ndarray]:
        return self._u, self._v

    def apply(self, c) -> np.ndarray:
        """
        Apply the transform to a coefficient vector of length N.

        Scatters the rows of conj(diag(c) u) to their target indices
        (repeated indices accumulate), inverse transforms each column, and
        weights the conjugated result by v before summing the K columns.
        """
        n = self.n
        c = _as_coefficients(c, n)
        scattered = np.zeros((n, self.rank), dtype=np.complex128)
        np.add.at(scattered, self._target_index, np.conj(c[:, None] * self._u))
        block = n * np.conj(core.ifft(scattered, axis=0))
        return (self._v * block) @ np.ones(self.rank)

    __call__ = apply

    def transpose(self) -> NUFFT1Plan:
        """Type-1 plan for the points w/N, sharing this plan's factors."""
        return NUFFT1Plan(_readonly(self._frequencies / self.n), self._u, self._v,
                          self._target_index, self._gamma, self._epsilon)

    def apply_adjoint(self, d) -> np.ndarray:
        """Apply the conjugate transpose: g[j] = sum_k d[k] exp(2*pi*i*k*w[j]/N)."""
        d = _as_coefficients(d, self.n)
        return np.conj(self.transpose().apply(np.conj(d)))

    def __repr__(self):
        return (f"NUFFT2Plan(n={self.n}, rank={self.rank}, "
                f"gamma={self._gamma:.3g}, epsilon={self._epsilon:.1e})")


def build_nufft1(points, epsilon: Optional[float] = None) -> NUFFT1Plan:
    """
    Build a type-1 plan for the nonuniform points x.

    Args:
        points: 1D array of N real points, nominally in [0, 1)
        epsilon: Target accuracy in (0, 1) (None = configured default)

    Returns:
        NUFFT1Plan
    """
    x = as_points(points, "points")
    params, rank, u, v, epsilon = _factorize(x, epsilon)
    return NUFFT1Plan(x.copy(), u, v, params.target_index, params.gamma, epsilon)


def build_nufft2(frequencies, epsilon: Optional[float] = None) -> NUFFT2Plan:
    """
    Build a type-2 plan for the nonuniform frequencies w.

    Args:
        frequencies: 1D array of N real frequencies, nominally in [0, N)
        epsilon: Target accuracy in (0, 1) (None = configured default)

    Returns:
        NUFFT2Plan
    """
    omega = as_points(frequencies, "frequencies")
    params, rank, u, v, epsilon = _factorize(omega / omega.shape[0], epsilon)
    return NUFFT2Plan(omega.copy(), u, v, params.target_index, params.gamma, epsilon)


def nufft_plan(points, epsilon: Optional[float] = None) -> NUFFT1Plan:
    """Alias of build_nufft1."""
    return build_nufft1(points, epsilon)


def nufft1(c, points, epsilon: Optional[float] = None) -> np.ndarray:
    """One-shot type-1 transform of c at the points x."""
    return build_nufft1(points, epsilon).apply(c)


def nufft2(c, frequencies, epsilon: Optional[float] = None) -> np.ndarray:
    """One-shot type-2 transform of c at the frequencies w."""
    return build_nufft2(frequencies, epsilon).apply(c)


def nufft(c, points, epsilon: Optional[float] = None) -> np.ndarray:
    """One-shot transform; same as nufft1."""
    return nufft1(c, points, epsilon)


def nudft1(c, points) -> np.ndarray:
    """Direct O(N^2) evaluation of the type-1 sum, for validation."""
    x = as_points(points, "points")
    n = x.shape[0]
    c = _as_coefficients(c, n)
    return np.exp(-2j * np.pi * np.outer(x, np.arange(n))) @ c


def nudft2(c, frequencies) -> np.ndarray:
    """Direct O(N^2) evaluation of the type-2 sum, for validation."""
    omega = as_points(frequencies, "frequencies")
    n = omega.shape[0]
    c = _as_coefficients(c, n)
    return np.exp(-2j * np.pi * np.outer(np.arange(n), omega) / n) @ c
