"""
Exception types raised by lrnufft.

every error raised on purpose by the package derives from LRNUFFTError, and
also from the closest builtin so callers catching ValueError keep working.
"""


class LRNUFFTError(Exception):
    """Base class for all lrnufft errors."""


class DimensionMismatch(LRNUFFTError, ValueError):
    """An input vector does not match the size a plan was built for."""


class InvalidArgument(LRNUFFTError, ValueError):
    """An argument is outside the domain the algorithm is defined on."""


class NumericalFailure(LRNUFFTError, ArithmeticError):
    """A special function evaluation produced non-finite values."""
