"""
lrnufft: fast nonuniform discrete Fourier transforms via low-rank kernels.

this package evaluates sums of the form sum_k c_k exp(-2*pi*i*x_j*k) at
nonuniform points in O(K N log N) time. the dense exponential kernel is
replaced by a rank-K Chebyshev expansion whose coefficients are products of
Bessel functions, and the remaining work is done with uniform FFTs through a
cached pyFFTW backend.

Basic usage:
    import numpy as np
    import lrnufft

    x = np.sort(np.random.random(1000))
    c = np.random.random(1000)

    # Build once, apply many times
    plan = lrnufft.build_nufft1(x, 1e-12)
    f = plan.apply(c)

    # Or in one shot
    f = lrnufft.nufft1(c, x, 1e-12)

Advanced usage:
    # Use a plan with SciPy's iterative solvers
    from scipy.sparse.linalg import lsqr
    op = lrnufft.aslinearoperator(plan)
    c_rec = lsqr(op, f)[0]
"""

import os
import copy
import logging


__version__ = '0.1.0'
# Import core functionality
from . import core, bessel
from .core import (
    # FFT backend
    SmartFFT,
    import_wisdom, export_wisdom,
    set_num_threads, set_planner_effort,
)

from .errors import (
    LRNUFFTError, DimensionMismatch, InvalidArgument, NumericalFailure
)

from .chebyshev import chebyshev_vandermonde
from .bessel import bessel_coeffs
from .planning import (
    AlgorithmicParameters, find_algorithmic_parameters, find_rank
)
from .lowrank import construct_ak
from . import plan as _plan
from .plan import (
    NUFFT1Plan, NUFFT2Plan,
    build_nufft1, build_nufft2, nufft_plan,
    nufft, nufft1, nufft2,
    nudft1, nudft2,
)
from .interface import aslinearoperator

# Define package-level constants (planning efforts)
PLANNER_ESTIMATE = 'FFTW_ESTIMATE'
PLANNER_MEASURE = 'FFTW_MEASURE'
PLANNER_PATIENT = 'FFTW_PATIENT'
PLANNER_EXHAUSTIVE = 'FFTW_EXHAUSTIVE'

logger = logging.getLogger("lrnufft")

# Configuration system
_config = {
    # Default configuration
    'cache': {
        'max_size': 1000,
        'timeout': 300,  # seconds
    },
    'planning': {
        'default_strategy': 'FFTW_ESTIMATE',
        'min_repeat_for_upgrade': 5,
    },
    'threading': {
        'default_threads': min(os.cpu_count() or 1, 4),
        'small_threshold': 262144,
        'large_threshold': 2097152,
        'medium_max_threads': 2,
    },
    'fallback': {
        'use_numpy_for_non_power_of_two': True,
    },
    'wisdom': {
        'save_on_exit': False,
    },
    'bessel': {
        'cache_size': 128,
    },
    'nufft': {
        'default_epsilon': 1e-12,
    },
    'logging': {
        'level': 'WARNING',
    }
}


def _update_nested_dict(d, u):
    """Update nested dictionary recursively."""
    for k, v in u.items():
        if isinstance(v, dict) and k in d and isinstance(d[k], dict):
            _update_nested_dict(d[k], v)
        else:
            d[k] = v


def configure(config_dict=None, **kwargs):
    """
    Configure lrnufft global settings.

    Args:
        config_dict: Dictionary with configuration settings
        **kwargs: Configuration settings as keyword arguments

    Examples:
        # Configure with a dictionary
        lrnufft.configure({
            'nufft': {'default_epsilon': 1e-8},
            'threading': {'default_threads': 8}
        })

        # Or with keyword arguments
        lrnufft.configure(
            nufft_default_epsilon=1e-8,
            threading_default_threads=8
        )
    """
    updated = copy.deepcopy(_config)
    if config_dict:
        _update_nested_dict(updated, config_dict)

    # Process kwargs (flattened config)
    for key, value in kwargs.items():
        section, _, name = key.partition('_')
        if section in updated and name in updated[section]:
            updated[section][name] = value
        else:
            logger.warning(f"Ignoring unknown configuration key: {key}")

    # nothing is applied unless every setting is valid
    _validate_configuration(updated)
    _config.update(updated)
    _apply_configuration()

    return {section: dict(values) for section, values in _config.items()}


def _validate_configuration(config):
    """Reject planner and logging level values that would only fail later."""
    planner = config['planning']['default_strategy']
    if planner not in core.VALID_PLANNERS:
        raise InvalidArgument(f"Invalid planner: {planner}")

    level = config['logging']['level']
    if not isinstance(logging.getLevelName(str(level).upper()), int):
        raise InvalidArgument(f"Invalid logging level: {level}")


def _parse_env_value(value):
    """Convert an environment variable string to bool, int or float where possible."""
    lowered = value.lower()
    if lowered in ('true', 'yes', 'on'):
        return True
    if lowered in ('false', 'no', 'off'):
        return False
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            pass
    return value


def _load_env_config():
    """Load configuration from environment variables."""
    prefix = "LRNUFFT_"
    settings = {}
    for key, value in os.environ.items():
        if key.startswith(prefix):
            settings[key[len(prefix):].lower()] = _parse_env_value(value)
    if settings:
        configure(**settings)


def _apply_configuration():
    """Apply configuration settings to module components."""
    core.MAX_CACHE_SIZE = _config['cache']['max_size']
    core.DEFAULT_CACHE_TIMEOUT = _config['cache']['timeout']

    core.DEFAULT_PLANNER = _config['planning']['default_strategy']
    core.MIN_REPEAT_FOR_MEASURE = _config['planning']['min_repeat_for_upgrade']

    core.DEFAULT_THREADS = _config['threading']['default_threads']
    core.THREADING_SMALL_THRESHOLD = _config['threading']['small_threshold']
    core.THREADING_LARGE_THRESHOLD = _config['threading']['large_threshold']
    core.THREADING_MAX_MEDIUM = _config['threading']['medium_max_threads']

    core.USE_NUMPY_FOR_NON_POWER_OF_TWO = _config['fallback']['use_numpy_for_non_power_of_two']
    core.SAVE_WISDOM_ON_EXIT = _config['wisdom']['save_on_exit']

    bessel.MAX_CACHE_SIZE = _config['bessel']['cache_size']
    _plan.DEFAULT_EPSILON = _config['nufft']['default_epsilon']

    # Configure logging
    logging.getLogger("lrnufft").setLevel(logging.getLevelName(str(_config["logging"]["level"]).upper()))


# Initialize logging
def _setup_logging():
    """Set up default logging configuration."""
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(getattr(logging, _config['logging']['level']))
        # Don't propagate to root logger
        logger.propagate = False


_setup_logging()
_load_env_config()


def get_stats():
    """
    Get statistics about the FFT plan cache and the Bessel coefficient cache.

    Returns:
        Dict with the FFT backend counters plus a 'bessel' sub-dictionary
    """
    stats = core.get_stats()
    stats['bessel'] = bessel.get_stats()
    return stats


def clear_cache(older_than=None):
    """
    Clear cached FFT plans and Bessel coefficient matrices.

    Args:
        older_than: Only drop FFT plans unused for this many seconds
            (None = clear everything, including the Bessel cache)
    """
    core.clear_cache(older_than)
    if older_than is None:
        bessel.clear_cache()
