"""
FFT backend used by the low-rank NUFFT plans.

this module wraps pyFFTW with plan caching, thread selection and progressive
planner upgrades. the NUFFT plans only ever transform the columns of tall
N x K matrices, so the wrapper is specialised to 1D transforms along one axis
of complex arrays.
"""

import os
import time
import atexit
import logging
import threading
import multiprocessing
import numpy as np
import psutil
import pyfftw
from typing import Dict, Tuple, Optional, Any, Callable

from .errors import InvalidArgument

logger = logging.getLogger("lrnufft.core")

# configuration constants with smart defaults
DEFAULT_THREADS = min(multiprocessing.cpu_count(), 4)
DEFAULT_PLANNER = 'FFTW_ESTIMATE'  # cheap planning, good for one-off plans
MEASURE_PLANNER = 'FFTW_MEASURE'  # thorough planning for repeated use
VALID_PLANNERS = ('FFTW_ESTIMATE', 'FFTW_MEASURE', 'FFTW_PATIENT', 'FFTW_EXHAUSTIVE')
DEFAULT_CACHE_TIMEOUT = 300  # seconds to keep unused plans in cache

MIN_REPEAT_FOR_MEASURE = 5  # trigger MEASURE planning after this many calls
AUTO_ALIGN = True
USE_NUMPY_FOR_NON_POWER_OF_TWO = True  # NumPy's pocketfft is usually faster there

# threading thresholds in number of elements of the whole N x K block
THREADING_SMALL_THRESHOLD = 262144
THREADING_LARGE_THRESHOLD = 2097152
THREADING_MAX_MEDIUM = 2
MAX_CACHE_SIZE = 1000

SAVE_WISDOM_ON_EXIT = False
WISDOM_FILE = os.path.expanduser("~/.lrnufft_wisdom")

_cache_lock = threading.RLock()
_physical_cores = None


def _physical_core_count() -> int:
    """Number of physical cores, queried once."""
    global _physical_cores
    if _physical_cores is None:
        _physical_cores = psutil.cpu_count(logical=False) or 1
    return _physical_cores


class SmartFFT:
    """
    Cached pyFFTW transforms along a single axis.

    plans are keyed on (transform, shape, dtype, axis, threads). a key that
    keeps being hit is re-planned with FFTW_MEASURE, which is the common case
    for a NUFFT plan applied many times to vectors of the same length.
    """
    _plan_cache: Dict[Tuple, Any] = {}
    _call_count: Dict[Tuple, int] = {}
    _last_used: Dict[Tuple, float] = {}
    _plan_quality: Dict[Tuple, str] = {}

    _performance_metrics = {
        'calls': 0,
        'cache_hits': 0,
        'cache_misses': 0,
        'plan_upgrades': 0,
        'numpy_fallbacks': 0,
        'execution_time': 0.0,
    }

    @classmethod
    def clear_cache(cls, older_than: Optional[float] = None):
        """
        Clear cached plans to free memory.

        Args:
            older_than: Clear plans unused for this many seconds (None = clear all)
        """
        with _cache_lock:
            if older_than is None:
                cls._plan_cache.clear()
                cls._call_count.clear()
                cls._last_used.clear()
                cls._plan_quality.clear()
                return

            now = time.time()
            stale = [key for key, last in cls._last_used.items() if now - last > older_than]
            for key in stale:
                for cache_dict in (cls._plan_cache, cls._call_count, cls._last_used, cls._plan_quality):
                    cache_dict.pop(key, None)
            if stale:
                logger.debug(f"Dropped {len(stale)} stale FFT plans")

    @classmethod
    def _get_cache_key(cls, array: np.ndarray, axis: int, transform_type: str,
                       threads: int) -> Tuple:
        """Generate a unique key for caching plans based on transform parameters."""
        return (transform_type, array.shape, array.dtype, axis, threads)

    @classmethod
    def _evict_least_recently_used(cls):
        """Drop the cached plan that has gone unused the longest."""
        oldest = min(cls._plan_cache, key=lambda k: cls._last_used.get(k, 0.0))
        for cache_dict in (cls._plan_cache, cls._call_count, cls._last_used, cls._plan_quality):
            cache_dict.pop(oldest, None)
        logger.debug(f"Evicted least recently used FFT plan {oldest}")

    @staticmethod
    def _is_non_power_of_two(n: int) -> bool:
        return n > 0 and (n & (n - 1)) != 0

    @classmethod
    def _select_threads(cls, array: np.ndarray) -> int:
        """
        Pick a thread count from the size of the block being transformed.

        small blocks stay single threaded because the threading overhead
        dominates; the largest ones use every physical core up to the default.
        """
        size = array.size
        if size < THREADING_SMALL_THRESHOLD:
            return 1
        if size < THREADING_LARGE_THRESHOLD:
            return max(1, min(DEFAULT_THREADS, THREADING_MAX_MEDIUM))
        return max(1, min(DEFAULT_THREADS, _physical_core_count()))

    @classmethod
    def _should_upgrade_plan(cls, key: Tuple) -> bool:
        # only ESTIMATE plans are worth re-planning
        if cls._plan_quality.get(key) != 'FFTW_ESTIMATE':
            return False
        return cls._call_count.get(key, 0) >= MIN_REPEAT_FOR_MEASURE

    @classmethod
    def _create_plan(cls, array: np.ndarray, builder_func: Callable,
                     axis: int = 0,
                     threads: Optional[int] = None,
                     planner: Optional[str] = None) -> Any:
        """Create a new FFTW plan with specified parameters."""
        if threads is None:
            threads = cls._select_threads(array)
        if planner is None:
            planner = DEFAULT_PLANNER

        # planning with MEASURE scribbles over the input, so plan on a copy
        return builder_func(
            np.array(array, copy=True),
            axis=axis,
            threads=threads,
            planner_effort=planner,
            auto_align_input=AUTO_ALIGN,
            auto_contiguous=True,
            overwrite_input=False,
        )

    @classmethod
    def _execute(cls, transform_type: str, array: np.ndarray, axis: int,
                 threads: Optional[int], planner: Optional[str]) -> np.ndarray:
        array = np.asarray(array, dtype=np.complex128)
        if array.ndim == 0:
            raise InvalidArgument("cannot transform a 0-d array")
        if planner is not None and planner not in VALID_PLANNERS:
            raise InvalidArgument(f"Invalid planner: {planner}")

        n = array.shape[axis]
        if n == 0:
            return array.copy()

        if USE_NUMPY_FOR_NON_POWER_OF_TWO and cls._is_non_power_of_two(n):
            with _cache_lock:
                cls._performance_metrics['calls'] += 1
                cls._performance_metrics['numpy_fallbacks'] += 1
            if transform_type == 'fft':
                return np.fft.fft(array, axis=axis)
            return np.fft.ifft(array, axis=axis)

        builder_func = pyfftw.builders.fft if transform_type == 'fft' else pyfftw.builders.ifft
        if threads is None:
            threads = cls._select_threads(array)
        key = cls._get_cache_key(array, axis, transform_type, threads)

        with _cache_lock:
            cls._performance_metrics['calls'] += 1
            cls._call_count[key] = cls._call_count.get(key, 0) + 1
            cls._last_used[key] = time.time()

            if key in cls._plan_cache:
                cls._performance_metrics['cache_hits'] += 1
                if planner is not None and planner != cls._plan_quality.get(key):
                    # an explicit planner replaces the cached plan
                    cls._plan_cache[key] = cls._create_plan(array, builder_func, axis,
                                                            threads, planner)
                    cls._plan_quality[key] = planner
                elif cls._should_upgrade_plan(key):
                    cls._plan_cache[key] = cls._create_plan(array, builder_func, axis,
                                                            threads, MEASURE_PLANNER)
                    cls._plan_quality[key] = MEASURE_PLANNER
                    cls._performance_metrics['plan_upgrades'] += 1
                    logger.debug(f"Upgraded {transform_type} plan for shape {array.shape} to {MEASURE_PLANNER}")
                fft_obj = cls._plan_cache[key]
            else:
                cls._performance_metrics['cache_misses'] += 1
                if len(cls._plan_cache) >= MAX_CACHE_SIZE:
                    cls.clear_cache(older_than=DEFAULT_CACHE_TIMEOUT)
                while cls._plan_cache and len(cls._plan_cache) >= MAX_CACHE_SIZE:
                    cls._evict_least_recently_used()
                if planner is None:
                    planner = cls._plan_quality.get(key, DEFAULT_PLANNER)
                fft_obj = cls._create_plan(array, builder_func, axis, threads, planner)
                cls._plan_cache[key] = fft_obj
                cls._plan_quality[key] = planner

            start_time = time.time()
            # the FFTW object reuses its output buffer between calls
            result = np.array(fft_obj(array), copy=True)
            cls._performance_metrics['execution_time'] += time.time() - start_time

        return result

    @classmethod
    def fft(cls, array: np.ndarray, axis: int = 0,
            threads: Optional[int] = None,
            planner: Optional[str] = None) -> np.ndarray:
        """
        Compute the unnormalised forward DFT along one axis.

        Args:
            array: Input array, cast to complex128
            axis: Axis to transform (default: columns of a 2D block)
            threads: Number of threads (None = auto-select)
            planner: FFTW planning strategy (None = auto-select)

        Returns:
            Transformed array, a new array owned by the caller
        """
        return cls._execute('fft', array, axis, threads, planner)

    @classmethod
    def ifft(cls, array: np.ndarray, axis: int = 0,
             threads: Optional[int] = None,
             planner: Optional[str] = None) -> np.ndarray:
        """
        Compute the inverse DFT along one axis, scaled by 1/n like NumPy.

        Args:
            array: Input array, cast to complex128
            axis: Axis to transform (default: columns of a 2D block)
            threads: Number of threads (None = auto-select)
            planner: FFTW planning strategy (None = auto-select)

        Returns:
            Inverse-transformed array, a new array owned by the caller
        """
        return cls._execute('ifft', array, axis, threads, planner)

    @classmethod
    def import_wisdom(cls, filename: str = None) -> bool:
        """
        Import FFTW wisdom from a file.

        Args:
            filename: Path to wisdom file (None = use default path)

        Returns:
            True if wisdom was successfully imported, False otherwise
        """
        if filename is None:
            filename = WISDOM_FILE

        if not os.path.exists(filename):
            logger.debug(f"Wisdom file not found: {filename}")
            return False
        try:
            with open(filename, 'rb') as f:
                wisdom_data = f.read()
        except OSError as e:
            logger.warning(f"Error reading wisdom file {filename}: {e}")
            return False

        if not wisdom_data:
            logger.warning(f"Wisdom file is empty: {filename}")
            return False

        # PyFFTW expects (double, single, long double) wisdom; only double is stored
        success = pyfftw.import_wisdom((wisdom_data, b'', b''))
        return bool(success[0])

    @classmethod
    def export_wisdom(cls, filename: str = None) -> bool:
        """
        Export double precision FFTW wisdom to a file.

        Args:
            filename: Path to wisdom file (None = use default path)

        Returns:
            True if wisdom was successfully exported, False otherwise
        """
        if filename is None:
            filename = WISDOM_FILE

        wisdom = pyfftw.export_wisdom()
        if not wisdom or not isinstance(wisdom[0], bytes) or not wisdom[0]:
            logger.warning("No wisdom available to export")
            return False

        try:
            directory = os.path.dirname(filename)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(filename, 'wb') as f:
                f.write(wisdom[0])
        except OSError as e:
            logger.warning(f"Error exporting wisdom: {e}")
            return False
        return True

    @classmethod
    def set_default_threads(cls, threads: int):
        """Set the default thread count for all transforms."""
        global DEFAULT_THREADS
        if threads < 1:
            raise InvalidArgument(f"thread count must be positive, got {threads}")
        DEFAULT_THREADS = threads

    @classmethod
    def set_default_planner(cls, planner: str):
        """Set the default planning strategy."""
        global DEFAULT_PLANNER
        if planner not in VALID_PLANNERS:
            raise InvalidArgument(f"Invalid planner: {planner}")
        DEFAULT_PLANNER = planner

    @classmethod
    def get_stats(cls) -> Dict:
        """Get statistics about the plan cache."""
        with _cache_lock:
            metrics = cls._performance_metrics
            return {
                'total_plans': len(cls._plan_cache),
                'estimated_plans': sum(1 for q in cls._plan_quality.values() if q == 'FFTW_ESTIMATE'),
                'measured_plans': sum(1 for q in cls._plan_quality.values() if q == 'FFTW_MEASURE'),
                'total_calls': metrics['calls'],
                'cache_hits': metrics['cache_hits'],
                'cache_misses': metrics['cache_misses'],
                'plan_upgrades': metrics['plan_upgrades'],
                'numpy_fallbacks': metrics['numpy_fallbacks'],
                'execution_time': metrics['execution_time'],
            }

    @classmethod
    def reset_metrics(cls):
        """Reset performance counters."""
        with _cache_lock:
            for key, value in cls._performance_metrics.items():
                cls._performance_metrics[key] = 0.0 if isinstance(value, float) else 0


def _exit_handler():
    """Save wisdom when exiting, if configured to."""
    if SAVE_WISDOM_ON_EXIT:
        SmartFFT.export_wisdom(WISDOM_FILE)


atexit.register(_exit_handler)

SmartFFT.import_wisdom()


# Simplified function interfaces
def fft(array, axis=0, threads=None, planner=None):
    """Column-wise FFT with plan caching."""
    return SmartFFT.fft(array, axis, threads, planner)


def ifft(array, axis=0, threads=None, planner=None):
    """Column-wise inverse FFT with plan caching."""
    return SmartFFT.ifft(array, axis, threads, planner)


def import_wisdom(filename=None):
    """Import FFTW wisdom from a file."""
    return SmartFFT.import_wisdom(filename)


def export_wisdom(filename=None):
    """Export FFTW wisdom to a file."""
    return SmartFFT.export_wisdom(filename)


def set_num_threads(threads):
    """Set the default number of threads for FFT computations."""
    SmartFFT.set_default_threads(threads)


def set_planner_effort(planner):
    """Set the default planning strategy."""
    SmartFFT.set_default_planner(planner)


def get_stats():
    """Get statistics about the plan cache."""
    return SmartFFT.get_stats()


def clear_cache(older_than=None):
    """Clear the plan cache."""
    SmartFFT.clear_cache(older_than)
