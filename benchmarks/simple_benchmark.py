#!/usr/bin/env python
"""
Simple NUFFT Benchmarking Tool

Compares plan construction and application of the low-rank NUFFT with the
direct O(N^2) evaluation of the same sums, for a range of sizes and
accuracies.
"""

import numpy as np
import time
import os
import sys
import gc
from tabulate import tabulate

# Add the src directory to the Python path if needed
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

import lrnufft

# Set up benchmark parameters
REPEATS = 10  # Number of times to repeat each measurement for consistency
WARMUP_RUNS = 3  # Number of warmup runs before timing

SIZES = [256, 1024, 4096, 8192]
EPSILONS = [1e-4, 1e-8, 1e-12]
DIRECT_MAX_SIZE = 4096  # the dense kernel gets too large beyond this

# Avoid too large sizes on smaller systems
if os.environ.get('SIMPLE_BENCHMARK', '').lower() == 'small':
    SIZES = [256, 1024]
    EPSILONS = [1e-8]


def benchmark_function(func, *args, repeats=REPEATS, warmup=WARMUP_RUNS):
    """Benchmark a function with the given arguments."""
    for _ in range(warmup):
        func(*args)

    # Garbage collect to reduce interference
    gc.collect()

    times = []
    for _ in range(repeats):
        start = time.time()
        func(*args)
        times.append(time.time() - start)

    return {
        'mean': sum(times) / len(times),
        'min': min(times),
        'max': max(times),
    }


def format_time(seconds):
    """Format time in a human-readable way."""
    if seconds < 0.001:
        return f"{seconds * 1e6:.2f} us"
    elif seconds < 1:
        return f"{seconds * 1e3:.2f} ms"
    else:
        return f"{seconds:.2f} s"


def run_benchmark():
    rows = []
    for n in SIZES:
        x = np.sort(np.random.random(n))
        c = np.random.random(n) + 1j * np.random.random(n)

        direct = None
        direct_time = None
        if n <= DIRECT_MAX_SIZE:
            direct = lrnufft.nudft1(c, x)
            direct_time = benchmark_function(lrnufft.nudft1, c, x, repeats=3, warmup=1)['mean']

        for eps in EPSILONS:
            build = benchmark_function(lrnufft.build_nufft1, x, eps, repeats=3, warmup=1)
            plan = lrnufft.build_nufft1(x, eps)
            apply = benchmark_function(plan.apply, c)

            error = None
            if direct is not None:
                error = np.max(np.abs(plan.apply(c) - direct)) / np.sum(np.abs(c))

            rows.append([
                n, f"{eps:.0e}", plan.rank,
                format_time(build['mean']),
                format_time(apply['mean']),
                format_time(direct_time) if direct_time is not None else "-",
                f"{direct_time / apply['mean']:.1f}x" if direct_time is not None else "-",
                f"{error:.1e}" if error is not None else "-",
            ])
            print(f"Finished N={n}, eps={eps:.0e}")

    headers = ["N", "eps", "K", "build", "apply", "direct", "speedup", "rel. error"]
    print()
    print(tabulate(rows, headers=headers))
    print()
    print(lrnufft.get_stats())


if __name__ == "__main__":
    run_benchmark()
