"""
Simple test script for lrnufft
"""

# Add the src directory to the Python path
import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

import numpy as np
import time


def main():
    # Create sample data
    print("Creating test data...")
    n = 4096
    x = np.sort(np.random.random(n))
    c = np.random.random(n) + 1j * np.random.random(n)

    import lrnufft

    # Direct evaluation of the sum
    print("\nEvaluating the sum directly...")
    start = time.time()
    direct = lrnufft.nudft1(c, x)
    direct_time = time.time() - start
    print(f"Direct O(N^2): {direct_time:.4f} seconds")

    # Build a plan once
    print("\nBuilding a type-1 plan...")
    start = time.time()
    plan = lrnufft.build_nufft1(x, 1e-12)
    build_time = time.time() - start
    print(f"{plan} built in {build_time:.4f} seconds")

    # Apply it
    start = time.time()
    fast = plan.apply(c)
    apply_time = time.time() - start
    print(f"Plan apply: {apply_time:.4f} seconds")

    # Verify results match
    err = np.max(np.abs(fast - direct)) / np.sum(np.abs(c))
    print(f"\nRelative error: {err:.2e}")

    print("\nDone!")


if __name__ == "__main__":
    main()
