import unittest
import numpy as np

from lrnufft import (
    find_algorithmic_parameters, find_rank, InvalidArgument, AlgorithmicParameters
)


class TestAlgorithmicParameters(unittest.TestCase):

    def setUp(self):
        np.random.seed(42)

    def test_uniform_points(self):
        """Points on the grid have gamma = 0 and map to themselves"""
        n = 16
        params = find_algorithmic_parameters(np.arange(n) / n)
        self.assertIsInstance(params, AlgorithmicParameters)
        self.assertEqual(params.gamma, 0.0)
        self.assertTrue(np.array_equal(params.target_index, np.arange(n)))
        self.assertTrue(np.array_equal(params.anchor, np.arange(n)))

    def test_perturbed_points(self):
        n = 10
        offsets = np.array([0.1, -0.2, 0.3, 0.0, -0.05, 0.25, -0.3, 0.15, 0.2, -0.1])
        x = (np.arange(n) + offsets) / n
        params = find_algorithmic_parameters(x)
        self.assertAlmostEqual(params.gamma, 0.3, places=12)
        self.assertTrue(np.array_equal(params.anchor, np.arange(n)))
        self.assertTrue(np.array_equal(params.target_index, np.arange(n)))

    def test_wraparound(self):
        """Indices wrap modulo N for points rounding to N or below 0"""
        n = 4
        x = np.array([0.99, -0.1, 0.5, 0.26])
        params = find_algorithmic_parameters(x)
        self.assertTrue(np.array_equal(params.anchor, np.array([4.0, 0.0, 2.0, 1.0])))
        self.assertTrue(np.array_equal(params.target_index, np.array([0, 0, 2, 1])))
        x = np.array([-0.3, 0.1, 0.2, 0.7])
        params = find_algorithmic_parameters(x)
        self.assertEqual(params.target_index[0], 3)
        self.assertTrue(np.all((params.target_index >= 0) & (params.target_index < n)))

    def test_gamma_bounded(self):
        """Rounding keeps every residual within half a grid step"""
        x = np.random.random(200)
        params = find_algorithmic_parameters(x)
        self.assertLessEqual(params.gamma, 0.5)
        residual = 200 * x - params.anchor
        self.assertAlmostEqual(params.gamma, np.max(np.abs(residual)), places=14)

    def test_invalid_points(self):
        for bad in [np.array([]), np.ones((2, 2)), np.array([0.1, np.nan]),
                    np.array([0.1, np.inf]), np.array([0.1 + 0.2j])]:
            with self.assertRaises(InvalidArgument):
                find_algorithmic_parameters(bad)


class TestFindRank(unittest.TestCase):

    def test_zero_gamma(self):
        """Points on the grid need rank 1 for every accuracy"""
        for eps in [1e-1, 1e-8, 1e-15]:
            self.assertEqual(find_rank(0.0, eps), 1)

    def test_formula(self):
        gamma, eps = 0.5, 1e-10
        from scipy.special import lambertw
        expected = int(np.ceil(5 * gamma * np.exp(lambertw(np.log(10 / eps) / gamma / 7).real)))
        self.assertEqual(find_rank(gamma, eps), expected)

    def test_monotone_in_epsilon(self):
        """Tighter accuracy never lowers the rank"""
        epsilons = np.logspace(-15, -1, 29)
        for gamma in [1e-3, 0.1, 0.25, 0.5]:
            ranks = [find_rank(gamma, eps) for eps in epsilons]
            self.assertTrue(all(a >= b for a, b in zip(ranks, ranks[1:])), f"gamma={gamma}: {ranks}")

    def test_monotone_in_gamma(self):
        gammas = np.linspace(0.01, 0.5, 50)
        ranks = [find_rank(g, 1e-12) for g in gammas]
        self.assertTrue(all(a <= b for a, b in zip(ranks, ranks[1:])))

    def test_rank_is_small(self):
        """Rank stays far below typical transform sizes"""
        self.assertLessEqual(find_rank(0.5, 1e-15), 20)
        self.assertGreaterEqual(find_rank(1e-12, 1e-15), 1)

    def test_invalid_epsilon(self):
        for eps in [0.0, 1.0, -1e-3, 2.0, np.nan, "tiny"]:
            with self.assertRaises(InvalidArgument):
                find_rank(0.3, eps)

    def test_invalid_gamma(self):
        with self.assertRaises(InvalidArgument):
            find_rank(-0.1, 1e-8)
        with self.assertRaises(InvalidArgument):
            find_rank(np.inf, 1e-8)


if __name__ == "__main__":
    unittest.main()
