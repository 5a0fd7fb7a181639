import unittest
import numpy as np
from scipy.special import jv

import lrnufft
from lrnufft import bessel_coeffs, InvalidArgument


class TestBesselCoeffs(unittest.TestCase):

    def setUp(self):
        lrnufft.bessel.clear_cache()

    def tearDown(self):
        lrnufft.bessel.clear_cache()

    def test_zero_gamma(self):
        """With gamma = 0 only the (0, 0) entry survives, and it equals 1"""
        for K in [1, 2, 5, 9]:
            cfs = bessel_coeffs(K, 0.0)
            expected = np.zeros((K, K), dtype=np.complex128)
            expected[0, 0] = 1.0
            self.assertTrue(np.allclose(cfs, expected, rtol=0, atol=1e-15), f"K={K}")

    def test_parity_structure(self):
        """Entries with p + q odd are exactly zero"""
        cfs = bessel_coeffs(10, 0.4)
        p, q = np.indices(cfs.shape)
        self.assertTrue(np.all(cfs[(p + q) % 2 == 1] == 0))
        self.assertTrue(np.all(cfs[(p + q) % 2 == 0] != 0))

    def test_entries(self):
        """Interior entries follow 4 i^q J_{(p+q)/2} J_{(q-p)/2}, border ones are halved"""
        gamma, K = 0.37, 8
        arg = -gamma * np.pi / 2
        cfs = bessel_coeffs(K, gamma)

        def entry(p, q):
            return 4.0 * 1j ** q * jv((p + q) / 2, arg) * jv((q - p) / 2, arg)

        self.assertAlmostEqual(cfs[3, 5], entry(3, 5), places=14)
        self.assertAlmostEqual(cfs[6, 2], entry(6, 2), places=14)
        self.assertAlmostEqual(cfs[0, 4], entry(0, 4) / 2, places=14)
        self.assertAlmostEqual(cfs[4, 0], entry(4, 0) / 2, places=14)
        self.assertAlmostEqual(cfs[0, 0], entry(0, 0) / 4, places=14)

    def test_constant_term(self):
        """The (0, 0) coefficient is the mean of the kernel, J_0(gamma*pi/2)^2"""
        gamma = 0.5
        self.assertAlmostEqual(bessel_coeffs(4, gamma)[0, 0], jv(0, gamma * np.pi / 2) ** 2, places=14)

    def test_cache(self):
        """Repeated requests return the same read-only matrix"""
        first = bessel_coeffs(6, 0.25)
        second = bessel_coeffs(6, 0.25)
        self.assertIs(first, second)
        self.assertFalse(first.flags.writeable)
        with self.assertRaises(ValueError):
            first[0, 0] = 0

        stats = lrnufft.bessel.get_stats()
        self.assertEqual(stats['cached_matrices'], 1)
        self.assertEqual(stats['cache_hits'], 1)
        self.assertEqual(stats['cache_misses'], 1)

        lrnufft.bessel.clear_cache()
        self.assertEqual(lrnufft.bessel.get_stats()['cached_matrices'], 0)
        self.assertIsNot(bessel_coeffs(6, 0.25), first)

    def test_cache_bounded(self):
        old_size = lrnufft.bessel.MAX_CACHE_SIZE
        lrnufft.bessel.MAX_CACHE_SIZE = 3
        try:
            for gamma in [0.1, 0.2, 0.3, 0.4, 0.5]:
                bessel_coeffs(4, gamma)
            self.assertEqual(lrnufft.bessel.get_stats()['cached_matrices'], 3)
        finally:
            lrnufft.bessel.MAX_CACHE_SIZE = old_size

    def test_invalid_arguments(self):
        with self.assertRaises(InvalidArgument):
            bessel_coeffs(0, 0.3)
        with self.assertRaises(InvalidArgument):
            bessel_coeffs(3, -0.1)
        with self.assertRaises(InvalidArgument):
            bessel_coeffs(3, np.nan)


if __name__ == "__main__":
    unittest.main()
