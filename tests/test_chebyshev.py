import unittest
import numpy as np

from lrnufft import chebyshev_vandermonde, InvalidArgument


class TestChebyshevVandermonde(unittest.TestCase):

    def setUp(self):
        np.random.seed(42)
        self.x = 2.0 * np.random.random(50) - 1.0
        self.tol = 1e-12

    def test_first_columns(self):
        """Column 0 is all ones and column 1 is x"""
        for n in [1, 2, 7, 30]:
            tcheb = chebyshev_vandermonde(n, self.x)
            self.assertEqual(tcheb.shape, (50, n + 1))
            self.assertTrue(np.array_equal(tcheb[:, 0], np.ones(50)))
            self.assertTrue(np.array_equal(tcheb[:, 1], self.x))

    def test_degree_zero(self):
        """n = 0 gives only the constant column, whatever the points are"""
        tcheb = chebyshev_vandermonde(0, np.array([0.3, -5.0, 1e6]))
        self.assertEqual(tcheb.shape, (3, 1))
        self.assertTrue(np.array_equal(tcheb[:, 0], np.ones(3)))

    def test_matches_cosine_form(self):
        """T_k(cos t) = cos(k t) on [-1, 1]"""
        t = np.linspace(0, np.pi, 41)
        n = 40
        tcheb = chebyshev_vandermonde(n, np.cos(t))
        expected = np.cos(np.outer(t, np.arange(n + 1)))
        self.assertTrue(np.allclose(tcheb, expected, rtol=0, atol=1e-11))

    def test_matches_numpy_chebvander(self):
        """Agrees with numpy.polynomial.chebyshev.chebvander"""
        n = 12
        expected = np.polynomial.chebyshev.chebvander(self.x, n)
        self.assertTrue(np.allclose(chebyshev_vandermonde(n, self.x), expected,
                                    rtol=self.tol, atol=self.tol))

    def test_integer_points_promoted(self):
        tcheb = chebyshev_vandermonde(3, np.array([0, 1, -1]))
        self.assertEqual(tcheb.dtype, np.float64)
        self.assertTrue(np.array_equal(tcheb[1], np.ones(4)))
        self.assertTrue(np.array_equal(tcheb[2], np.array([1.0, -1.0, 1.0, -1.0])))

    def test_invalid_degree(self):
        with self.assertRaises(InvalidArgument):
            chebyshev_vandermonde(-1, self.x)


if __name__ == "__main__":
    unittest.main()
