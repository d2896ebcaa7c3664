#!/usr/bin/env python3
"""Test suite for the least-squares position solver"""

import unittest

import numpy as np
from numpy.testing import assert_allclose

from pyrawgnss.core.data_structures import ReceiverEstimate
from pyrawgnss.core.exceptions import ConvergenceError, SingularGeometryError
from pyrawgnss.gnss.spp import EpochData, fold_epochs, geodist, least_squares, solve_epoch

TRUTH = np.array([-3959340.0, 3352854.0, 3697471.0])  # Tokyo
CLOCK = 30.0
SAT_RANGE = 2.02e7


def sky_directions(n):
    """Unit vectors spread over the sky above TRUTH, first one at zenith"""
    up = TRUTH / np.linalg.norm(TRUTH)
    east = np.cross([0.0, 0.0, 1.0], up)
    east /= np.linalg.norm(east)
    north = np.cross(up, east)

    directions = [up]
    for k in range(n - 1):
        az = 2.0 * np.pi * k / (n - 1)
        tilt = 0.6 + 0.3 * (k % 2)
        d = up + tilt * (np.cos(az) * north + np.sin(az) * east)
        directions.append(d / np.linalg.norm(d))
    return np.array(directions)


def make_epoch(epoch, n=8, clock=CLOCK):
    sats = TRUTH + SAT_RANGE * sky_directions(n)
    pr = np.linalg.norm(sats - TRUTH, axis=1) + clock
    return EpochData(epoch=epoch, satellites=[f'G{k + 1:02d}' for k in range(n)],
                     sat_positions=sats, pseudoranges=pr)


class TestGeodist(unittest.TestCase):
    """Test geometric distance"""

    def test_distance_and_unit_vector(self):
        r, e = geodist(np.array([3.0, 4.0, 0.0]), np.zeros(3))
        self.assertAlmostEqual(r, 5.0)
        assert_allclose(e, [0.6, 0.8, 0.0])

    def test_satellite_set(self):
        sats = np.array([[3.0, 4.0, 0.0], [0.0, 0.0, 2.0], [1.0, 1.0, 1.0]])
        r, e = geodist(sats, np.array([1.0, 1.0, 1.0]))
        assert_allclose(r, [np.sqrt(4.0 + 9.0 + 1.0), np.sqrt(3.0), 0.0])
        assert_allclose(e[1], np.array([-1.0, -1.0, 1.0]) / np.sqrt(3.0))
        assert_allclose(e[2], np.zeros(3))

    def test_coincident(self):
        r, e = geodist(np.ones(3), np.ones(3))
        self.assertEqual(r, 0.0)
        assert_allclose(e, np.zeros(3))


class TestLeastSquares(unittest.TestCase):
    """Test Gauss-Newton iteration"""

    def test_recovers_position_from_earth_center(self):
        data = make_epoch(0)
        x, b, residual, iterations = least_squares(data.sat_positions, data.pseudoranges, np.zeros(3))
        assert_allclose(x, TRUTH, atol=1e-4)
        self.assertAlmostEqual(b, CLOCK, delta=1e-4)
        self.assertLess(residual, 1e-4)
        self.assertGreater(iterations, 1)

    def test_minimum_four_satellites(self):
        data = make_epoch(0, n=4)
        x, b, _, _ = least_squares(data.sat_positions, data.pseudoranges, np.zeros(3))
        assert_allclose(x, TRUTH, atol=1e-3)

    def test_too_few_satellites(self):
        data = make_epoch(0, n=3)
        with self.assertRaises(SingularGeometryError):
            least_squares(data.sat_positions, data.pseudoranges, np.zeros(3))

    def test_duplicate_geometry(self):
        sats = np.tile(TRUTH + SAT_RANGE * sky_directions(1), (5, 1))
        pr = np.full(5, SAT_RANGE)
        with self.assertRaises(SingularGeometryError):
            least_squares(sats, pr, np.zeros(3))

    def test_seed_at_satellite(self):
        data = make_epoch(0)
        with self.assertRaises(SingularGeometryError):
            least_squares(data.sat_positions, data.pseudoranges, data.sat_positions[0])

    def test_iteration_cap(self):
        data = make_epoch(0)
        with self.assertRaises(ConvergenceError):
            least_squares(data.sat_positions, data.pseudoranges, np.zeros(3), max_iterations=1)

    def test_length_mismatch(self):
        data = make_epoch(0)
        with self.assertRaises(ValueError):
            least_squares(data.sat_positions, data.pseudoranges[:-1], np.zeros(3))


class TestSolveEpoch(unittest.TestCase):
    """Test single-epoch solutions and seeding"""

    def test_estimate_seed(self):
        seed = ReceiverEstimate(epoch=0, position=TRUTH + 500.0, clock_bias=0.0)
        estimate = solve_epoch(seed, make_epoch(7))
        self.assertEqual(estimate.epoch, 7)
        self.assertEqual(estimate.num_satellites, 8)
        self.assertEqual(estimate.satellites[0], 'G01')
        assert_allclose(estimate.position, TRUTH, atol=1e-4)
        self.assertAlmostEqual(estimate.clock_bias, CLOCK, delta=1e-4)

    def test_three_element_seed(self):
        estimate = solve_epoch([0.0, 0.0, 0.0], make_epoch(0))
        assert_allclose(estimate.position, TRUTH, atol=1e-4)

    def test_bad_seed(self):
        with self.assertRaises(ValueError):
            solve_epoch([1.0, 2.0], make_epoch(0))


class TestFoldEpochs(unittest.TestCase):
    """Test the epoch-to-epoch fold"""

    def test_skips_and_carries_seed(self):
        epochs = [make_epoch(0), make_epoch(1, n=3), make_epoch(2)]
        estimates, skipped = fold_epochs(epochs)

        self.assertEqual([est.epoch for est in estimates], [0, 2])
        self.assertEqual(list(skipped), [1])
        self.assertIn('3 satellites', skipped[1])

        # Epoch 2 starts from epoch 0's solution
        self.assertGreater(estimates[0].iterations, 1)
        self.assertEqual(estimates[1].iterations, 1)
        assert_allclose(estimates[1].position, TRUTH, atol=1e-4)

    def test_all_failed(self):
        estimates, skipped = fold_epochs([make_epoch(0, n=2), make_epoch(1, n=3)])
        self.assertEqual(estimates, [])
        self.assertEqual(sorted(skipped), [0, 1])

    def test_empty(self):
        self.assertEqual(fold_epochs([]), ([], {}))


if __name__ == '__main__':
    unittest.main()
