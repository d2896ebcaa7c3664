#!/usr/bin/env python3
"""Test suite for constants and satellite naming"""

import unittest

from pyrawgnss.core.constants import (
    CLIGHT, EPH_VALIDITY, EPOCH_GAP, KEPLER_MAXITR, KEPLER_TOL, LSQ_TOL,
    MIN_EPOCH_SATS, MIN_SATS, MU_GPS, OMGE, PR_MAX_SECONDS, SYS_GLO, SYS_GPS,
    WEEK_NANOS, WEEK_SECONDS, constellation_char, sv_name, sys2char
)


class TestPhysicalConstants(unittest.TestCase):
    """Test physical constants values"""

    def test_speed_of_light(self):
        self.assertEqual(CLIGHT, 299792458.0)

    def test_gps_orbit_constants(self):
        """GPS ICD values for orbit propagation"""
        self.assertEqual(MU_GPS, 3.986005e14)
        self.assertEqual(OMGE, 7.2921151467e-5)

    def test_week_length(self):
        self.assertEqual(WEEK_SECONDS, 604800)
        self.assertEqual(WEEK_NANOS, 604800 * 10**9)
        self.assertIsInstance(WEEK_NANOS, int)


class TestProcessingDefaults(unittest.TestCase):
    """Test default processing thresholds"""

    def test_defaults(self):
        self.assertEqual(EPOCH_GAP, 0.2)
        self.assertEqual(PR_MAX_SECONDS, 0.1)
        self.assertEqual(EPH_VALIDITY, 4 * 3600)
        self.assertEqual(KEPLER_TOL, 1e-8)
        self.assertEqual(KEPLER_MAXITR, 10)
        self.assertEqual(LSQ_TOL, 1e-3)
        self.assertEqual(MIN_SATS, 4)
        self.assertEqual(MIN_EPOCH_SATS, 5)


class TestSatelliteNaming(unittest.TestCase):
    """Test constellation codes and satellite identifiers"""

    def test_android_constellation_types(self):
        self.assertEqual(constellation_char(1), 'G')
        self.assertEqual(constellation_char(3), 'R')
        self.assertEqual(constellation_char(5), 'C')
        self.assertEqual(constellation_char(6), 'E')
        self.assertEqual(constellation_char(0), ' ')
        self.assertEqual(constellation_char(99), ' ')

    def test_sys2char(self):
        self.assertEqual(sys2char(SYS_GPS), 'G')
        self.assertEqual(sys2char(SYS_GLO), 'R')
        self.assertEqual(sys2char(0), ' ')

    def test_sv_name_zero_padded(self):
        self.assertEqual(sv_name('G', 5), 'G05')
        self.assertEqual(sv_name('G', 32), 'G32')
        self.assertEqual(sv_name('R', '7'), 'R07')


if __name__ == '__main__':
    unittest.main()
