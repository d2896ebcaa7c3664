#!/usr/bin/env python3
"""Test suite for cssrlib-backed broadcast navigation reading"""

import math
import os
import tempfile
import unittest
from types import SimpleNamespace
from unittest import mock

from cssrlib.gnss import gpst2time

from pyrawgnss.core.exceptions import EphemerisError
from pyrawgnss.io.rinex_nav import eph_to_record, read_nav, read_nav_records


def cssrlib_eph(sat=5, week=2134, toe=345600.0, toc=345584.0):
    """Minimal stand-in with the attributes of a cssrlib ``Eph``"""
    return SimpleNamespace(
        sat=sat, toe=gpst2time(week, toe), toc=gpst2time(week, toc),
        A=5153.7 ** 2, e=0.0123, M0=0.5, deln=4.5e-9, OMG0=1.1, OMGd=-8.1e-9,
        omg=0.7, i0=0.96, idot=1.2e-10, cus=1e-6, cuc=2e-6, crs=30.0, crc=250.0,
        cis=1e-7, cic=-2e-7, f0=-1.5e-4, f1=-2e-12, f2=0.0, svh=0)


class TestEphToRecord(unittest.TestCase):
    """Test conversion from cssrlib ephemeris objects"""

    def test_conversion(self):
        rec = eph_to_record(cssrlib_eph())

        self.assertEqual(rec.sv, 'G05')
        self.assertEqual(rec.week, 2134)
        self.assertAlmostEqual(rec.toe, 345600.0)
        self.assertAlmostEqual(rec.toc, 345584.0)
        self.assertAlmostEqual(rec.sqrt_a, 5153.7)
        self.assertEqual(rec.e, 0.0123)
        self.assertEqual(rec.m0, 0.5)
        self.assertEqual(rec.omega0, 1.1)
        self.assertEqual(rec.omega, 0.7)
        self.assertEqual(rec.af0, -1.5e-4)
        self.assertEqual(rec.crc, 250.0)
        self.assertEqual(rec.svh, 0)

    def test_unhealthy_flag_kept(self):
        eph = cssrlib_eph()
        eph.svh = 63
        self.assertEqual(eph_to_record(eph).svh, 63)

    def test_reference_time_from_toc(self):
        rec = eph_to_record(cssrlib_eph())
        self.assertTrue(math.isclose(rec.reference_time, 2134 * 604800 + 345584.0))


class TestReadNav(unittest.TestCase):
    """Test file handling"""

    def test_decoder_failure_is_ephemeris_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'brdc.rnx')
            with open(path, 'w') as f:
                f.write('corrupt\n')
            for error in (KeyError('sys'), AttributeError('ver')):
                with mock.patch('pyrawgnss.io.rinex_nav.rnxdec.decode_nav', side_effect=error):
                    with self.assertRaises(EphemerisError):
                        read_nav_records(path)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            read_nav('/nonexistent/brdc.rnx')
        with self.assertRaises(FileNotFoundError):
            read_nav_records('/nonexistent/brdc.rnx')


if __name__ == '__main__':
    unittest.main()
