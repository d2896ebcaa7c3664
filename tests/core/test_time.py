#!/usr/bin/env python3
"""Test suite for GPS time helpers"""

import unittest
from datetime import datetime, timedelta, timezone

from pyrawgnss.core.time import GPS_EPOCH, datetime2gpst, gpst2datetime, gpst2utc, timediff


class TestConversions(unittest.TestCase):
    """Test GPS time conversion functions"""

    def test_gps_seconds_round_trip(self):
        self.assertEqual(datetime2gpst(GPS_EPOCH), 0.0)
        s = 2134 * 604800 + 345600.25
        self.assertAlmostEqual(datetime2gpst(gpst2datetime(s)), s, places=5)

    def test_week_of_date(self):
        # 2020-12-03 is a Thursday of GPS week 2134
        s = datetime2gpst(datetime(2020, 12, 3, 12, 0, 0, tzinfo=timezone.utc))
        self.assertEqual(int(s // 604800), 2134)
        self.assertAlmostEqual(s % 604800, 4 * 86400 + 12 * 3600)

    def test_naive_datetime_is_gps_time(self):
        naive = datetime(2020, 12, 3, 12, 0, 0)
        aware = naive.replace(tzinfo=timezone.utc)
        self.assertEqual(datetime2gpst(naive), datetime2gpst(aware))

    def test_leap_seconds(self):
        gps = datetime(2020, 12, 3, 0, 0, 18, tzinfo=timezone.utc)
        utc = gpst2utc(gps)
        self.assertEqual(utc, datetime(2020, 12, 3, tzinfo=timezone.utc))
        self.assertEqual(gps - utc, timedelta(seconds=18))

    def test_timediff_wraps_half_week(self):
        self.assertAlmostEqual(timediff(10.0, 604790.0), 20.0)
        self.assertAlmostEqual(timediff(604790.0, 10.0), -20.0)
        self.assertAlmostEqual(timediff(500.0, 200.0), 300.0)


if __name__ == '__main__':
    unittest.main()
