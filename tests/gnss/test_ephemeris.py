#!/usr/bin/env python3
"""Test suite for ephemeris selection and providers"""

import tempfile
import threading
import time
import unittest
from datetime import date, datetime, timedelta, timezone

from pyrawgnss.core.data_structures import EphemerisRecord
from pyrawgnss.core.exceptions import EphemerisError
from pyrawgnss.core.time import gpst2datetime
from pyrawgnss.gnss.ephemeris import (
    EphemerisProvider, EphemerisStore, RinexEphemerisProvider,
    is_ephemeris_valid, prefetch_ephemerides, select_ephemeris
)

WEEK = 2134


def record(sv='G05', toc=345600.0, svh=0):
    return EphemerisRecord(sv=sv, week=WEEK, toe=toc, toc=toc, sqrt_a=5153.7, e=0.01,
                           m0=0.0, delta_n=0.0, omega0=0.0, omega_dot=0.0, omega=0.0,
                           i0=0.96, idot=0.0, svh=svh)


def gps_time(tow):
    return gpst2datetime(WEEK * 604800 + tow)


class TestSelectEphemeris(unittest.TestCase):
    """Test the selection rule"""

    def setUp(self):
        self.records = [record(toc=338400.0), record(toc=345600.0), record(toc=352800.0),
                        record(sv='G12', toc=345600.0)]

    def test_latest_before_time(self):
        t = WEEK * 604800 + 350000.0
        eph = select_ephemeris(self.records, 'G05', t)
        self.assertEqual(eph.toc, 345600.0)

    def test_issue_time_inclusive(self):
        t = WEEK * 604800 + 352800.0
        self.assertEqual(select_ephemeris(self.records, 'G05', t).toc, 352800.0)

    def test_none_before_time(self):
        t = WEEK * 604800 + 300000.0
        self.assertIsNone(select_ephemeris(self.records, 'G05', t))

    def test_expired(self):
        t = WEEK * 604800 + 352800.0 + 4 * 3600.0 + 1.0
        self.assertIsNone(select_ephemeris(self.records, 'G05', t))

    def test_unknown_satellite(self):
        self.assertIsNone(select_ephemeris(self.records, 'G30', WEEK * 604800 + 350000.0))

    def test_unhealthy_skipped(self):
        records = [record(toc=338400.0), record(toc=345600.0, svh=1)]
        eph = select_ephemeris(records, 'G05', WEEK * 604800 + 346000.0)
        self.assertEqual(eph.toc, 338400.0)
        self.assertFalse(is_ephemeris_valid(records[1], WEEK * 604800 + 346000.0))


class TestEphemerisStore(unittest.TestCase):
    """Test the in-memory provider"""

    def test_get_ephemeris(self):
        store = EphemerisStore([record('G05'), record('G12'), record('G12', toc=338400.0)])
        self.assertIsInstance(store, EphemerisProvider)
        self.assertEqual(len(store), 3)
        self.assertEqual(store.satellites, ['G05', 'G12'])

        result = store.get_ephemeris(gps_time(346000.0), ['G12', 'G30', 'G05'])
        # Missing satellites are omitted; request order kept
        self.assertEqual(list(result), ['G12', 'G05'])
        self.assertEqual(result['G12'].toc, 345600.0)

    def test_duplicates_ignored(self):
        store = EphemerisStore([record('G05')])
        store.add([record('G05')])
        self.assertEqual(len(store), 1)

    def test_naive_timestamp_is_gps_time(self):
        store = EphemerisStore([record('G05')])
        aware = gps_time(346000.0)
        naive = aware.replace(tzinfo=None)
        self.assertEqual(list(store.get_ephemeris(naive, ['G05'])), ['G05'])

    def test_abstract_interface(self):
        with self.assertRaises(TypeError):
            EphemerisProvider()


class TestRinexEphemerisProvider(unittest.TestCase):
    """Test daily file loading with injected fetcher and loader"""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.fetched = []
        self.loaded = []

    def tearDown(self):
        self.tmp.cleanup()

    def fetcher(self, day, cache_dir):
        self.fetched.append(day)
        return f'{cache_dir}/{day.isoformat()}.rnx'

    def loader(self, path, constellation):
        self.loaded.append((path, constellation))
        return [record('G05', toc=345600.0)]

    def provider(self, **kwargs):
        return RinexEphemerisProvider(self.tmp.name, fetcher=self.fetcher,
                                      loader=self.loader, **kwargs)

    def test_loads_day_once(self):
        provider = self.provider()
        # Thursday 2020-12-03 12:00 GPS time
        t = gps_time(4 * 86400 + 12 * 3600.0)
        provider.get_ephemeris(t, ['G05'])
        provider.get_ephemeris(t + timedelta(seconds=1), ['G05', 'G12'])
        self.assertEqual(self.fetched, [date(2020, 12, 3)])
        self.assertEqual(self.loaded[0][1], 'G')

    def test_previous_day_near_midnight(self):
        provider = self.provider()
        t = datetime(2020, 12, 3, 0, 30, 18, tzinfo=timezone.utc)  # 00:30:00 UTC
        provider.get_ephemeris(t, ['G05'])
        self.assertEqual(self.fetched, [date(2020, 12, 3), date(2020, 12, 2)])

    def test_unavailable_day_raises(self):
        provider = RinexEphemerisProvider(self.tmp.name, fetcher=lambda day, d: None,
                                          loader=self.loader)
        t = gps_time(4 * 86400 + 12 * 3600.0)
        with self.assertRaises(EphemerisError):
            provider.get_ephemeris(t, ['G05'])
        with self.assertRaises(EphemerisError):
            provider.get_ephemeris(t, ['G05'])

    def test_no_download(self):
        provider = self.provider(download=False)
        with self.assertRaises(EphemerisError):
            provider.get_ephemeris(gps_time(4 * 86400 + 12 * 3600.0), ['G05'])
        self.assertEqual(self.fetched, [])

    def test_uses_cached_file(self):
        from pyrawgnss.gnss.brdc_downloader import brdc_cache_path

        path = brdc_cache_path(date(2020, 12, 3), self.tmp.name)
        path.parent.mkdir(parents=True)
        path.write_text('')

        provider = self.provider(download=False)
        result = provider.get_ephemeris(gps_time(4 * 86400 + 12 * 3600.0), ['G05'])
        self.assertEqual(self.fetched, [])
        self.assertEqual(self.loaded[0][0], str(path))
        self.assertEqual(list(result), [])


    def test_unreadable_file_not_decoded_again(self):
        def corrupt(path, constellation):
            self.loaded.append((path, constellation))
            raise EphemerisError('bad header')

        provider = RinexEphemerisProvider(self.tmp.name, fetcher=self.fetcher, loader=corrupt)
        t = gps_time(4 * 86400 + 12 * 3600.0)
        for _ in range(3):
            with self.assertRaises(EphemerisError):
                provider.get_ephemeris(t, ['G05'])
        self.assertEqual(len(self.loaded), 1)
        self.assertEqual(self.fetched, [date(2020, 12, 3)])


class SlowProvider(EphemerisProvider):

    def __init__(self, delay_epochs, failing_epochs=(), broken_epochs=()):
        self.delay_epochs = delay_epochs
        self.failing_epochs = failing_epochs
        self.broken_epochs = broken_epochs
        self.release = threading.Event()

    def get_ephemeris(self, timestamp, satellite_ids):
        epoch = int(timestamp)
        if epoch in self.failing_epochs:
            raise EphemerisError('unavailable')
        if epoch in self.broken_epochs:
            raise KeyError('sys')
        if epoch in self.delay_epochs:
            self.release.wait(5.0)
        return {sv: epoch for sv in satellite_ids}


class TestPrefetch(unittest.TestCase):
    """Test concurrent ephemeris pre-fetch"""

    def test_results_per_epoch(self):
        provider = SlowProvider(delay_epochs=())
        requests = {epoch: (epoch, ['G01', 'G02']) for epoch in range(6)}
        results = prefetch_ephemerides(provider, requests, workers=3)
        self.assertEqual(sorted(results), list(range(6)))
        self.assertEqual(results[4], {'G01': 4, 'G02': 4})

    def test_failure_yields_empty_mapping(self):
        provider = SlowProvider(delay_epochs=(), failing_epochs=(2,))
        requests = {epoch: (epoch, ['G01']) for epoch in range(4)}
        results = prefetch_ephemerides(provider, requests, workers=2)
        self.assertEqual(results[2], {})
        self.assertEqual(results[3], {'G01': 3})

    def test_unexpected_error_yields_empty_mapping(self):
        provider = SlowProvider(delay_epochs=(), broken_epochs=(1,))
        requests = {epoch: (epoch, ['G01']) for epoch in range(3)}
        results = prefetch_ephemerides(provider, requests, workers=2)
        self.assertEqual(results[1], {})
        self.assertEqual(results[0], {'G01': 0})
        self.assertEqual(results[2], {'G01': 2})

    def test_timeout_yields_empty_mapping(self):
        provider = SlowProvider(delay_epochs=(1,))
        requests = {epoch: (epoch, ['G01']) for epoch in range(3)}
        start = time.time()
        try:
            results = prefetch_ephemerides(provider, requests, workers=3, timeout=0.2)
        finally:
            provider.release.set()
        self.assertEqual(results[1], {})
        self.assertEqual(results[2], {'G01': 2})
        self.assertLess(time.time() - start, 4.0)


if __name__ == '__main__':
    unittest.main()
