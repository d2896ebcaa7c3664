# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Ephemeris selection and providers

The positioning core consumes broadcast ephemerides through one call,
``get_ephemeris(timestamp, satellite_ids)``, returning the most recent
valid record for each satellite. Satellites without one are left out of
the returned mapping.

Timestamps are datetimes in the GPS time scale, as produced by the
pseudorange calculator.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional, Sequence

from ..core.constants import EPH_VALIDITY
from ..core.data_structures import EphemerisRecord
from ..core.exceptions import EphemerisError
from ..core.time import datetime2gpst, gpst2utc
from ..io.rinex_nav import read_nav_records
from .brdc_downloader import brdc_cache_path, download_brdc

logger = logging.getLogger(__name__)


def is_ephemeris_valid(eph: EphemerisRecord, gps_seconds: float,
                       validity: float = EPH_VALIDITY) -> bool:
    """
    Check if an ephemeris is usable at a given time

    Parameters
    ----------
    eph : EphemerisRecord
        Ephemeris record to validate
    gps_seconds : float
        Time of interest in GPS seconds since the GPS epoch
    validity : float
        Validity window after issue (s)

    Returns
    -------
    bool
        True if the satellite is healthy and the record was issued no
        later than ``gps_seconds`` and at most ``validity`` seconds before
    """
    if eph.svh != 0:
        return False
    age = gps_seconds - eph.reference_time
    return 0.0 <= age <= validity


def select_ephemeris(records: Iterable[EphemerisRecord], sv: str, gps_seconds: float,
                     validity: float = EPH_VALIDITY) -> Optional[EphemerisRecord]:
    """
    Select the most recent valid ephemeris for a satellite

    Parameters
    ----------
    records : Iterable[EphemerisRecord]
        Candidate records (any satellites)
    sv : str
        Satellite identifier
    gps_seconds : float
        Time of interest in GPS seconds since the GPS epoch
    validity : float
        Validity window after issue (s)

    Returns
    -------
    EphemerisRecord or None
        Latest-issued valid record, or None if not found
    """
    best = None
    for eph in records:
        if eph.sv != sv or not is_ephemeris_valid(eph, gps_seconds, validity):
            continue
        if best is None or eph.reference_time > best.reference_time:
            best = eph
    return best


class EphemerisProvider(ABC):
    """Source of broadcast ephemerides for the positioning core"""

    @abstractmethod
    def get_ephemeris(self, timestamp: datetime,
                      satellite_ids: Sequence[str]) -> dict[str, EphemerisRecord]:
        """
        Return the most recent valid record for each requested satellite

        Parameters
        ----------
        timestamp : datetime
            Time of interest (GPS time scale)
        satellite_ids : Sequence[str]
            Satellites such as ``['G02', 'G05']``

        Returns
        -------
        dict[str, EphemerisRecord]
            Records keyed by satellite, in request order; satellites without
            a valid record are omitted

        Raises
        ------
        EphemerisError
            If the underlying data could not be obtained at all
        """


class EphemerisStore(EphemerisProvider):
    """In-memory ephemeris provider"""

    def __init__(self, records: Iterable[EphemerisRecord] = (), validity: float = EPH_VALIDITY):
        self.validity = validity
        self._records = defaultdict(list)
        self.add(records)

    def add(self, records: Iterable[EphemerisRecord]):
        """Add records; duplicates of an existing (sv, reference time) are ignored"""
        for eph in records:
            bucket = self._records[eph.sv]
            if any(old.reference_time == eph.reference_time for old in bucket):
                continue
            bucket.append(eph)

    def __len__(self):
        return sum(len(bucket) for bucket in self._records.values())

    @property
    def satellites(self) -> list[str]:
        return sorted(self._records)

    def get_ephemeris(self, timestamp, satellite_ids):
        t = datetime2gpst(timestamp)
        result = {}
        for sv in satellite_ids:
            eph = select_ephemeris(self._records.get(sv, ()), sv, t, self.validity)
            if eph is None:
                logger.debug(f"No valid ephemeris for {sv} at {timestamp}")
                continue
            result[sv] = eph
        return result


class RinexEphemerisProvider(EphemerisStore):
    """
    Ephemeris provider backed by daily broadcast RINEX files

    Daily files are looked up in ``cache_dir`` and downloaded when missing
    (if ``download`` is set). Each (UTC date, constellation) is loaded once.
    The previous day is also loaded when the request falls within the
    validity window after midnight.

    Parameters
    ----------
    cache_dir : str or Path
        Directory holding ``YYYY/DOY/BRDC*.rnx`` files
    download : bool
        Fetch missing daily files over the network
    validity : float
        Ephemeris validity window (s)
    fetcher : Callable, optional
        ``fetcher(day, cache_dir) -> path or None``; defaults to ``download_brdc``
    loader : Callable, optional
        ``loader(path, constellation) -> records``; defaults to ``read_nav_records``
    """

    def __init__(self, cache_dir="./ephemeris_cache", download: bool = True,
                 validity: float = EPH_VALIDITY,
                 fetcher: Optional[Callable] = None,
                 loader: Optional[Callable] = None):
        super().__init__(validity=validity)
        self.cache_dir = Path(cache_dir)
        self.download = download
        self._fetcher = fetcher or download_brdc
        self._loader = loader or read_nav_records
        self._loaded = set()
        self._failed = set()
        self._lock = threading.Lock()

    def _file_for(self, day: date) -> Optional[str]:
        path = brdc_cache_path(day, self.cache_dir)
        if path.exists():
            return str(path)
        if not self.download:
            return None
        return self._fetcher(day, self.cache_dir)

    def _load(self, key) -> bool:
        day, constellation = key
        path = self._file_for(day)
        if path is None:
            logger.warning(f"No broadcast ephemeris file for {day} ({constellation})")
        else:
            try:
                self.add(self._loader(path, constellation))
            except EphemerisError as e:
                logger.warning(f"Unusable broadcast ephemeris file {path}: {e}")
            else:
                self._loaded.add(key)
                return True
        self._failed.add(key)
        return False

    def _ensure_loaded(self, day: date, constellation: str, required: bool):
        key = (day, constellation)
        with self._lock:
            if key in self._loaded:
                return
            if key not in self._failed and self._load(key):
                return

        if required:
            raise EphemerisError(f"Broadcast ephemeris for {day} ({constellation}) unavailable")

    def get_ephemeris(self, timestamp, satellite_ids):
        utc = gpst2utc(timestamp)
        day = utc.date()
        for constellation in sorted({sv[0] for sv in satellite_ids}):
            self._ensure_loaded(day, constellation, required=True)
            midnight = datetime(day.year, day.month, day.day, tzinfo=utc.tzinfo)
            if (utc - midnight).total_seconds() < self.validity:
                self._ensure_loaded(day - timedelta(days=1), constellation, required=False)
        return super().get_ephemeris(timestamp, satellite_ids)


def prefetch_ephemerides(provider: EphemerisProvider,
                         requests: Mapping[int, tuple],
                         workers: int = 4,
                         timeout: Optional[float] = None) -> dict[int, dict]:
    """
    Fetch ephemerides for many epochs concurrently

    Each epoch's request is independent, so lookups run in a thread pool.
    A request that raises or exceeds ``timeout`` yields an empty mapping,
    the same as having no valid record; other epochs are unaffected.

    Parameters
    ----------
    provider : EphemerisProvider
        Ephemeris source
    requests : Mapping[int, tuple]
        ``{epoch: (timestamp, satellite_ids)}``
    workers : int
        Thread pool size
    timeout : float, optional
        Seconds to wait for each request

    Returns
    -------
    dict[int, dict]
        ``{epoch: {sv: EphemerisRecord}}``
    """
    results = {}
    executor = ThreadPoolExecutor(max_workers=max(1, workers))
    try:
        futures = {epoch: executor.submit(provider.get_ephemeris, ts, sats)
                   for epoch, (ts, sats) in requests.items()}
        for epoch, future in futures.items():
            try:
                results[epoch] = future.result(timeout=timeout)
            except FutureTimeoutError:
                logger.warning(f"Ephemeris request for epoch {epoch} timed out")
                results[epoch] = {}
            except EphemerisError as e:
                logger.warning(f"Ephemeris request for epoch {epoch} failed: {e}")
                results[epoch] = {}
            except Exception as e:
                logger.error(f"Ephemeris request for epoch {epoch} raised {type(e).__name__}: {e}")
                results[epoch] = {}
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
    return results
