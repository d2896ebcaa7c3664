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

"""Raw pseudorange generation from Android clock and transmit-time fields

Android reports the receiver hardware clock (``TimeNanos``) together with
its offset from GPS time (``FullBiasNanos`` + ``BiasNanos``), and the
satellite transmit time decoded from the signal (``ReceivedSvTimeNanos``).
The pseudorange is the difference of reception and transmission time of
week, scaled by the speed of light.

Nanosecond counters near 1e18 exceed float64 precision, so the integer
parts are combined in int64 before converting to seconds. The pseudorange
itself is differenced in nanoseconds, not from the time-of-week columns.
"""

import logging

import numpy as np
import pandas as pd

from ..core.constants import CLIGHT, GPST0, PR_MAX_SECONDS, WEEK_NANOS

logger = logging.getLogger(__name__)


def receiver_timestamps(measurements: pd.DataFrame) -> pd.DataFrame:
    """
    Add the per-row receiver clock reading in GPS time

    ``GpsTimeNanos = TimeNanos - (FullBiasNanos - BiasNanos)``, rounded to
    whole nanoseconds, and ``Timestamp``: the same instant as a tz-aware
    datetime counted from the GPS epoch (GPS time scale, no leap seconds).

    Parameters:
    -----------
    measurements : pd.DataFrame
        Normalized measurements

    Returns:
    --------
    pd.DataFrame
        Copy with ``GpsTimeNanos`` (int64) and ``Timestamp`` columns
    """
    df = measurements.copy()
    whole = df['TimeNanos'].astype('int64') - df['FullBiasNanos'].astype('int64')
    df['GpsTimeNanos'] = whole + np.round(df['BiasNanos'].astype(float)).astype('int64')
    df['Timestamp'] = pd.to_datetime(df['GpsTimeNanos'], unit='ns',
                                     origin=pd.Timestamp(*GPST0[:3]), utc=True)
    return df


def compute_pseudoranges(measurements: pd.DataFrame) -> pd.DataFrame:
    """
    Compute raw pseudoranges and their uncertainties

    The receiver clock offset is taken from the first row of the table
    (``FullBiasNanos[0] + BiasNanos[0]``) and applied to every row, so the
    receiver clock drift over the log ends up in the solved clock bias.

    Parameters:
    -----------
    measurements : pd.DataFrame
        Normalized measurements in log order

    Returns:
    --------
    pd.DataFrame
        Copy with added columns:
        - tRxGnssNanos: reception time since GPS epoch (ns, float)
        - GpsWeekNumber: GPS week of reception
        - tRxSeconds: reception time of week (s)
        - tTxSeconds: transmission time of week (s)
        - PrSeconds: raw pseudorange (s)
        - PrM: raw pseudorange (m)
        - PrSigmaM: pseudorange uncertainty (m)
    """
    df = measurements.copy()
    if df.empty:
        for col in ['tRxGnssNanos', 'GpsWeekNumber', 'tRxSeconds', 'tTxSeconds',
                    'PrSeconds', 'PrM', 'PrSigmaM']:
            df[col] = pd.Series(dtype='float64')
        return df

    full_bias0 = int(df['FullBiasNanos'].iloc[0])
    bias0 = float(df['BiasNanos'].iloc[0])

    # tRxGnssNanos = TimeNanos + TimeOffsetNanos - (FullBiasNanos0 + BiasNanos0)
    whole = df['TimeNanos'].astype('int64') - full_bias0
    frac = df['TimeOffsetNanos'].astype(float) - bias0
    df['tRxGnssNanos'] = whole.astype(float) + frac

    week = np.floor(df['tRxGnssNanos'] / WEEK_NANOS).astype('int64')
    df['GpsWeekNumber'] = week
    df['tRxSeconds'] = 1e-9 * ((whole - week * WEEK_NANOS).astype(float) + frac)
    df['tTxSeconds'] = 1e-9 * (df['ReceivedSvTimeNanos'].astype(float)
                               + df['TimeOffsetNanos'].astype(float))

    # differenced in whole nanoseconds
    pr_whole = whole - week * WEEK_NANOS - df['ReceivedSvTimeNanos'].astype('int64')
    pr_frac = frac - df['TimeOffsetNanos'].astype(float)
    df['PrSeconds'] = 1e-9 * (pr_whole.astype(float) + pr_frac)
    df['PrM'] = CLIGHT * df['PrSeconds']
    df['PrSigmaM'] = CLIGHT * 1e-9 * df['ReceivedSvTimeUncertaintyNanos']
    return df


def usable_mask(measurements: pd.DataFrame, max_seconds: float = PR_MAX_SECONDS) -> pd.Series:
    """Rows whose pseudorange is below ``max_seconds`` of signal travel time"""
    return measurements['PrSeconds'] < max_seconds


def exclude_invalid(measurements: pd.DataFrame, max_seconds: float = PR_MAX_SECONDS) -> pd.DataFrame:
    """
    Drop measurements with an ambiguous transmit time

    Pseudoranges of ``max_seconds`` or more (about 30000 km at 0.1 s) come
    from an unresolved week rollover or a garbage receive time. They are
    dropped without error; the count is logged.
    """
    mask = usable_mask(measurements, max_seconds)
    excluded = int((~mask).sum())
    if excluded:
        logger.debug(f"Excluded {excluded} measurements with pseudorange >= {max_seconds} s")
    return measurements.loc[mask]
