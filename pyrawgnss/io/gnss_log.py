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

"""Android GnssLogger raw measurement log reader"""

import csv
import logging
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from ..core.constants import constellation_char, sv_name
from ..core.exceptions import ParseError

logger = logging.getLogger(__name__)

FIX_TAG = 'Fix'
RAW_TAG = 'Raw'

# Other GnssLogger record types; recognized and skipped
IGNORED_TAGS = frozenset({
    'Status', 'Nav', 'Agc', 'OrientationDeg', 'UncalAccel', 'UncalGyro',
    'UncalMag', 'Accel', 'Gyro', 'Mag', 'GameRotationVector',
    'RotationVector', 'Pressure',
})

INT_COLUMNS = ['TimeNanos', 'FullBiasNanos', 'ReceivedSvTimeNanos']
FLOAT_COLUMNS = ['Cn0DbHz', 'ReceivedSvTimeUncertaintyNanos',
                 'PseudorangeRateMetersPerSecond']
REQUIRED_COLUMNS = ['Svid', 'ConstellationType'] + INT_COLUMNS + FLOAT_COLUMNS
OPTIONAL_COLUMNS = ['BiasNanos', 'TimeOffsetNanos']

FIX_NUMERIC_COLUMNS = [
    'Latitude', 'Longitude', 'Altitude', 'Speed', 'Accuracy', 'Bearing',
    'UnixTimeMillis', 'SpeedAccuracyMeters', 'BearingAccuracyDegrees',
    'elapsedRealtimeNanos', 'VerticalAccuracyMeters',
]

# GnssLogger v3 names of the fix columns
FIX_COLUMN_ALIASES = {
    'LatitudeDegrees': 'Latitude',
    'LongitudeDegrees': 'Longitude',
    'AltitudeMeters': 'Altitude',
    'SpeedMps': 'Speed',
    'AccuracyMeters': 'Accuracy',
    'BearingDegrees': 'Bearing',
    'SpeedAccuracyMps': 'SpeedAccuracyMeters',
}


def _split_records(lines: Iterable[str], strict: bool):
    """Collect Fix and Raw rows with the columns of their latest header"""
    headers = {}
    rows = {FIX_TAG: [], RAW_TAG: []}

    for lineno, row in enumerate(csv.reader(lines), start=1):
        if not row or not any(field.strip() for field in row):
            continue
        tag = row[0].strip()

        if tag.startswith('#'):
            if FIX_TAG in tag:
                headers[FIX_TAG] = [c.strip() for c in row[1:]]
            elif RAW_TAG in tag:
                headers[RAW_TAG] = [c.strip() for c in row[1:]]
            continue

        if tag in rows:
            columns = headers.get(tag)
            if columns is None:
                raise ParseError(f"'{tag}' record before its header", line=lineno)
            values = row[1:]
            if len(values) != len(columns):
                raise ParseError(
                    f"'{tag}' record has {len(values)} fields, header has {len(columns)}",
                    line=lineno)
            rows[tag].append(dict(zip(columns, values)))
        elif tag in IGNORED_TAGS:
            continue
        elif strict:
            raise ParseError(f"unrecognized record tag '{tag}'", line=lineno)
        else:
            logger.warning(f"Skipping unrecognized record tag '{tag}' on line {lineno}")

    return rows[FIX_TAG], rows[RAW_TAG]


def _to_numeric(df: pd.DataFrame, column: str, dtype: str) -> pd.Series:
    values = df[column].astype(str).str.strip()
    empty = values == ''
    if empty.any():
        raise ParseError(f"required field '{column}' is empty in {int(empty.sum())} records")
    try:
        return pd.to_numeric(values).astype(dtype)
    except (ValueError, TypeError) as e:
        raise ParseError(f"field '{column}' is not numeric: {e}") from e


def _to_optional_numeric(df: pd.DataFrame, column: str) -> pd.Series:
    """Empty or absent values become 0, malformed ones NaN"""
    if column not in df.columns:
        return pd.Series(0.0, index=df.index)
    values = df[column].astype(str).str.strip().replace('', '0')
    return pd.to_numeric(values, errors='coerce').astype('float64')


def normalize_measurements(raw: pd.DataFrame, constellation: str = 'G') -> pd.DataFrame:
    """
    Convert a table of raw GnssLogger fields to typed, filtered measurements

    Parameters:
    -----------
    raw : pd.DataFrame
        Raw records with string fields, columns named as in the log header
    constellation : str
        One-letter constellation code to keep ('G' for GPS)

    Returns:
    --------
    pd.DataFrame
        Measurements of the requested constellation with added columns
        ``Constellation`` and ``SvName``; nanosecond counters as int64,
        everything else as float64. Empty optional fields default to zero;
        rows with a malformed optional field are dropped.

    Raises:
    -------
    ParseError
        If a required column is missing, empty or not numeric
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in raw.columns]
    if missing:
        raise ParseError(f"Missing required columns: {missing}")

    df = raw.copy()
    df['ConstellationType'] = _to_numeric(df, 'ConstellationType', 'int64')
    df['Svid'] = _to_numeric(df, 'Svid', 'int64')
    df['Constellation'] = df['ConstellationType'].map(constellation_char)
    df['SvName'] = [sv_name(c, s) for c, s in zip(df['Constellation'], df['Svid'])]

    keep = df['Constellation'] == constellation
    dropped = int((~keep).sum())
    if dropped:
        logger.debug(f"Dropped {dropped} measurements outside constellation '{constellation}'")
    df = df.loc[keep].reset_index(drop=True)

    for col in INT_COLUMNS:
        df[col] = _to_numeric(df, col, 'int64')
    for col in FLOAT_COLUMNS:
        df[col] = _to_numeric(df, col, 'float64')
    for col in OPTIONAL_COLUMNS:
        df[col] = _to_optional_numeric(df, col)

    malformed = df[OPTIONAL_COLUMNS].isna().any(axis=1)
    if malformed.any():
        logger.warning(f"Dropped {int(malformed.sum())} measurements with malformed "
                       f"{'/'.join(OPTIONAL_COLUMNS)}")
        df = df.loc[~malformed].reset_index(drop=True)

    return df


def normalize_fixes(raw: pd.DataFrame) -> pd.DataFrame:
    """Coerce the numeric columns of Android location fixes

    v3 column names are mapped to the v2 ones (``LatitudeDegrees`` to
    ``Latitude``, ...).
    """
    df = raw.rename(columns=FIX_COLUMN_ALIASES)
    for col in FIX_NUMERIC_COLUMNS:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col].astype(str).str.strip(), errors='coerce')
    return df


def parse_gnss_log(lines: Iterable[str], constellation: str = 'G',
                   strict: bool = True) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Parse GnssLogger records into location fixes and raw measurements

    Parameters:
    -----------
    lines : Iterable[str]
        Lines of a GnssLogger text log
    constellation : str
        One-letter constellation code to keep
    strict : bool
        Raise ParseError on unknown record tags instead of skipping them

    Returns:
    --------
    tuple[pd.DataFrame, pd.DataFrame]
        (fixes, measurements) in log order
    """
    fix_rows, raw_rows = _split_records(lines, strict)
    if not raw_rows:
        raise ParseError("log contains no 'Raw' measurement records")

    fixes = normalize_fixes(pd.DataFrame(fix_rows))
    measurements = normalize_measurements(pd.DataFrame(raw_rows), constellation)

    logger.info(f"Parsed {len(raw_rows)} raw records, kept {len(measurements)} "
                f"'{constellation}' measurements and {len(fixes)} fixes")
    return fixes, measurements


def read_gnss_log(file_path: str, constellation: str = 'G',
                  strict: bool = True,
                  encoding: Optional[str] = 'utf-8') -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Read a GnssLogger file into location fixes and raw measurements

    Parameters:
    -----------
    file_path : str
        Path to the ``gnss_log_*.txt`` file
    constellation : str
        One-letter constellation code to keep
    strict : bool
        Raise ParseError on unknown record tags instead of skipping them
    encoding : str, optional
        Text encoding of the log

    Returns:
    --------
    tuple[pd.DataFrame, pd.DataFrame]
        (fixes, measurements)
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"GNSS log not found: {file_path}")

    logger.info(f"Reading GNSS log: {path}")
    with path.open('r', encoding=encoding, newline='') as fh:
        return parse_gnss_log(fh, constellation=constellation, strict=strict)
