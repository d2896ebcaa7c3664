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

"""CSV output of receiver estimates and Android location fixes."""

import logging
from pathlib import Path
from typing import Sequence, Union

import numpy as np
import pandas as pd

from ..coordinate.transforms import ecef2llh, ecef2ned
from ..core.constants import R2D
from ..core.data_structures import ReceiverEstimate

logger = logging.getLogger(__name__)

SOLUTION_COLUMNS = [
    'Epoch', 'Timestamp', 'X', 'Y', 'Z', 'ClockBiasMeters', 'ClockBiasSeconds',
    'ResidualNorm', 'NumSatellites', 'Latitude', 'Longitude', 'Altitude',
    'North', 'East', 'Down',
]


def estimates_to_dataframe(estimates: Sequence[ReceiverEstimate]) -> pd.DataFrame:
    """Tabulate estimates with geodetic coordinates and NED offsets.

    Latitude and longitude are in degrees, altitude in meters above the
    WGS84 ellipsoid. North/East/Down are offsets (m) from the first
    estimate's position.
    """
    if not estimates:
        return pd.DataFrame(columns=SOLUTION_COLUMNS)

    xyz = np.array([est.position for est in estimates], dtype=float).reshape(-1, 3)
    llh = ecef2llh(xyz)
    ned = ecef2ned(xyz, llh[0]).reshape(-1, 3)

    frame = pd.DataFrame({
        'Epoch': [est.epoch for est in estimates],
        'Timestamp': [est.timestamp for est in estimates],
        'X': xyz[:, 0],
        'Y': xyz[:, 1],
        'Z': xyz[:, 2],
        'ClockBiasMeters': [est.clock_bias for est in estimates],
        'ClockBiasSeconds': [est.clock_bias_seconds for est in estimates],
        'ResidualNorm': [est.residual_norm for est in estimates],
        'NumSatellites': [est.num_satellites for est in estimates],
        'Latitude': llh[:, 0] * R2D,
        'Longitude': llh[:, 1] * R2D,
        'Altitude': llh[:, 2],
        'North': ned[:, 0],
        'East': ned[:, 1],
        'Down': ned[:, 2],
    })
    return frame[SOLUTION_COLUMNS]


def write_solutions(estimates: Sequence[ReceiverEstimate], path: Union[str, Path]) -> pd.DataFrame:
    """Write estimates to CSV; returns the written table."""
    frame = estimates_to_dataframe(estimates)
    frame.to_csv(path, index=False)
    logger.info(f"Wrote {len(frame)} solutions to {path}")
    return frame


def write_fixes(fixes: pd.DataFrame, path: Union[str, Path]) -> None:
    """Write Android location fixes to CSV."""
    fixes.to_csv(path, index=False)
    logger.info(f"Wrote {len(fixes)} Android fixes to {path}")
