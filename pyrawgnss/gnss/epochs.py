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

"""Measurement epoch segmentation"""

from typing import Iterator

import pandas as pd

from ..core.constants import EPOCH_GAP
from .pseudorange import receiver_timestamps


def assign_epochs(measurements: pd.DataFrame, gap: float = EPOCH_GAP) -> pd.DataFrame:
    """
    Number measurement epochs by the gap between successive timestamps

    Rows are taken in log order (no re-sorting). The first row opens epoch
    0; a row whose receiver timestamp is more than ``gap`` seconds after
    the previous row's opens the next epoch.

    Parameters:
    -----------
    measurements : pd.DataFrame
        Measurements in log order; ``Timestamp`` is computed when absent
    gap : float
        Epoch boundary threshold in seconds

    Returns:
    --------
    pd.DataFrame
        Copy with an integer ``Epoch`` column
    """
    if 'Timestamp' not in measurements.columns:
        df = receiver_timestamps(measurements)
    else:
        df = measurements.copy()

    step = df['Timestamp'].diff() > pd.Timedelta(seconds=gap)
    df['Epoch'] = step.astype('int64').cumsum()
    return df


def iter_epochs(measurements: pd.DataFrame) -> Iterator[tuple[int, pd.DataFrame]]:
    """Yield ``(epoch_id, rows)`` in ascending epoch order"""
    for epoch, rows in measurements.groupby('Epoch', sort=True):
        yield int(epoch), rows
