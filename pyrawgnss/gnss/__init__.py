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

"""GNSS processing module.

Turns Android raw measurements into receiver positions: receiver time and
pseudorange generation, epoch segmentation, broadcast ephemeris handling,
and the single point positioning (SPP) least-squares solver.

Key Components:
- Pseudorange generation from Android clock fields
- Epoch segmentation by timestamp gap
- Ephemeris providers (in-memory, daily broadcast RINEX with download)
- Gauss-Newton single point positioning with epoch-to-epoch seeding
- End-to-end positioning pipeline

Examples:
    >>> from pyrawgnss.gnss import EphemerisStore, PositioningPipeline
    >>> pipeline = PositioningPipeline(EphemerisStore(records))
    >>> result = pipeline.run(measurements)
    >>> result.to_dataframe()
"""

from .ephemeris import (
    EphemerisProvider,
    EphemerisStore,
    RinexEphemerisProvider,
    prefetch_ephemerides,
    select_ephemeris,
)
from .epochs import assign_epochs, iter_epochs
from .pipeline import PipelineResult, PositioningPipeline, process_log
from .pseudorange import compute_pseudoranges, exclude_invalid, receiver_timestamps
from .spp import EpochData, fold_epochs, least_squares, solve_epoch

__all__ = [
    'EphemerisProvider', 'EphemerisStore', 'RinexEphemerisProvider',
    'prefetch_ephemerides', 'select_ephemeris',
    'assign_epochs', 'iter_epochs',
    'receiver_timestamps', 'compute_pseudoranges', 'exclude_invalid',
    'EpochData', 'least_squares', 'solve_epoch', 'fold_epochs',
    'PositioningPipeline', 'PipelineResult', 'process_log',
]
