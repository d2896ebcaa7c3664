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

"""Positioning pipeline from raw measurements to receiver estimates

    measurements -> receiver timestamps -> pseudoranges -> epochs
    per epoch: exclusion filter, dedup, ephemeris lookup, satellite states
    epochs in order -> least-squares fold -> estimates
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd

from ..config import ProcessingConfig
from ..core.constants import CLIGHT
from ..core.exceptions import EphemerisError
from ..io.gnss_log import read_gnss_log
from ..io.solution_writer import estimates_to_dataframe
from ..satellite.satellite_position import compute_satellite_states
from .ephemeris import EphemerisProvider, RinexEphemerisProvider, prefetch_ephemerides
from .epochs import assign_epochs, iter_epochs
from .pseudorange import compute_pseudoranges, exclude_invalid, receiver_timestamps
from .spp import EpochData, fold_epochs

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of a pipeline run

    Attributes
    ----------
    estimates : list[ReceiverEstimate]
        One estimate per solved epoch, in epoch order
    skipped : dict[int, str]
        Reason per epoch that produced no estimate
    fixes : pd.DataFrame or None
        Android fixes of the log, when read from a file
    """
    estimates: list = field(default_factory=list)
    skipped: dict = field(default_factory=dict)
    fixes: Optional[pd.DataFrame] = None

    def to_dataframe(self) -> pd.DataFrame:
        """Estimates as an LLH/NED table"""
        return estimates_to_dataframe(self.estimates)


class PositioningPipeline:
    """
    Epoch-by-epoch least-squares positioning

    Parameters
    ----------
    provider : EphemerisProvider
        Source of broadcast ephemerides
    config : ProcessingConfig, optional
        Processing tunables; defaults when omitted
    """

    def __init__(self, provider: EphemerisProvider, config: Optional[ProcessingConfig] = None):
        self.provider = provider
        self.config = config or ProcessingConfig()

    def prepare(self, measurements: pd.DataFrame) -> pd.DataFrame:
        """Add receiver timestamps, raw pseudoranges and epoch ids"""
        df = receiver_timestamps(measurements)
        df = compute_pseudoranges(df)
        df = assign_epochs(df, gap=self.config.epoch_gap)
        logger.info(f"{len(df)} measurements in {df['Epoch'].nunique()} epochs")
        return df

    def _usable_rows(self, rows: pd.DataFrame) -> pd.DataFrame:
        rows = exclude_invalid(rows, self.config.max_pseudorange_seconds)
        duplicated = rows['SvName'].duplicated(keep='first')
        if duplicated.any():
            logger.debug(f"Dropped {int(duplicated.sum())} repeated satellite rows")
        return rows.loc[~duplicated]

    def _lookup(self, requests: dict) -> dict:
        if self.config.prefetch_workers > 0:
            return prefetch_ephemerides(self.provider, requests,
                                        workers=self.config.prefetch_workers,
                                        timeout=self.config.fetch_timeout)

        ephemerides = {}
        for epoch, (timestamp, satellites) in requests.items():
            try:
                ephemerides[epoch] = self.provider.get_ephemeris(timestamp, satellites)
            except EphemerisError as e:
                logger.warning(f"Ephemeris request for epoch {epoch} failed: {e}")
                ephemerides[epoch] = {}
            except Exception as e:
                logger.error(f"Ephemeris request for epoch {epoch} raised {type(e).__name__}: {e}")
                ephemerides[epoch] = {}
        return ephemerides

    def _epoch_data(self, epoch: int, rows: pd.DataFrame, ephemerides: dict) -> EpochData:
        timestamp = rows['Timestamp'].iloc[0]
        missing = sorted(set(rows['SvName']) - set(ephemerides))
        if missing:
            logger.debug(f"Epoch {epoch}: no ephemeris for {', '.join(missing)}")
        rows = rows[rows['SvName'].isin(ephemerides)]
        satellites = list(rows['SvName'])

        transmit_times = dict(zip(satellites, rows['tTxSeconds']))
        states = compute_satellite_states(
            {sv: ephemerides[sv] for sv in satellites}, transmit_times,
            tol=self.config.kepler_tolerance, max_iter=self.config.kepler_max_iterations)

        clock = np.array([states[sv].clock_bias for sv in satellites], dtype=float)
        if self.config.apply_relativistic:
            clock = clock + np.array([states[sv].relativistic for sv in satellites], dtype=float)

        return EpochData(
            epoch=epoch,
            timestamp=timestamp,
            satellites=satellites,
            sat_positions=np.array([states[sv].position for sv in satellites]).reshape(-1, 3),
            pseudoranges=rows['PrM'].to_numpy(dtype=float) + CLIGHT * clock,
        )

    def build_epochs(self, prepared: pd.DataFrame):
        """
        Assemble solver inputs for every epoch

        Parameters
        ----------
        prepared : pd.DataFrame
            Output of ``prepare``

        Returns
        -------
        epoch_data : list[EpochData]
            Epochs with enough usable satellites, in ascending order
        skipped : dict[int, str]
            Epochs not attempted and why
        """
        candidates = {}
        skipped = {}
        for epoch, rows in iter_epochs(prepared):
            usable = self._usable_rows(rows)
            if len(usable) < self.config.min_epoch_satellites:
                reason = (f"{len(usable)} usable satellites, "
                          f"{self.config.min_epoch_satellites} required")
                logger.debug(f"Epoch {epoch} not attempted: {reason}")
                skipped[epoch] = reason
                continue
            candidates[epoch] = usable

        requests = {epoch: (rows['Timestamp'].iloc[0], list(rows['SvName']))
                    for epoch, rows in candidates.items()}
        ephemerides = self._lookup(requests)

        epoch_data = [self._epoch_data(epoch, rows, ephemerides.get(epoch, {}))
                      for epoch, rows in candidates.items()]
        return epoch_data, skipped

    def run(self, measurements: pd.DataFrame, initial_guess=None) -> PipelineResult:
        """
        Solve every epoch of a measurement table

        Parameters
        ----------
        measurements : pd.DataFrame
            Normalized measurements in log order
        initial_guess : array_like, optional
            Seed of the first epoch; ``config.initial_guess`` when omitted

        Returns
        -------
        PipelineResult
            Estimates in epoch order and the skipped epochs
        """
        start = time.time()
        if initial_guess is None:
            initial_guess = self.config.initial_guess

        prepared = self.prepare(measurements)
        epoch_data, skipped = self.build_epochs(prepared)
        estimates, failed = fold_epochs(epoch_data, initial_guess,
                                        tol=self.config.convergence_threshold,
                                        max_iterations=self.config.max_iterations)
        skipped.update(failed)
        skipped = dict(sorted(skipped.items()))

        logger.info(f"Solved {len(estimates)} epochs, skipped {len(skipped)} "
                    f"in {time.time() - start:.2f} s")
        return PipelineResult(estimates=estimates, skipped=skipped)


def process_log(file_path: str, provider: Optional[EphemerisProvider] = None,
                config: Optional[ProcessingConfig] = None) -> PipelineResult:
    """
    Read a GnssLogger file and solve every epoch

    Parameters
    ----------
    file_path : str
        GnssLogger text log
    provider : EphemerisProvider, optional
        Ephemeris source; a ``RinexEphemerisProvider`` over
        ``config.ephemeris_dir`` when omitted
    config : ProcessingConfig, optional
        Processing tunables

    Returns
    -------
    PipelineResult
        Estimates, skipped epochs and the Android fixes of the log
    """
    config = config or ProcessingConfig()
    if provider is None:
        provider = RinexEphemerisProvider(config.ephemeris_dir, download=config.download)

    fixes, measurements = read_gnss_log(file_path, constellation=config.constellation)
    result = PositioningPipeline(provider, config).run(measurements)
    result.fixes = fixes
    return result
