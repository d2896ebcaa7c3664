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

"""Core data structures for GNSS processing"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import numpy as np

from .constants import CLIGHT, WEEK_SECONDS
from .time import timediff


@dataclass(frozen=True)
class EphemerisRecord:
    """GPS broadcast ephemeris for one satellite.

    Keplerian elements, harmonic perturbation coefficients and the satellite
    clock polynomial as broadcast in the LNAV message (IS-GPS-200 Table 20-III).
    Records are owned by an ephemeris provider and never mutated.

    Attributes
    ----------
    sv : str
        Satellite identifier, e.g. ``G05``
    week : int
        GPS week of ``toe``
    toe : float
        Time of ephemeris, seconds of week
    toc : float
        Time of clock, seconds of week
    sqrt_a : float
        Square root of the semi-major axis (m^0.5)
    e : float
        Eccentricity
    m0 : float
        Mean anomaly at reference time (rad)
    delta_n : float
        Mean motion difference from computed value (rad/s)
    omega0 : float
        Longitude of ascending node at weekly epoch (rad)
    omega_dot : float
        Rate of right ascension (rad/s)
    omega : float
        Argument of perigee (rad)
    i0 : float
        Inclination at reference time (rad)
    idot : float
        Rate of inclination (rad/s)
    cus, cuc : float
        Argument of latitude harmonic corrections (rad)
    crs, crc : float
        Orbit radius harmonic corrections (m)
    cis, cic : float
        Inclination harmonic corrections (rad)
    af0, af1, af2 : float
        Clock bias (s), drift (s/s) and drift rate (s/s^2)
    svh : int
        SV health, 0 when healthy
    """
    sv: str
    week: int
    toe: float
    toc: float
    sqrt_a: float
    e: float
    m0: float
    delta_n: float
    omega0: float
    omega_dot: float
    omega: float
    i0: float
    idot: float
    cus: float = 0.0
    cuc: float = 0.0
    crs: float = 0.0
    crc: float = 0.0
    cis: float = 0.0
    cic: float = 0.0
    af0: float = 0.0
    af1: float = 0.0
    af2: float = 0.0
    svh: int = 0

    @property
    def reference_time(self) -> float:
        """Issue time of the record (``toc``) in GPS seconds since the GPS epoch.

        ``toc`` is placed in the week of ``toe``, moved by one week when the
        two straddle a week boundary.
        """
        dt = timediff(self.toc, self.toe)
        return self.week * WEEK_SECONDS + self.toe + dt


@dataclass
class SatelliteState:
    """Satellite position and clock at signal transmission time.

    Attributes
    ----------
    sv : str
        Satellite identifier
    position : np.ndarray
        ECEF position (m), shape (3,)
    clock_bias : float
        Satellite clock polynomial correction (s)
    relativistic : float
        Relativistic clock correction (s), not included in ``clock_bias``
    kepler_iterations : int
        Fixed-point iterations spent on Kepler's equation
    kepler_converged : bool
        False when the iteration cap was hit before the tolerance
    """
    sv: str
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    clock_bias: float = 0.0
    relativistic: float = 0.0
    kepler_iterations: int = 0
    kepler_converged: bool = True

    @property
    def radius(self) -> float:
        """Distance from the Earth's center (m)"""
        return float(np.linalg.norm(self.position))


@dataclass
class ReceiverEstimate:
    """Receiver position and clock solution for one measurement epoch.

    Attributes
    ----------
    epoch : int
        Measurement epoch id
    timestamp : datetime or None
        Receiver timestamp of the epoch (GPS time scale)
    position : np.ndarray
        ECEF position (m), shape (3,)
    clock_bias : float
        Receiver clock bias expressed in meters
    residual_norm : float
        Norm of the pseudorange residual vector at the solution (m)
    satellites : list[str]
        Satellites used in the solution
    iterations : int
        Gauss-Newton iterations to convergence
    """
    epoch: int
    timestamp: Optional[datetime] = None
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    clock_bias: float = 0.0
    residual_norm: float = 0.0
    satellites: list = field(default_factory=list)
    iterations: int = 0

    @property
    def clock_bias_seconds(self) -> float:
        """Receiver clock bias in seconds"""
        return self.clock_bias / CLIGHT

    @property
    def num_satellites(self) -> int:
        return len(self.satellites)

    @property
    def llh(self) -> np.ndarray:
        """Geodetic position [lat (rad), lon (rad), height (m)]"""
        from ..coordinate import ecef2llh
        return ecef2llh(self.position)

    def state(self) -> np.ndarray:
        """Solver state vector [x, y, z, b]"""
        return np.append(self.position, self.clock_bias)
