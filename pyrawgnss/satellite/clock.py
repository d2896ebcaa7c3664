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

"""Satellite clock computation and correction"""


import numpy as np

from ..core.constants import F_REL, HALF_WEEK, WEEK_SECONDS


def wrap_week(dt):
    """Wrap time-of-week differences into +/- half a week (scalar or array)"""
    dt = np.asarray(dt, dtype=float)
    dt = np.where(dt > HALF_WEEK, dt - WEEK_SECONDS, dt)
    return np.where(dt < -HALF_WEEK, dt + WEEK_SECONDS, dt)


def satellite_clock_bias(af0, af1, af2, toc, transmit_time):
    """
    Compute satellite clock bias from the broadcast clock polynomial

    ``dts = af0 + af1 * (t - toc) + af2 * (t - toc)^2``

    Parameters:
    -----------
    af0, af1, af2 : float or np.ndarray
        Clock bias (s), drift (s/s) and drift rate (s/s^2)
    toc : float or np.ndarray
        Time of clock, seconds of week
    transmit_time : float or np.ndarray
        Signal transmission time, seconds of week

    Returns:
    --------
    dts : float or np.ndarray
        Satellite clock bias (s), relativistic term excluded
    """
    dt = wrap_week(np.asarray(transmit_time, dtype=float) - toc)
    return af0 + af1 * dt + af2 * dt**2


def relativistic_correction(e, sqrt_a, E):
    """
    Relativistic clock correction due to orbit eccentricity

    ``dtr = F * e * sqrt(A) * sin(E)`` (IS-GPS-200 20.3.3.3.3.1).

    Parameters:
    -----------
    e : float or np.ndarray
        Eccentricity
    sqrt_a : float or np.ndarray
        Square root of semi-major axis (m^0.5)
    E : float or np.ndarray
        Eccentric anomaly (rad)

    Returns:
    --------
    dtr : float or np.ndarray
        Relativistic correction (s)
    """
    return F_REL * e * sqrt_a * np.sin(E)
