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

"""Satellite position computation from broadcast ephemeris

Implements the user algorithm for ephemeris determination of IS-GPS-200
Table 20-IV, vectorized over the satellites of one measurement epoch.
Earth rotation during signal transit is not corrected.
"""

import logging
from typing import Mapping

import numpy as np

from ..core.constants import KEPLER_MAXITR, KEPLER_TOL, MU_GPS, OMGE
from ..core.data_structures import EphemerisRecord, SatelliteState
from .clock import relativistic_correction, satellite_clock_bias, wrap_week

logger = logging.getLogger(__name__)

_FIELDS = ('toe', 'toc', 'sqrt_a', 'e', 'm0', 'delta_n', 'omega0',
           'omega_dot', 'omega', 'i0', 'idot', 'cus', 'cuc', 'crs', 'crc',
           'cis', 'cic', 'af0', 'af1', 'af2')


def solve_kepler(M, e, tol: float = KEPLER_TOL, max_iter: int = KEPLER_MAXITR):
    """
    Solve Kepler's equation ``E = M + e sin(E)`` by fixed-point iteration

    Iteration starts at ``E = M`` and stops once every satellite moved by
    less than ``tol`` in the last update, or after ``max_iter`` updates.
    Satellites that have not converged keep their last iterate.

    Parameters:
    -----------
    M : np.ndarray
        Mean anomaly (rad)
    e : np.ndarray
        Eccentricity
    tol : float
        Convergence tolerance on the update magnitude (rad)
    max_iter : int
        Hard iteration cap

    Returns:
    --------
    E : np.ndarray
        Eccentric anomaly (rad)
    iterations : int
        Updates performed
    converged : np.ndarray
        Boolean mask, True where the last update was below ``tol``
    """
    M = np.atleast_1d(np.asarray(M, dtype=float))
    e = np.atleast_1d(np.asarray(e, dtype=float))

    E = M.copy()
    err = np.full(M.shape, np.inf)
    iterations = 0
    while np.any(np.abs(err) >= tol) and iterations < max_iter:
        E_new = M + e * np.sin(E)
        err = E_new - E
        E = E_new
        iterations += 1

    return E, iterations, np.abs(err) < tol


def _stack(ephemerides):
    return {name: np.array([getattr(eph, name) for eph in ephemerides], dtype=float)
            for name in _FIELDS}


def eph2pos(ephemerides, transmit_times, tol: float = KEPLER_TOL,
            max_iter: int = KEPLER_MAXITR):
    """
    Compute ECEF positions and clock terms for a batch of satellites

    Parameters:
    -----------
    ephemerides : Sequence[EphemerisRecord]
        One record per satellite
    transmit_times : array_like
        Signal transmission time of each satellite, seconds of week
    tol : float
        Kepler convergence tolerance (rad)
    max_iter : int
        Kepler iteration cap

    Returns:
    --------
    positions : np.ndarray
        ECEF positions (m), shape (N, 3)
    dts : np.ndarray
        Clock polynomial bias (s), shape (N,)
    dtr : np.ndarray
        Relativistic clock correction (s), shape (N,)
    iterations : int
        Kepler iterations spent
    converged : np.ndarray
        Kepler convergence mask, shape (N,)
    """
    p = _stack(ephemerides)
    t = np.asarray(transmit_times, dtype=float)

    # Time from ephemeris reference epoch
    t_k = wrap_week(t - p['toe'])

    # Mean motion and mean anomaly
    A = p['sqrt_a'] ** 2
    n = np.sqrt(MU_GPS / A**3) + p['delta_n']
    M_k = p['m0'] + n * t_k

    E_k, iterations, converged = solve_kepler(M_k, p['e'], tol, max_iter)

    sinE = np.sin(E_k)
    cosE = np.cos(E_k)
    e = p['e']

    dtr = relativistic_correction(e, p['sqrt_a'], E_k)
    dts = satellite_clock_bias(p['af0'], p['af1'], p['af2'], p['toc'], t)

    # True anomaly and argument of latitude
    v_k = np.arctan2(np.sqrt(1.0 - e**2) * sinE, cosE - e)
    phi_k = v_k + p['omega']

    # Second harmonic perturbations
    sin2phi = np.sin(2.0 * phi_k)
    cos2phi = np.cos(2.0 * phi_k)
    du_k = p['cus'] * sin2phi + p['cuc'] * cos2phi
    dr_k = p['crs'] * sin2phi + p['crc'] * cos2phi
    di_k = p['cis'] * sin2phi + p['cic'] * cos2phi

    # Corrected argument of latitude, radius and inclination
    u_k = phi_k + du_k
    r_k = A * (1.0 - e * cosE) + dr_k
    i_k = p['i0'] + di_k + p['idot'] * t_k

    # Position in the orbital plane
    x_p = r_k * np.cos(u_k)
    y_p = r_k * np.sin(u_k)

    # Corrected longitude of ascending node
    omega_k = p['omega0'] + (p['omega_dot'] - OMGE) * t_k - OMGE * p['toe']

    cosO = np.cos(omega_k)
    sinO = np.sin(omega_k)
    cosi = np.cos(i_k)
    positions = np.column_stack([
        x_p * cosO - y_p * cosi * sinO,
        x_p * sinO + y_p * cosi * cosO,
        y_p * np.sin(i_k),
    ])

    return positions, dts, dtr, iterations, converged


def compute_satellite_states(ephemerides: Mapping[str, EphemerisRecord],
                             transmit_times: Mapping[str, float],
                             tol: float = KEPLER_TOL,
                             max_iter: int = KEPLER_MAXITR) -> dict[str, SatelliteState]:
    """
    Compute satellite states for the satellites of one epoch

    Satellites are taken from the keys of ``ephemerides``; each must have a
    transmit time.

    Parameters:
    -----------
    ephemerides : Mapping[str, EphemerisRecord]
        Broadcast ephemeris per satellite
    transmit_times : Mapping[str, float]
        Transmission time of week (s) per satellite
    tol : float
        Kepler convergence tolerance (rad)
    max_iter : int
        Kepler iteration cap

    Returns:
    --------
    dict[str, SatelliteState]
        States keyed by satellite, in the order of ``ephemerides``
    """
    svs = list(ephemerides)
    if not svs:
        return {}

    positions, dts, dtr, iterations, converged = eph2pos(
        [ephemerides[sv] for sv in svs],
        [transmit_times[sv] for sv in svs], tol, max_iter)

    if not converged.all():
        stale = [sv for sv, ok in zip(svs, converged) if not ok]
        logger.warning(f"Kepler's equation not converged after {iterations} iterations "
                       f"for {', '.join(stale)}; using last iterate")

    return {
        sv: SatelliteState(
            sv=sv,
            position=positions[i],
            clock_bias=float(dts[i]),
            relativistic=float(dtr[i]),
            kepler_iterations=iterations,
            kepler_converged=bool(converged[i]),
        )
        for i, sv in enumerate(svs)
    }


def compute_satellite_position(eph: EphemerisRecord, transmit_time: float) -> SatelliteState:
    """Compute the state of a single satellite"""
    return compute_satellite_states({eph.sv: eph}, {eph.sv: transmit_time})[eph.sv]
