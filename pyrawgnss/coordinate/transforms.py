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

"""WGS84 geodetic and local-level conversions for receiver trajectories

Every function accepts a single point, shape (3,), or a trajectory,
shape (N, 3), and returns the same shape.
"""

import numpy as np

from ..core.constants import FE_WGS84, RE_WGS84

E2_WGS84 = FE_WGS84 * (2.0 - FE_WGS84)  # first eccentricity squared
LLH_TOL = 1e-4                          # ecef2llh convergence on the auxiliary z (m)


def ecef2llh(xyz: np.ndarray) -> np.ndarray:
    """Convert ECEF coordinates to geodetic coordinates

    Iterates on the auxiliary z coordinate for all points at once until
    the largest update is below 0.1 mm. Points on the polar axis get
    longitude 0.

    Parameters
    ----------
    xyz : np.ndarray
        ECEF coordinates [x, y, z] in meters, shape (3,) or (N, 3)

    Returns
    -------
    np.ndarray
        Geodetic coordinates [lat, lon, height] where:
        - lat: latitude in radians (-π/2 to π/2)
        - lon: longitude in radians (-π to π)
        - height: height above WGS84 ellipsoid in meters

    Examples
    --------
    >>> ecef = np.array([-2303919.0, -3638443.0, 4688622.0])  # Seattle approx.
    >>> llh = ecef2llh(ecef)
    >>> lat_deg, lon_deg = np.degrees(llh[0]), np.degrees(llh[1])
    """
    xyz = np.asarray(xyz, dtype=float)
    x, y, z0 = xyz[..., 0], xyz[..., 1], xyz[..., 2]
    r2 = x * x + y * y

    z = z0
    v = np.full_like(z0, RE_WGS84)
    step = np.inf
    while step >= LLH_TOL:
        sinp = z / np.sqrt(r2 + z * z)
        v = RE_WGS84 / np.sqrt(1.0 - E2_WGS84 * sinp * sinp)
        z_next = z0 + v * E2_WGS84 * sinp
        step = np.max(np.abs(z_next - z), initial=0.0)
        z = z_next

    polar = r2 <= 1e-12
    r = np.sqrt(np.where(polar, 1.0, r2))
    lat = np.where(polar, np.where(z0 > 0.0, np.pi / 2.0, -np.pi / 2.0), np.arctan(z / r))
    lon = np.where(polar, 0.0, np.arctan2(y, x))
    h = np.sqrt(r2 + z * z) - v

    return np.stack([lat, lon, h], axis=-1)


def llh2ecef(llh: np.ndarray) -> np.ndarray:
    """Convert geodetic coordinates to ECEF coordinates

    Parameters
    ----------
    llh : np.ndarray
        Geodetic coordinates [lat, lon, height] (rad, rad, m), shape (3,) or (N, 3)

    Returns
    -------
    np.ndarray
        ECEF coordinates [x, y, z] in meters
    """
    llh = np.asarray(llh, dtype=float)
    lat, lon, h = llh[..., 0], llh[..., 1], llh[..., 2]

    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    N = RE_WGS84 / np.sqrt(1.0 - E2_WGS84 * sin_lat**2)

    return np.stack([
        (N + h) * cos_lat * np.cos(lon),
        (N + h) * cos_lat * np.sin(lon),
        (N * (1.0 - E2_WGS84) + h) * sin_lat,
    ], axis=-1)


def ecef2enu_dcm(org_llh: np.ndarray) -> np.ndarray:
    """Rotation matrix from ECEF to local ENU at a geodetic origin"""
    sin_lat, cos_lat = np.sin(org_llh[0]), np.cos(org_llh[0])
    sin_lon, cos_lon = np.sin(org_llh[1]), np.cos(org_llh[1])

    return np.array([
        [-sin_lon, cos_lon, 0.0],
        [-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat],
        [cos_lat * cos_lon, cos_lat * sin_lon, sin_lat]
    ])


def ecef2enu(xyz: np.ndarray, org_llh: np.ndarray) -> np.ndarray:
    """Convert ECEF to local ENU coordinates

    Parameters
    ----------
    xyz : np.ndarray
        ECEF coordinates [x, y, z] in meters, shape (3,) or (N, 3)
    org_llh : np.ndarray
        Origin geodetic coordinates [lat, lon, height] (rad, rad, m)

    Returns
    -------
    np.ndarray
        Local ENU coordinates [e, n, u] in meters, same shape as ``xyz``
    """
    dx = np.asarray(xyz, dtype=float) - llh2ecef(org_llh)
    return dx @ ecef2enu_dcm(org_llh).T


def ecef2ned(xyz: np.ndarray, org_llh: np.ndarray) -> np.ndarray:
    """
    Convert ECEF to local NED coordinates

    Parameters:
    -----------
    xyz : np.ndarray
        ECEF coordinates [x, y, z] (m), shape (3,) or (N, 3)
    org_llh : np.ndarray
        Origin geodetic coordinates [lat, lon, height] (rad, rad, m)

    Returns:
    --------
    ned : np.ndarray
        Local NED coordinates [n, e, d] (m)
    """
    enu = ecef2enu(xyz, org_llh)
    return np.stack([enu[..., 1], enu[..., 0], -enu[..., 2]], axis=-1)
