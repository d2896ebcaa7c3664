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

"""GNSS Constants and Processing Parameters"""

import numpy as np

# Physical Constants
CLIGHT = 299792458.0  # speed of light (m/s)

# Time Parameters
WEEK_SECONDS = 604800              # seconds per GPS week
WEEK_NANOS = WEEK_SECONDS * 10**9  # nanoseconds per GPS week
HALF_WEEK = WEEK_SECONDS / 2.0
GPST0 = [1980, 1, 6, 0, 0, 0]      # GPS time reference epoch
GPS_UTC_OFFSET = 18.0              # GPS-UTC leap seconds (since 2017)

# Earth Parameters (WGS84)
RE_WGS84 = 6378137.0            # earth semimajor axis (m)
FE_WGS84 = 1.0 / 298.257223563  # earth flattening
OMGE = 7.2921151467E-5          # earth angular velocity (rad/s)

# GPS orbit parameters (IS-GPS-200)
MU_GPS = 3.986005E14            # GPS gravitational constant (m^3/s^2)
F_REL = -4.442807633E-10        # relativistic clock constant (s/m^0.5)

# Unit conversions
R2D = 180.0 / np.pi             # radians to degrees
D2R = np.pi / 180.0             # degrees to radians

# GNSS System IDs
SYS_NONE = 0x00
SYS_GPS = 0x01    # GPS
SYS_GLO = 0x02    # GLONASS
SYS_GAL = 0x04    # Galileo
SYS_BDS = 0x08    # BeiDou
SYS_QZS = 0x10    # QZSS
SYS_SBS = 0x20    # SBAS
SYS_IRN = 0x40    # IRNSS

# Android GnssStatus constellation types
CONSTELLATION_TYPES = {
    1: SYS_GPS,
    2: SYS_SBS,
    3: SYS_GLO,
    4: SYS_QZS,
    5: SYS_BDS,
    6: SYS_GAL,
    7: SYS_IRN,
}

# Processing defaults
EPOCH_GAP = 0.2           # gap starting a new measurement epoch (s)
PR_MAX_SECONDS = 0.1      # pseudoranges at or above this are excluded (s)
EPH_VALIDITY = 4 * 3600.0 # broadcast ephemeris validity window (s)
KEPLER_TOL = 1e-8         # Kepler fixed-point tolerance (rad)
KEPLER_MAXITR = 10        # Kepler iteration cap
LSQ_TOL = 1e-3            # least-squares position step threshold (m)
MIN_SATS = 4              # minimum satellites for a position fix
MIN_EPOCH_SATS = 5        # minimum satellites before an epoch is attempted
SVID_WIDTH = 2            # zero-padded width of the numeric satellite id


SYSTEM_CHARS = {
    SYS_GPS: 'G',
    SYS_GLO: 'R',
    SYS_GAL: 'E',
    SYS_BDS: 'C',
    SYS_QZS: 'J',
    SYS_SBS: 'S',
    SYS_IRN: 'I',
}


def sys2char(sys):
    """RINEX constellation letter of a system ID, ' ' when unknown"""
    return SYSTEM_CHARS.get(sys, ' ')


def constellation_char(constellation_type):
    """Get the one-letter code for an Android constellation type

    Parameters:
    -----------
    constellation_type : int
        Android ``GnssStatus`` constellation type (1 = GPS, 3 = GLONASS, ...)

    Returns:
    --------
    str
        Constellation character, or ' ' for unknown types
    """
    return sys2char(CONSTELLATION_TYPES.get(int(constellation_type), SYS_NONE))


def sv_name(constellation, svid):
    """Build a satellite identifier such as ``G05``"""
    return f"{constellation}{int(svid):0{SVID_WIDTH}d}"
