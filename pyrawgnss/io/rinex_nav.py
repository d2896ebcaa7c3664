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

"""Thin wrappers around cssrlib.rinex for broadcast navigation files."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import List

from cssrlib.gnss import Nav, sat2prn, sys2char, time2gpst
from cssrlib.rinex import rnxdec

from ..core.data_structures import EphemerisRecord
from ..core.exceptions import EphemerisError

logger = logging.getLogger(__name__)


def read_nav(filename: str) -> Nav:
    """Decode a RINEX navigation file into a cssrlib Nav object."""

    if not Path(filename).exists():
        raise FileNotFoundError(f"Navigation file not found: {filename}")

    nav = Nav()
    decoder = rnxdec()
    try:
        decoder.decode_nav(str(filename), nav, append=False)
    except (ValueError, IndexError, KeyError, AttributeError, TypeError, OSError) as e:
        raise EphemerisError(f"Failed to decode navigation file {filename}: {e}") from e
    return nav


def eph_to_record(eph) -> EphemerisRecord:
    """Convert a cssrlib ``Eph`` into an :class:`EphemerisRecord`.

    cssrlib stores the semi-major axis ``A`` and keeps ``toe``/``toc`` as
    ``gtime_t``; both are brought back to broadcast form here.
    """

    sys, prn = sat2prn(eph.sat)
    week, toe = time2gpst(eph.toe)
    _, toc = time2gpst(eph.toc)

    return EphemerisRecord(
        sv=f"{sys2char(sys)}{prn:02d}",
        week=int(week),
        toe=float(toe),
        toc=float(toc),
        sqrt_a=math.sqrt(eph.A),
        e=eph.e,
        m0=eph.M0,
        delta_n=eph.deln,
        omega0=eph.OMG0,
        omega_dot=eph.OMGd,
        omega=eph.omg,
        i0=eph.i0,
        idot=eph.idot,
        cus=eph.cus,
        cuc=eph.cuc,
        crs=eph.crs,
        crc=eph.crc,
        cis=eph.cis,
        cic=eph.cic,
        af0=eph.f0,
        af1=eph.f1,
        af2=eph.f2,
        svh=int(getattr(eph, 'svh', 0)),
    )


def read_nav_records(filename: str, constellation: str = 'G') -> List[EphemerisRecord]:
    """Decode a RINEX navigation file into records of one constellation."""

    nav = read_nav(filename)
    records = [rec for rec in (eph_to_record(eph) for eph in nav.eph if eph.A > 0.0)
               if rec.sv.startswith(constellation)]
    logger.info(f"Loaded {len(records)} '{constellation}' ephemerides from {filename}")
    return records
