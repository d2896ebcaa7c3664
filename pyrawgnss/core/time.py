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

"""GPS Time Conversions

Receiver timestamps produced by the pseudorange calculator are tz-aware
``datetime`` objects that count GPS time from the GPS epoch (no leap
seconds applied). Naive datetimes passed to the helpers below are taken
to be in that same scale.
"""

from datetime import datetime, timedelta, timezone

from .constants import GPS_UTC_OFFSET, GPST0, WEEK_SECONDS

GPS_EPOCH = datetime(*GPST0, tzinfo=timezone.utc)


def _aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def datetime2gpst(dt: datetime) -> float:
    """GPS seconds since the GPS epoch for a datetime in the GPS time scale"""
    return (_aware(dt) - GPS_EPOCH).total_seconds()


def gpst2datetime(gps_seconds: float) -> datetime:
    """Tz-aware datetime in the GPS time scale"""
    return GPS_EPOCH + timedelta(seconds=gps_seconds)


def gpst2utc(dt: datetime, leap_seconds: float = GPS_UTC_OFFSET) -> datetime:
    """Convert a GPS-scale datetime to UTC"""
    return _aware(dt) - timedelta(seconds=leap_seconds)


def timediff(t1: float, t2: float) -> float:
    """Difference of two times of week, wrapped into +/- half a week"""
    dt = t1 - t2
    if dt > WEEK_SECONDS / 2:
        dt -= WEEK_SECONDS
    elif dt < -WEEK_SECONDS / 2:
        dt += WEEK_SECONDS
    return dt
