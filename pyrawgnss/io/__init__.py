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

"""I/O utilities for pyrawgnss."""

from .gnss_log import normalize_fixes, normalize_measurements, parse_gnss_log, read_gnss_log
from .rinex_nav import eph_to_record, read_nav, read_nav_records
from .solution_writer import estimates_to_dataframe, write_fixes, write_solutions

__all__ = [
    'parse_gnss_log', 'read_gnss_log', 'normalize_measurements', 'normalize_fixes',
    'read_nav', 'read_nav_records', 'eph_to_record',
    'estimates_to_dataframe', 'write_solutions', 'write_fixes',
]
