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

"""Core GNSS Processing Module.

This module provides the foundation shared by the positioning pipeline:

- **Constants and Parameters**: physical constants, WGS84 and GPS orbit
  parameters, Android constellation codes and processing defaults
- **Data Structures**: broadcast ephemeris records, satellite states and
  per-epoch receiver estimates
- **Time Systems**: GPS seconds, week wrapping and GPS to UTC conversion
- **Exceptions**: the error hierarchy raised by parsing and positioning

Example Usage:
    >>> from pyrawgnss.core import *
    >>>
    >>> datetime2gpst(gpst2datetime(2133 * 604800 + 436815.0))
    1290475215.0
    >>> sv_name('G', 5)
    'G05'
"""

from .constants import *
from .data_structures import *
from .exceptions import *
from .time import *
