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

"""
Satellite computation module.

Position and clock of GPS satellites from broadcast ephemeris, following
the user algorithm of IS-GPS-200.

Modules
-------
clock : module
    Satellite clock polynomial and relativistic correction
satellite_position : module
    Kepler orbit propagation to ECEF position

Usage Examples
--------------
    >>> from pyrawgnss.satellite import compute_satellite_states
    >>> states = compute_satellite_states(ephemerides, transmit_times)
    >>> states['G05'].position
"""

from .clock import *
from .satellite_position import *
