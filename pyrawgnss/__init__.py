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
pyrawgnss - GPS positioning from Android raw GNSS measurements

Parses GnssLogger raw measurement logs, generates pseudoranges from the
Android clock fields, computes satellite positions from broadcast ephemeris
and solves receiver position and clock bias epoch by epoch with iterative
least squares.
"""

__version__ = "0.1.0"
__author__ = "pyrawgnss Development Team"
__title__ = "pyrawgnss"
__description__ = "Least-squares GPS positioning from Android raw GNSS measurements"

from .logger import get_logger, setup_logger, setup_logger_from_config
from .core import *
from .satellite import *
from .coordinate import *
from .config import ProcessingConfig, load_config, save_config
from .gnss import (
    EphemerisProvider,
    EphemerisStore,
    PipelineResult,
    PositioningPipeline,
    RinexEphemerisProvider,
    process_log,
)
from .io import read_gnss_log, write_fixes, write_solutions
