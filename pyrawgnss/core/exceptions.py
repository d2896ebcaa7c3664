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

"""Exception types raised by the positioning pipeline"""


class GnssError(Exception):
    """Base class for all pyrawgnss errors"""


class ParseError(GnssError, ValueError):
    """Malformed or unrecognized record in a raw measurement log.

    Parameters
    ----------
    message : str
        Description of the problem
    line : int, optional
        1-based line number in the log, when known
    """

    def __init__(self, message, line=None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class EphemerisError(GnssError):
    """Broadcast ephemeris could not be fetched or decoded"""


class PositioningError(GnssError):
    """Failure confined to a single measurement epoch"""


class SingularGeometryError(PositioningError):
    """Too few satellites, or a degenerate geometry matrix"""


class ConvergenceError(PositioningError):
    """Least squares did not converge within the configured iteration cap"""
