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

"""Processing configuration

Every tunable of the positioning pipeline in one dataclass, loadable from
and savable to YAML or JSON files.

Example YAML::

    constellation: G
    epoch_gap_ms: 200
    max_pseudorange_seconds: 0.1
    min_epoch_satellites: 5
    ephemeris_dir: ./ephemeris_cache
    logging:
      default_level: INFO
      module_levels:
        pyrawgnss.gnss.spp: DEBUG
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional, Union

import yaml

from .core.constants import (
    EPOCH_GAP,
    KEPLER_MAXITR,
    KEPLER_TOL,
    LSQ_TOL,
    MIN_EPOCH_SATS,
    PR_MAX_SECONDS,
)


@dataclass
class ProcessingConfig:
    """
    Tunables of the positioning pipeline

    Attributes:
        constellation (str): Constellation letter kept from the log ('G')
        epoch_gap_ms (float): Timestamp gap opening a new epoch (ms)
        max_pseudorange_seconds (float): Pseudoranges at or above this are excluded (s)
        min_epoch_satellites (int): Epochs with fewer satellites are not attempted
        kepler_tolerance (float): Kepler fixed-point tolerance (rad)
        kepler_max_iterations (int): Kepler iteration cap
        convergence_threshold (float): Least-squares position step threshold (m)
        max_iterations (int or None): Least-squares iteration cap, unbounded when None
        apply_relativistic (bool): Add the relativistic clock term to pseudoranges
        initial_guess (list): Seed of the first epoch, [x, y, z, b] (m)
        prefetch_workers (int): Threads for ephemeris pre-fetch, 0 disables it
        fetch_timeout (float or None): Per-epoch ephemeris request timeout (s)
        ephemeris_dir (str): Cache directory of broadcast navigation files
        download (bool): Download missing broadcast navigation files
        logging (dict): Passed to ``setup_logger_from_config``
    """
    constellation: str = 'G'
    epoch_gap_ms: float = EPOCH_GAP * 1000.0
    max_pseudorange_seconds: float = PR_MAX_SECONDS
    min_epoch_satellites: int = MIN_EPOCH_SATS
    kepler_tolerance: float = KEPLER_TOL
    kepler_max_iterations: int = KEPLER_MAXITR
    convergence_threshold: float = LSQ_TOL
    max_iterations: Optional[int] = None
    apply_relativistic: bool = False
    initial_guess: list = field(default_factory=lambda: [0.0, 0.0, 0.0, 0.0])
    prefetch_workers: int = 0
    fetch_timeout: Optional[float] = None
    ephemeris_dir: str = './ephemeris_cache'
    download: bool = True
    logging: dict = field(default_factory=dict)

    def __post_init__(self):
        if len(self.constellation) != 1:
            raise ValueError(f"Constellation must be a single letter, got {self.constellation!r}")
        if self.epoch_gap_ms <= 0:
            raise ValueError("epoch_gap_ms must be positive")
        if self.min_epoch_satellites < 4:
            raise ValueError("min_epoch_satellites must be at least 4")
        if len(self.initial_guess) not in (3, 4):
            raise ValueError("initial_guess must be [x, y, z] or [x, y, z, b]")
        self.initial_guess = [float(v) for v in self.initial_guess]

    @property
    def epoch_gap(self) -> float:
        """Epoch gap in seconds"""
        return self.epoch_gap_ms / 1000.0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'ProcessingConfig':
        """Create a config from a mapping; unknown keys raise ``ValueError``"""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)


def load_config(filepath: Union[str, Path]) -> ProcessingConfig:
    """
    Load a processing configuration from file

    Parameters:
    -----------
    filepath : str or Path
        Path to configuration file (.yaml, .yml, or .json)

    Returns:
    --------
    ProcessingConfig
        Loaded configuration; keys absent from the file keep their defaults

    Raises:
        ValueError: If the format is not supported or a key is unknown
        FileNotFoundError: If the file doesn't exist
    """
    filepath = Path(filepath)

    if filepath.suffix in ['.yaml', '.yml']:
        with open(filepath) as f:
            data = yaml.safe_load(f)
    elif filepath.suffix == '.json':
        with open(filepath) as f:
            data = json.load(f)
    else:
        raise ValueError(f"Unsupported file format: {filepath.suffix}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {filepath} must be a mapping")
    return ProcessingConfig.from_dict(data)


def save_config(config: ProcessingConfig, filepath: Union[str, Path]) -> None:
    """Save a processing configuration as YAML or JSON, chosen by extension"""
    filepath = Path(filepath)
    data = config.to_dict()

    if filepath.suffix in ['.yaml', '.yml']:
        with open(filepath, 'w') as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    elif filepath.suffix == '.json':
        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2)
    else:
        raise ValueError(f"Unsupported file format: {filepath.suffix}")
