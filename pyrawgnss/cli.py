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

"""Command line entry point: position a GnssLogger raw measurement log

Usage:
    pyrawgnss gnss_log_2020_12_03.txt --output positions.csv --plot track.png
    pyrawgnss gnss_log.txt --nav BRDC00IGS_R_20203380000_01D_MN.rnx --no-download
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import ProcessingConfig, load_config
from .core.exceptions import GnssError
from .gnss.ephemeris import EphemerisStore, RinexEphemerisProvider
from .gnss.pipeline import process_log
from .io.rinex_nav import read_nav_records
from .io.solution_writer import write_fixes, write_solutions
from .logger import DEFAULT_LOGGER, setup_logger_from_config

logger = logging.getLogger(DEFAULT_LOGGER)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='pyrawgnss',
        description='Least-squares GPS positioning from Android GnssLogger raw measurements')
    parser.add_argument('log', type=str, help='GnssLogger text log')
    parser.add_argument('--eph-dir', type=str, help='Broadcast ephemeris cache directory')
    parser.add_argument('--nav', type=str, nargs='+', help='Local RINEX navigation file(s)')
    parser.add_argument('--no-download', action='store_true',
                        help='Do not download missing broadcast ephemeris files')
    parser.add_argument('--output', type=str, help='Output CSV of receiver positions')
    parser.add_argument('--fixes-output', type=str, help='Output CSV of Android fixes')
    parser.add_argument('--plot', type=str, help='Save a trajectory plot to this image file')
    parser.add_argument('--config', type=str, help='YAML or JSON processing configuration')
    parser.add_argument('--log-level', type=str, help='Log level (TRACE, DEBUG, INFO, ...)')
    parser.add_argument('--log-file', type=str, help='Also write the log to this file')
    return parser


def _configure(args) -> ProcessingConfig:
    config = load_config(args.config) if args.config else ProcessingConfig()
    if args.eph_dir:
        config.ephemeris_dir = args.eph_dir
    if args.no_download:
        config.download = False

    log_config = dict(config.logging)
    if args.log_level:
        log_config['default_level'] = args.log_level
    if args.log_file:
        log_config['log_file'] = args.log_file
    setup_logger_from_config(log_config)
    return config


def _provider(args, config: ProcessingConfig):
    if not args.nav:
        return RinexEphemerisProvider(config.ephemeris_dir, download=config.download)

    store = EphemerisStore()
    for nav_file in args.nav:
        store.add(read_nav_records(nav_file, config.constellation))
    logger.info(f"Loaded {len(store)} ephemerides for {len(store.satellites)} satellites")
    return store


def main(argv=None) -> int:
    """Run the positioning pipeline; returns the process exit code"""
    args = build_parser().parse_args(argv)

    try:
        config = _configure(args)
        result = process_log(args.log, _provider(args, config), config)
    except (GnssError, FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1

    output = args.output or str(Path(args.log).with_suffix('')) + '_positions.csv'
    frame = write_solutions(result.estimates, output)
    if args.fixes_output and result.fixes is not None:
        write_fixes(result.fixes, args.fixes_output)

    if args.plot:
        from .plot.trajectory import plot_trajectory
        ax = plot_trajectory(frame, fixes=result.fixes)
        ax.figure.savefig(args.plot, dpi=150)
        logger.info(f"Plot saved to: {args.plot}")

    print(f"Solved {len(result.estimates)} epochs, skipped {len(result.skipped)}")
    print(f"Results saved to: {output}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
