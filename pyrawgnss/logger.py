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

"""Logging for the positioning pipeline

All library modules log through ``logging.getLogger(__name__)`` and so sit
below the package logger ``pyrawgnss``. Handlers live on the package logger
only; per-module verbosity is a matter of logger levels. A ``TRACE`` level
below ``DEBUG`` carries per-iteration solver output.
"""

import logging
import sys
from enum import Enum
from typing import Optional

DEFAULT_LOGGER = "pyrawgnss"

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LogLevel(Enum):
    """Log levels for the system"""
    TRACE = 5
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


logging.addLevelName(LogLevel.TRACE.value, "TRACE")


def trace(self, message, *args, **kwargs):
    """Log a message at TRACE level"""
    if self.isEnabledFor(LogLevel.TRACE.value):
        self._log(LogLevel.TRACE.value, message, args, **kwargs)


logging.Logger.trace = trace


def parse_level(level) -> int:
    """Numeric value of a level name such as ``'TRACE'`` or ``'debug'``"""
    if isinstance(level, LogLevel):
        return level.value
    try:
        return LogLevel[str(level).upper()].value
    except KeyError:
        raise ValueError(f"Unknown log level: {level}") from None


class ColoredFormatter(logging.Formatter):
    """Console formatter coloring the level name

    The record is copied before the level name is decorated, so handlers
    formatting the same record later (a log file) see it unchanged.
    """

    COLORS = {
        'TRACE': '\033[36m',     # Cyan
        'DEBUG': '\033[34m',     # Blue
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, fmt=None, datefmt=None, use_color: bool = True):
        super().__init__(fmt, datefmt)
        self.use_color = use_color

    def format(self, record):
        if not self.use_color:
            return super().format(record)
        color = self.COLORS.get(record.levelname, self.RESET)
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter):
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logger(name: str = DEFAULT_LOGGER,
                 level: str = "INFO",
                 log_file: Optional[str] = None,
                 console: bool = True) -> logging.Logger:
    """
    Configure a logger, replacing any handlers it already has

    Parameters:
    -----------
    name : str
        Logger name, the package logger by default
    level : str
        Log level (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_file : Optional[str]
        Also write plain-text records to this file
    console : bool
        Write records to stdout; colored when stdout is a terminal

    Returns:
    --------
    logging.Logger
        Configured logger
    """
    numeric_level = parse_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)

    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    if console:
        use_color = hasattr(sys.stdout, 'isatty') and sys.stdout.isatty()
        logger.addHandler(_handler(
            logging.StreamHandler(sys.stdout), numeric_level,
            ColoredFormatter(CONSOLE_FORMAT, datefmt='%H:%M:%S', use_color=use_color)))

    if log_file:
        logger.addHandler(_handler(
            logging.FileHandler(log_file), numeric_level,
            logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')))

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get logger by name"""
    return logging.getLogger(name)


class LogContext:
    """Temporarily change a logger's level

    Example:
        >>> with LogContext(logging.getLogger('pyrawgnss.gnss.spp'), 'TRACE'):
        ...     pipeline.run(measurements)
    """

    def __init__(self, logger: logging.Logger, level: str):
        self.logger = logger
        self.new_level = parse_level(level)
        self.old_level = None

    def __enter__(self):
        self.old_level = self.logger.level
        self.logger.setLevel(self.new_level)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.setLevel(self.old_level)


class LoggerConfig:
    """Package-wide logging settings with per-module levels"""

    KEYS = ('default_level', 'log_file', 'console', 'module_levels')

    def __init__(self):
        self.reset()

    def reset(self):
        """Back to INFO on the console, no file, no module overrides"""
        self.module_levels = {}
        self.default_level = "INFO"
        self.log_file = None
        self.console = True

    def set_module_level(self, module_name: str, level: str):
        """Set log level for a module such as ``pyrawgnss.gnss.spp``"""
        parse_level(level)
        self.module_levels[module_name] = level

    def get_level_for_module(self, module_name: str) -> str:
        """Get log level for a module"""
        return self.module_levels.get(module_name, self.default_level)

    def configure_from_dict(self, config: dict):
        """Apply the ``logging`` section of a processing configuration

        Raises:
            ValueError: On an unknown key or level name
        """
        unknown = sorted(set(config) - set(self.KEYS))
        if unknown:
            raise ValueError(f"Unknown logging keys: {', '.join(unknown)}")

        if 'default_level' in config:
            parse_level(config['default_level'])
            self.default_level = config['default_level']
        if 'log_file' in config:
            self.log_file = config['log_file']
        if 'console' in config:
            self.console = bool(config['console'])
        for module, level in config.get('module_levels', {}).items():
            self.set_module_level(module, level)

    def setup_all_loggers(self):
        """Configure the package logger and the module-specific levels"""
        package_logger = setup_logger(DEFAULT_LOGGER, self.default_level, self.log_file, self.console)

        # Handlers pass the most verbose level any module asks for
        lowest = min([parse_level(self.default_level)] +
                     [parse_level(level) for level in self.module_levels.values()])
        for handler in package_logger.handlers:
            handler.setLevel(lowest)

        for module, level in self.module_levels.items():
            logging.getLogger(module).setLevel(parse_level(level))


logger_config = LoggerConfig()


def setup_logger_from_config(config: dict):
    """Setup loggers from configuration dictionary

    Example config:
    {
        'default_level': 'INFO',
        'log_file': 'positioning.log',
        'console': True,
        'module_levels': {
            'pyrawgnss.satellite.satellite_position': 'DEBUG',
            'pyrawgnss.gnss.spp': 'TRACE',
        }
    }
    """
    logger_config.configure_from_dict(config)
    logger_config.setup_all_loggers()
