"""
Logging setup for the MKP solver.

One named logger per run ("mkp"); modules log through children such as
"mkp.algorithms.vns" and inherit its handlers.
"""

import logging
import os
from datetime import datetime
from typing import Optional


VERBOSITY_LEVELS = {
    'NONE': logging.WARNING,
    'INFO': logging.INFO,
    'DEBUG': logging.DEBUG,
}

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _resolve_log_file(log_file: Optional[str], log_dir: str, name: str) -> str:
    if log_file is None:
        stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        log_file = os.path.join(log_dir, f'{name}_{stamp}.log')
    directory = os.path.dirname(log_file) or log_dir
    os.makedirs(directory, exist_ok=True)
    return os.path.join(directory, os.path.basename(log_file))


def setup_logger(name: str, log_file: Optional[str] = None,
                 level: int = logging.INFO, log_dir: str = "logs",
                 to_file: bool = True) -> logging.Logger:
    """
    Configure the run logger with a console handler and an optional file handler.

    Calling it again for a configured logger only updates the level, so
    repeated CLI invocations in one process do not stack handlers.

    Args:
        name: Logger name (usually the root package name)
        log_file: Optional log file path; a timestamped name is used when None
        level: Logging level for the logger and its handlers
        log_dir: Directory for generated log files
        to_file: Attach a file handler in addition to the console handler

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler()]

    path = None
    if to_file:
        path = _resolve_log_file(log_file, log_dir, name)
        handlers.append(logging.FileHandler(path, encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if path:
        logger.debug(f"Writing log to {path}")
    return logger


def level_from_verbosity(verbosity: str) -> int:
    """Map a NONE/INFO/DEBUG verbosity name to a logging level."""
    key = str(verbosity).strip().upper()
    if key not in VERBOSITY_LEVELS:
        from mkp.core.exceptions import InvalidConfigurationError
        raise InvalidConfigurationError(
            parameter='verbosity',
            value=verbosity,
            expected=' | '.join(VERBOSITY_LEVELS)
        )
    return VERBOSITY_LEVELS[key]
