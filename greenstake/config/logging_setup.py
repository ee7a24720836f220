"""
Logging setup.

One stdout handler on the package logger; modules log through logging.getLogger(__name__).
"""

import logging
import sys

LOG_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Configure the greenstake package logger.

    Safe to call more than once: the handler is only added the first time.

    Args:
        level: Log level name

    Returns:
        The configured package logger
    """
    logger = logging.getLogger("greenstake")
    logger.setLevel(getattr(logging, level.upper()))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger
