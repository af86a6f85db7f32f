"""
Logging setup - one stdout handler for every innomind.* logger.

Modules create their own named logger, for example:
    logger = logging.getLogger("innomind.services.prospects")

configure_logging() is called once by the application lifespan.
"""

import logging
import sys


LOGGER_NAMESPACE = "innomind"

LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach a stdout handler to the innomind logger namespace.

    Safe to call more than once; the handler is only added the first time.

    Args:
        level: Level name such as "INFO" or "DEBUG"

    Returns:
        The namespace root logger
    """
    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(level.upper())

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger
