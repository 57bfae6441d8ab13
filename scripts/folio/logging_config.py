"""Centralized logging configuration for the command line."""

import sys

from loguru import logger


def setup_logging(verbose=False, log_file=None):
    """
    Configure loguru for a CLI run.

    Args:
        verbose:  Show pipeline detail (DEBUG) instead of warnings only
        log_file: Optional path of a rotating log file

    Returns:
        logger: Configured logger instance
    """
    # Remove any existing handlers
    logger.remove()

    logger.add(
        sink=sys.stderr,
        level="DEBUG" if verbose else "WARNING",
        format="<green>{time:HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<level>{message}</level>",
    )

    if log_file:
        logger.add(
            sink=log_file,
            rotation="10 MB",
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )

    return logger
