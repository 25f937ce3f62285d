"""loguru sink setup shared by the CLI and the library code."""

import sys

from loguru import logger

logger.remove()

PLAIN = "<level>{level: <7}</level> | {message}"
TIMESTAMPED = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <7}</level> | {message}"


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send log records to stderr at the requested verbosity.

    quiet wins over verbose and keeps only warnings and errors, so failed
    creations and bindings are still reported. verbose adds timestamps and the
    DEBUG records, which include every gcloud command line.
    """
    if quiet:
        level, fmt = "WARNING", PLAIN
    elif verbose:
        level, fmt = "DEBUG", TIMESTAMPED
    else:
        level, fmt = "INFO", PLAIN
    logger.remove()
    logger.add(sys.stderr, level=level, format=fmt)


__all__ = ["configure_logging", "logger"]
