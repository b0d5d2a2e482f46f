"""Logging setup for the hunkmap CLI."""

import logging

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(verbosity: int) -> None:
    """Configure the root logger from a -v count.

    0 -> WARNING, 1 -> INFO, 2 or more -> DEBUG.
    """
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=LOG_FORMAT)
