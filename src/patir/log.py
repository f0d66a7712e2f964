# log.py
from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

LOGGER_NAME = "patir"

_MODES = {
    "mute": logging.CRITICAL,
    "silent": logging.WARNING,
    "debug": logging.DEBUG,
}
_LEVELS = (logging.INFO, logging.CRITICAL, logging.WARNING, logging.DEBUG)


class PatirFormatter(logging.Formatter):
    """Formats records as `[20240131 12:00:00]  INFO: message`."""

    def __init__(self) -> None:
        super().__init__(
            fmt="[%(asctime)s] %(levelname)5s: %(message)s",
            datefmt="%Y%m%d %H:%M:%S",
        )


def setup_logger(
    filename: Optional[str] = None,
    mode: Union[str, int, None] = None,
) -> logging.Logger:
    """
    Configure and return the `patir` logger, meant for top level scripts.

    Args:
        filename: log to this file instead of stdout
        mode: a logging level (INFO, CRITICAL, WARNING, DEBUG) or one of
              "mute" (CRITICAL), "silent" (WARNING) and "debug" (DEBUG).
              DEBUG is also used when PATIR_DEBUG is set.

    Calling it again replaces the handlers installed by the previous call.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if filename:
        handler = logging.FileHandler(filename)
    else:
        handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(PatirFormatter())
    logger.addHandler(handler)

    level = logging.INFO
    if mode in _LEVELS:
        level = mode
    elif isinstance(mode, str):
        level = _MODES.get(mode, level)
    if os.environ.get("PATIR_DEBUG"):
        level = logging.DEBUG
    logger.setLevel(level)
    return logger
