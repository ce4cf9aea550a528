#!/usr/bin/env python3
"""
logging_setup.py
================
Console and rotating-file logging for the junction evaluator.

* ``junction_mlp.log`` (1 MB, 2 backups) and the console receive every
  record at or above the requested level.
* ``evaluator_debug.log`` (5 MB, 2 backups) receives the per-obstacle
  DEBUG traces of the ``evaluator`` logger, whatever the console level.

Call :func:`setup_logging` once at startup, before the first obstacle is
evaluated.
"""

import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

from config import EVALUATOR_DEBUG_LOG_FILE, LOG_FILE

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _rotating_file(path: str, max_bytes: int, level: int,
                   fmt: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=2)
    handler.setLevel(level)
    handler.setFormatter(fmt)
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_file: str = LOG_FILE,
    evaluator_debug_file: Optional[str] = EVALUATOR_DEBUG_LOG_FILE,
) -> None:
    """Install the console, application-log and evaluator-trace handlers.

    Parameters
    ----------
    level : int
        Minimum severity for the console and *log_file*.
    log_file : str
        Path of the rotating application log.
    evaluator_debug_file : str or None
        Path of the evaluator trace file; ``None`` disables it and leaves
        the ``evaluator`` logger at *level*.

    Calling it again replaces the handlers installed by a previous call.
    """
    fmt = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.addHandler(console)
    root.addHandler(_rotating_file(log_file, 1_000_000, level, fmt))

    # The evaluator logger runs at DEBUG only to feed its trace file; the
    # root handlers above still filter what it propagates at *level*.
    evaluator_logger = logging.getLogger("evaluator")
    for handler in list(evaluator_logger.handlers):
        evaluator_logger.removeHandler(handler)
        handler.close()
    if evaluator_debug_file is None:
        evaluator_logger.setLevel(logging.NOTSET)
        return
    evaluator_logger.setLevel(logging.DEBUG)
    evaluator_logger.addHandler(
        _rotating_file(evaluator_debug_file, 5_000_000, logging.DEBUG, fmt))
