from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional, TextIO, Union

LOGGER_NAME = "boids"
LEVEL_ENV = "BOIDS_LOG_LEVEL"
LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR")

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_DATEFMT = "%H:%M:%S"


def resolve_level(level: Union[int, str, None]) -> int:
    """Turn a level name, number or ``None`` into a logging level.

    ``None`` falls back to ``$BOIDS_LOG_LEVEL`` and then to INFO.
    """
    if level is None:
        level = os.environ.get(LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name not in LEVEL_NAMES:
        raise ValueError(f"unknown log level {level!r}; expected one of {LEVEL_NAMES}")
    return getattr(logging, name)


def setup_logging(
    level: Union[int, str, None] = None,
    log_file: Optional[Union[str, Path]] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Attach handlers to the ``boids`` logger for a CLI, viewer or server run.

    Calling it again replaces the handlers, so repeated runs in one process
    never print a record twice. Records stay inside the ``boids`` namespace
    and do not reach the root logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_level(level))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)
    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
