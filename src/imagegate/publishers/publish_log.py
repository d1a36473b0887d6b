"""Logging for publish runs: gate decisions, docker steps, per-target outcomes."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

LOGGER_NAME = "imagegate.publish"


def get_logger() -> logging.Logger:
    """Return the publish logger."""
    return logging.getLogger(LOGGER_NAME)


@contextmanager
def publish_log_context(
    log_file: Path,
    verbose: bool = False,
) -> Generator[logging.Logger, None, None]:
    """
    Attach a file handler to the publish logger for the duration of the context.
    Log file is UTF-8; format: timestamp [LEVEL] message.
    """
    logger = get_logger()
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(level)
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    try:
        yield logger
    finally:
        logger.removeHandler(handler)
        handler.close()
