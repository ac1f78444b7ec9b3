"""Logging setup for command-line runs."""

from __future__ import annotations

import logging

LOGGER_NAME = "cartridge_build"


def setup_build_logger(*, verbose: bool = False) -> logging.Logger:
    """
    Configure the `cartridge_build` logger (and the `buildkit` kernel logger) to
    write to stderr, so stdout stays reserved for the JSON plan.
    """

    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
    level = logging.DEBUG if verbose else logging.INFO

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)

    for name in (LOGGER_NAME, "buildkit"):
        named = logging.getLogger(name)
        named.setLevel(level)
        named.handlers.clear()
        named.addHandler(stream_handler)
        named.propagate = False

    logger = logging.getLogger(LOGGER_NAME)
    logger.debug("Build logging initialized (verbose=%s)", verbose)
    return logger
