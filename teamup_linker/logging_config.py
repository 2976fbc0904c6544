"""Logging setup: one stdout handler, levels driven by ENABLE_LOGGING and LOG_LEVEL."""

import logging
import sys

from .config import Settings

INGRESS_LOGGER = "teamup_linker.ingress"

LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    # no finer level in the stdlib
    "trace": logging.DEBUG,
}


def resolve_level(settings: Settings) -> int:
    """Return the package log level; WARNING unless logging is enabled."""
    if not settings.enable_logging:
        return logging.WARNING
    return LEVELS.get(settings.log_level.strip().lower(), logging.INFO)


def setup_logging(settings: Settings) -> None:
    """Configure the root handler and the package loggers once at startup."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler.setFormatter(formatter)

    if not root_logger.hasHandlers():
        root_logger.addHandler(console_handler)

    logging.getLogger("teamup_linker").setLevel(resolve_level(settings))
    # Receipt and outcome lines are logged even with ENABLE_LOGGING off.
    logging.getLogger(INGRESS_LOGGER).setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
