"""Logging configuration for the Checkout domain."""

import logging
import os

import structlog

logger = structlog.get_logger(__name__)

# Suppress noisy library loggers
logging.getLogger("protean").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)


def configure_logging(domain, log_dir: str | None = None) -> str | None:
    """Route structured logs through the domain's setup, adding rotating files when a directory is given.

    ``CHECKOUT_LOG_DIR`` is used when ``log_dir`` is not passed. Returns the
    directory in use, or None when logs only go to the console.
    """
    log_dir = log_dir or os.environ.get("CHECKOUT_LOG_DIR")
    if log_dir:
        domain.configure_logging(log_dir=log_dir, log_file_prefix="checkout")
    return log_dir
