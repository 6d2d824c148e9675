"""Logging configuration for smmadmin."""

import logging
from typing import Optional


def setup_logging(log_file: Optional[str], log_level: str) -> None:
    """Configure logging for the application.

    Args:
        log_file: Path to the log file; empty or None logs to stderr
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level_obj = getattr(logging, log_level.upper(), logging.INFO)

    # Disable logging for some external modules
    for logger_name in [
        "aiohttp.access",
        "aiohttp.client",
        "aiohttp.internal",
        "urllib3",
        "urllib3.connectionpool",
        "chardet",
        "charset_normalizer",
    ]:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.CRITICAL)
        logger.disabled = True
        logger.propagate = False
        while logger.hasHandlers():
            logger.removeHandler(logger.handlers[0])

    # Clear any existing handlers (in case logging was already configured)
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    logging.basicConfig(
        filename=log_file or None,
        level=log_level_obj,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.debug(f"Logging initialized at {log_level} level")
