"""Logging setup for importer runs."""

import logging
import sys

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(log_level: str = "INFO"):
    """Configure root logging once per process.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    if hasattr(configure_logging, "has_run"):
        return

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # Source files may carry any characters in their error messages
    if hasattr(handler.stream, "reconfigure"):
        try:
            handler.stream.reconfigure(encoding="utf-8", errors="replace")
        except (AttributeError, ValueError):
            pass

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, force=True, handlers=[handler])

    configure_logging.has_run = True
    logger.info(f"Logging configured at level: {log_level}")
