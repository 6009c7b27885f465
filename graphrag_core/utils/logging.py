"""Logging setup."""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(getattr(h, "_graphrag_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._graphrag_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # Third-party HTTP clients are noisy at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)
