"""
Centralized logging configuration for the application.
"""

import logging
import sys


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once for the process.

    Args:
        level: Level name such as "DEBUG" or "INFO". Unknown names fall back
            to INFO.
    """
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO),
                        format=LOG_FORMAT,
                        handlers=[logging.StreamHandler(sys.stdout)])

    # Per-request access lines are noisy at INFO.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
