"""
Process-level settings for Blueprint NLU.

Pipeline thresholds live in ``blueprint_nlu.models.config``; this module only
holds what the hosting process needs.
"""

import logging
import os
import sys

# Logging
LOG_LEVEL = os.getenv("BLUEPRINT_NLU_LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# API
API_TITLE = "Blueprint NLU API"
API_VERSION = "0.1.0"


def setup_logging(log_level: str = LOG_LEVEL) -> None:
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
