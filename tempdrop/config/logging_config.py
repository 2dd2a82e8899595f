"""
Logging Configuration

Configures standard library logging for the web app, the Celery worker and
the in-process sweeper.
"""

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging once per process.

    Args:
        level: Log level name (default: LOG_LEVEL env var, then INFO)
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)

    # Third-party clients are noisy at INFO
    for name in ("botocore", "urllib3", "google.auth"):
        logging.getLogger(name).setLevel(logging.WARNING)
