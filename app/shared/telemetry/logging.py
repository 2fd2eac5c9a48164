"""Logging configuration for docflow."""

import logging
import sys

from app.core.config import get_settings

# Third-party loggers that are noisy at INFO (S3 requests, clamd and Redis I/O).
_QUIET_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3", "redis", "asyncio")


def setup_logging() -> None:
    """Configure application-wide logging once per process.

    Level is DEBUG when settings.debug is True, otherwise INFO. Output goes to
    stdout. SQL statements are logged only when database_echo is set.
    """
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if not settings.database_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, e.g. get_logger(__name__)."""
    return logging.getLogger(name)
