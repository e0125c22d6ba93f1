"""Process-wide logging setup."""

import logging

from subledger.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Apply the configured level to the root logger.

    Safe to call more than once; ``basicConfig`` only installs a handler
    the first time, the level is always updated.
    """
    resolved = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger().setLevel(resolved)
