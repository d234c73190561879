from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s: %(message)s"

# Root of the application logger hierarchy; every module logs via getLogger(__name__).
APP_LOGGER = "src.todo_web"


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach a single stdout handler to the application logger and set its level.

    Calling this more than once only updates the level; handlers are never
    duplicated. Unknown level names fall back to INFO.
    """
    logger = logging.getLogger(APP_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    resolved = logging.getLevelName(level.upper()) if level else logging.INFO
    logger.setLevel(resolved if isinstance(resolved, int) else logging.INFO)
    return logger
