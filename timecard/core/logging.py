import logging
import os
from logging.handlers import RotatingFileHandler

from timecard.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging() -> None:
    """Configure the root logger from LOGGING_ENABLED / LOG_LEVEL / LOG_TO_FILE / LOG_FILE_PATH"""
    root = logging.getLogger()

    if not settings.LOGGING_ENABLED:
        root.addHandler(logging.NullHandler())
        return

    root.setLevel(settings.LOG_LEVEL.upper())
    formatter = logging.Formatter(LOG_FORMAT)

    # uvicorn --reload and repeated app creation in tests call this more than once
    if not any(getattr(h, "_timecard", False) for h in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console._timecard = True
        root.addHandler(console)

        if settings.LOG_TO_FILE:
            log_dir = os.path.dirname(settings.LOG_FILE_PATH)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                settings.LOG_FILE_PATH, maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8"
            )
            file_handler.setFormatter(formatter)
            file_handler._timecard = True
            root.addHandler(file_handler)
