"""Logger factory shared by every fluentrecords module."""

import json
import logging
import os
import sys

from fluentrecords.utils.time import utc_now_z

LOG_LEVEL_ENV = "FLUENTRECORDS_LOG_LEVEL"
LOG_FORMAT_ENV = "FLUENTRECORDS_LOG_FORMAT"


class JsonFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": utc_now_z(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def get_logger(name: str) -> logging.Logger:
    """
    Return a configured logger for ``name``.

    The level comes from FLUENTRECORDS_LOG_LEVEL (default WARNING) and the
    format from FLUENTRECORDS_LOG_FORMAT ("text" or "json"). Calling this
    repeatedly for the same name never stacks handlers.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level_name = os.getenv(LOG_LEVEL_ENV, "WARNING").upper()
    logger.setLevel(getattr(logging, level_name, logging.WARNING))

    handler = logging.StreamHandler(sys.stderr)
    if os.getenv(LOG_FORMAT_ENV, "text").lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    logger.addHandler(handler)
    return logger
