import logging
import os

from pythonjsonlogger.jsonlogger import JsonFormatter

APP_NAME = os.environ.get("APP_NAME", "GeminiChat")

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def resolve_level(value: str) -> int:
    """Map a LOG_LEVEL value such as "debug" or "WARNING" to a logging level; unknown names give INFO."""
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else logging.INFO


logger_level = resolve_level(os.environ.get("LOG_LEVEL", "info"))


def get_logger(name: str) -> logging.Logger:
    """Logger named `<APP_NAME>.<name>` that writes one JSON object per record."""
    logger = logging.getLogger(f"{APP_NAME}.{name}")
    logger.setLevel(logger_level)

    if not logger.handlers:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(JsonFormatter(LOG_FORMAT, rename_fields={"levelname": "level"}))
        logger.addHandler(stream_handler)

    return logger
