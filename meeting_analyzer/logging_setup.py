"""Logging configuration: console handler plus optional rotating file (LOG_FILE)."""
from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from meeting_analyzer.config import Settings, get_settings

_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
_DATEFMT = "%H:%M:%S"


def _build_file_handler(log_path: str) -> RotatingFileHandler:
    directory = os.path.dirname(log_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(_FORMAT, _DATEFMT))
    file_handler.name = "meeting_analyzer_file"
    return file_handler


def _build_stream_handler() -> logging.StreamHandler:
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(_FORMAT, _DATEFMT))
    stream_handler.name = "meeting_analyzer_stream"
    return stream_handler


def _replace_handlers(logger: logging.Logger, handlers: list[logging.Handler]) -> None:
    logger.handlers = []
    for handler in handlers:
        logger.addHandler(handler)
    logger.propagate = False


def configure_logging(settings: Settings | None = None) -> str | None:
    """
    Install handlers on the root and uvicorn loggers. Safe to call more than once.
    Returns the log file path, or None when logging to console only.
    """
    settings = settings or get_settings()
    level_name = (settings.LOG_LEVEL or "INFO").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    handlers: list[logging.Handler] = [_build_stream_handler()]
    log_path = (settings.LOG_FILE or "").strip() or None
    if log_path:
        handlers.append(_build_file_handler(log_path))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    _replace_handlers(root_logger, handlers)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv_logger = logging.getLogger(name)
        uv_logger.setLevel(level)
        _replace_handlers(uv_logger, handlers)

    root_logger.info("Logging initialized: level=%s file=%s", level_name, log_path or "-")
    return log_path
