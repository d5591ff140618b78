"""Structured JSON logging for the catalog.

Every line is one JSON object. Records emitted while Flask is handling a
request also carry the request method, path and client address, so a
dropped catalog write can be traced back to the form post that caused it.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from flask import has_request_context, request

PACKAGE_LOGGER = "contoso_crafts"

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class RequestContextFilter(logging.Filter):
    """Attach ``http_method``, ``http_path`` and ``client`` inside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.http_method = request.method
            record.http_path = request.path
            record.client = request.remote_addr
        return True


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_entry[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
) -> logging.Logger:
    """Configure the ``contoso_crafts`` logger with JSON output.

    Args:
        level: Log level name (e.g. "DEBUG", "WARNING"). Unknown names
            fall back to INFO.
        log_file: Optional path of an additional log file.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # Repeated calls (tests, app reloads) must not stack handlers
    logger.handlers.clear()

    formatter = JSONFormatter()
    request_context = RequestContextFilter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(request_context)
        logger.addHandler(handler)

    return logger


def setup_logging_from_config(
    config: dict[str, Any] | None, default_level: str = "WARNING"
) -> logging.Logger:
    """Apply the ``logging`` section of a loaded config.

    ``logging.level`` and ``logging.file`` come from YAML or the
    ``LOG_LEVEL``/``LOG_FILE`` environment variables; a blank file means
    console only.
    """
    section = (config or {}).get("logging") or {}
    log_file = section.get("file")
    return setup_logging(
        level=section.get("level") or default_level,
        log_file=str(log_file) if log_file and str(log_file).strip() else None,
    )
