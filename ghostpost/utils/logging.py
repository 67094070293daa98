"""Logging setup for the command line and user-facing notices."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

NOTICE_LOGGER = "ghostpost.notice"

# Third-party loggers that flood DEBUG output with wire-level detail.
QUIET_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3", "markdown")

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra={...}`` fields become top-level keys."""

    default_time_format = "%Y-%m-%dT%H:%M:%S"
    default_msec_format = "%s.%03dZ"

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                data[key] = value
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


def _formatter(structured: bool) -> logging.Formatter:
    return JsonFormatter() if structured else logging.Formatter(_PLAIN_FORMAT)


def configure_logging(
    *,
    level: int = logging.INFO,
    structured: bool | None = None,
) -> None:
    """Configure root logging on stderr so stdout stays free for command output.

    Calling it again only changes the level and, when ``structured`` is given,
    the formatter of the handlers already installed.
    """
    root = logging.getLogger()
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(_formatter(bool(structured)))
        root.addHandler(handler)
    elif structured is not None:
        for handler in root.handlers:
            handler.setFormatter(_formatter(structured))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogNotifier:
    """Reports user-facing notices through the ``ghostpost.notice`` logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(NOTICE_LOGGER)

    def notify(self, message: str, *, level: int = logging.INFO) -> None:
        self._logger.log(level, message, extra={"event": "notice"})


__all__ = ["JsonFormatter", "LogNotifier", "NOTICE_LOGGER", "configure_logging", "get_logger"]
