"""Process-wide logger configured once from the debug setting."""

from __future__ import annotations

import json
import logging
import re
import threading
from datetime import datetime, timezone

from hubblecli.timeutil import RFC3339, format_time

_LOGGER_NAME = "hubble"
_PLAIN = re.compile(r"[A-Za-z0-9\-._/@^+]+")
_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}

_lock = threading.Lock()
_logger: logging.Logger | None = None


def _quote(text: str) -> str:
    if _PLAIN.fullmatch(text):
        return text
    return json.dumps(text, ensure_ascii=False)


class _TextFormatter(logging.Formatter):
    """Render records as ``key=value`` pairs with a full timestamp."""

    def format(self, record: logging.LogRecord) -> str:
        moment = datetime.fromtimestamp(record.created, timezone.utc).astimezone()
        pairs = [
            ("time", format_time(moment, RFC3339)),
            ("level", _LEVEL_NAMES.get(record.levelno, record.levelname.lower())),
            ("msg", record.getMessage()),
        ]
        fields = getattr(record, "fields", None) or {}
        pairs.extend(sorted(((str(k), v) for k, v in fields.items()), key=lambda kv: kv[0]))
        if record.exc_info:
            pairs.append(("error", self.formatException(record.exc_info)))
        return " ".join(f"{key}={_quote(str(value))}" for key, value in pairs)


def initialize(debug: bool) -> logging.Logger:
    """Configure the logger on first call; later calls leave it unchanged."""
    global _logger
    with _lock:
        if _logger is not None:
            return _logger
        logger = logging.getLogger(_LOGGER_NAME)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        handler = logging.StreamHandler()
        handler.setFormatter(_TextFormatter())
        logger.addHandler(handler)
        logger.propagate = False
        logger.setLevel(logging.DEBUG if debug else logging.INFO)
        _logger = logger
        return logger


def get_logger() -> logging.Logger:
    """Return the configured logger; initialize() must have been called."""
    if _logger is None:
        raise RuntimeError("logger is not initialized")
    return _logger


def _reset() -> None:
    """Forget the configured logger so it can be set up again."""
    global _logger
    with _lock:
        if _logger is not None:
            for handler in list(_logger.handlers):
                _logger.removeHandler(handler)
        _logger = None