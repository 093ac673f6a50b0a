"""
app/core/logging.py

Purpose: Logging configuration

- Standardizes log format
- Controls log levels
- Structured JSON logging in production
- Per-request context (user_id, quotation_id, payment_id, gateway) carried in a
  ContextVar so concurrent requests never see each other's fields
- Masks bearer tokens and gateway signatures in messages
"""

import logging
import re
import sys
import json
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict

from app.core.config import settings


CONTEXT_FIELDS = ("user_id", "quotation_id", "payment_id", "gateway", "status")

_log_context: ContextVar[Dict[str, Any]] = ContextVar("printquote_log_context", default={})

SECRET_PATTERNS = (
    (re.compile(r"(Bearer\s+)[A-Za-z0-9\-_\.]+"), r"\1***"),
    (re.compile(r"(signature[\"']?\s*[:=]\s*[\"']?)[0-9a-f]{16,}", re.IGNORECASE), r"\1***"),
)


class ContextFilter(logging.Filter):
    """Copies the active LogContext fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def _mask(message: str) -> str:
    for pattern, replacement in SECRET_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


def _context_of(record: logging.LogRecord) -> Dict[str, str]:
    return {
        field: str(getattr(record, field))
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class StructuredFormatter(logging.Formatter):
    """
    JSON lines for production log shipping.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": _mask(record.getMessage()),
            "module": record.module,
            "line": record.lineno,
        }
        log_data.update(_context_of(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class DevelopmentFormatter(logging.Formatter):
    """
    Coloured single-line output for local runs.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        short_name = record.name.replace("printquote.", "", 1)

        message = (
            f"{color}[{timestamp}] {record.levelname:<8}{self.RESET} "
            f"{short_name}: {_mask(record.getMessage())}"
        )

        context = _context_of(record)
        if context:
            message += " [" + ", ".join(f"{k}={v}" for k, v in context.items()) + "]"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


def setup_logging() -> logging.Logger:
    """
    Installs one stdout handler on the root logger.
    JSON in production, coloured text otherwise.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if settings.is_production else DevelopmentFormatter())
    handler.addFilter(ContextFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for noisy in ("httpx", "httpcore", "motor", "pymongo", "multipart", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)

    logger = logging.getLogger("printquote")
    logger.info(f"Logging configured (environment={settings.ENVIRONMENT}, level={settings.LOG_LEVEL})")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Application logger, namespaced under "printquote".
    """
    return logging.getLogger(f"printquote.{name}")


class LogContext:
    """
    Adds structured fields to every record logged inside the block.

    Usage:
        with LogContext(user_id="123", quotation_id="abc"):
            logger.info("Approving quotation")

    Nested blocks merge their fields; leaving a block restores the outer ones.
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._token = None

    def __enter__(self):
        merged = dict(_log_context.get())
        merged.update(self.context)
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)
