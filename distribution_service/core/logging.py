"""
Structured logging setup.

Production: JSON lines, easy to ship to log tooling
Development: human readable, coloured by level
"""
import logging
import sys
import os
import json
from datetime import datetime, timezone
from typing import Any, Optional


class JSONFormatter(logging.Formatter):
    """Formatter emitting one JSON document per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Coloured formatter for local development."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        original = record.levelname
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class ContextAdapter(logging.LoggerAdapter):
    """Adapter that attaches fixed fields to every record as extra_fields."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        fields = dict(self.extra)
        fields.update(extra.pop("extra_fields", {}))
        extra["extra_fields"] = fields
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str, **extra_fields: Any) -> logging.Logger | ContextAdapter:
    """
    Return a logger, optionally bound to extra structured fields.

    Usage:
        logger = get_logger(__name__, organization_id="org-1")
        logger.info("Sweeping organization")
    """
    logger = logging.getLogger(name)
    if extra_fields:
        return ContextAdapter(logger, extra_fields)
    return logger


def setup_logging(environment: Optional[str] = None, log_level: Optional[str] = None):
    """Configure the root logger for the current environment."""
    environment = (environment or os.getenv("ENVIRONMENT", "development")).lower()
    log_level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)

    if environment == "production":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ColoredFormatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Quieter third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
