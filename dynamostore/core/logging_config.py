"""
Structured logging configuration for dynamostore.

Log records are rendered as one JSON object per line, tagged with the
request's correlation ID. Extra fields whose names look like session or
credential material are redacted unless sensitive output is switched on.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

from dynamostore.core.config import Settings

# Set per request by the correlation ID middleware
correlation_id_ctx: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

REDACTED = "[REDACTED]"

# Attributes every LogRecord carries, plus the ones formatters add to it
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_SENSITIVE_KEYWORDS = (
    'session', 'cookie', 'secret', 'key', 'token',
    'password', 'credential', 'auth', 'private',
)

_NOISY_LOGGERS = ("uvicorn.access", "urllib3", "boto3", "botocore")


def is_sensitive_field(name: str) -> bool:
    name = name.lower()
    return any(keyword in name for keyword in _SENSITIVE_KEYWORDS)


class StructuredFormatter(logging.Formatter):
    """Render log records as JSON."""

    def __init__(self, include_sensitive: bool = False):
        """
        Args:
            include_sensitive: Emit sensitive extra fields verbatim
        """
        super().__init__()
        self.include_sensitive = include_sensitive

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        correlation_id = correlation_id_ctx.get()
        if correlation_id:
            entry["correlation_id"] = correlation_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = self._extra_fields(record)
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str)

    def _extra_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        extra = {}
        for name, value in vars(record).items():
            if name in _RECORD_ATTRS or name.startswith('_'):
                continue
            if not self.include_sensitive and is_sensitive_field(name):
                value = REDACTED
            extra[name] = value
        return extra


def setup_logging(
    log_level: str = "INFO",
    enable_json: bool = True,
    include_sensitive: bool = False,
) -> None:
    """
    Route all logging to stdout.

    Args:
        log_level: Root logging level name
        enable_json: Use StructuredFormatter instead of plain text
        include_sensitive: Passed to StructuredFormatter
    """
    if enable_json:
        formatter: logging.Formatter = StructuredFormatter(include_sensitive=include_sensitive)
    else:
        formatter = logging.Formatter('%(asctime)s %(levelname)s [%(name)s] %(message)s')

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_correlation_id() -> str:
    """Get or create a correlation ID for the current context"""
    correlation_id = correlation_id_ctx.get()
    if not correlation_id:
        correlation_id = uuid.uuid4().hex
        correlation_id_ctx.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: Optional[str]) -> None:
    correlation_id_ctx.set(correlation_id)


def init_application_logging(settings: Settings) -> None:
    """Configure logging from settings; dev mode logs plain text at DEBUG"""
    if settings.dev_mode:
        setup_logging(log_level="DEBUG", enable_json=False, include_sensitive=True)
    else:
        setup_logging(log_level=settings.log_level, enable_json=settings.json_logging)

    logging.getLogger("dynamostore.startup").info(
        "Logging initialized",
        extra={"dev_mode": settings.dev_mode, "log_level": logging.getLevelName(logging.getLogger().level)},
    )
