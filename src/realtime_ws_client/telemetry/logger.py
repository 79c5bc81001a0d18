"""Structured logging configuration with credential redaction."""

import logging
import re
import sys
from contextvars import ContextVar
from typing import Any

import orjson
import structlog

# Context variable for the channel currently being handled
channel_var: ContextVar[str] = ContextVar("channel", default="")


class CredentialRedactor:
    """Redact credentials from log values."""

    TOKEN_QUERY_PATTERN = re.compile(r"([?&]token=)[^&\s]+", re.IGNORECASE)
    BEARER_PATTERN = re.compile(r"\b(Bearer\s+)[\w.~+/-]+=*", re.IGNORECASE)
    JWT_PATTERN = re.compile(r"\beyJ[A-Za-z0-9-_]+\.[A-Za-z0-9-_]+\.[A-Za-z0-9-_]+\b")

    @classmethod
    def redact(cls, value: Any) -> Any:
        """Redact credentials from value."""
        if not isinstance(value, str):
            return value

        value = cls.TOKEN_QUERY_PATTERN.sub(r"\1[REDACTED]", value)
        value = cls.BEARER_PATTERN.sub(r"\1[REDACTED]", value)
        value = cls.JWT_PATTERN.sub("[JWT_REDACTED]", value)

        return value


def add_context_vars(logger, method_name, event_dict):
    """Add context variables to log events."""
    if channel := channel_var.get():
        event_dict.setdefault("channel", channel)
    return event_dict


def redact_sensitive_data(logger, method_name, event_dict):
    """Redact credentials from every string value of the event."""
    for key, value in event_dict.items():
        if key in ("timestamp", "level", "logger"):
            continue
        if isinstance(value, str):
            event_dict[key] = CredentialRedactor.redact(value)
        elif isinstance(value, dict):
            event_dict[key] = {k: CredentialRedactor.redact(v) for k, v in value.items()}

    return event_dict


def setup_logging(level: str = "INFO", format: str = "json") -> None:
    """Configure structured logging for the client."""
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_context_vars,
        redact_sensitive_data,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if format == "json":
        processors.append(
            structlog.processors.JSONRenderer(serializer=lambda obj, **kw: orjson.dumps(obj).decode())
        )
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
    )

    # Suppress noisy loggers
    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
