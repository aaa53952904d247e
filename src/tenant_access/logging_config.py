"""Structured logging configuration.

JSON output for production, console output elsewhere (colored except
under ``testing``). Records from stdlib loggers (uvicorn, SQLAlchemy,
alembic) go through the same processor chain, so redaction applies to
them too.

Call configure_logging() once at application startup (e.g. in FastAPI lifespan).
"""

import logging
import sys
from typing import Any

import structlog

REDACTED = "***REDACTED***"

# Matched as substrings of the lower-cased key: ``access_token`` and
# ``X-Refresh-Token`` are both redacted.
SENSITIVE_KEY_PARTS: tuple[str, ...] = (
    "anon_key",
    "authorization",
    "cookie",
    "password",
    "secret",
    "token",
)


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(part in lowered for part in SENSITIVE_KEY_PARTS)


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED if _is_sensitive_key(str(k)) else _redact(v)
            for k, v in value.items()
        }
    if isinstance(value, str) and value[:7].lower() == "bearer ":
        return REDACTED
    return value


def _redact_sensitive_keys(
    logger: logging.Logger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Redact sensitive values in log events.

    Keys are matched by substring, nested dicts (e.g. header maps) are
    walked, and any string value carrying a bearer credential is
    replaced regardless of its key.
    """
    for key, value in event_dict.items():
        if key == "event":
            continue
        event_dict[key] = REDACTED if _is_sensitive_key(key) else _redact(value)
    return event_dict


def configure_logging(
    environment: str = "development",
    log_level: str = "INFO",
) -> None:
    """Configure structlog processor chain and stdlib root logger.

    Args:
        environment: 'production' for JSON output, 'testing' for plain
            console output, anything else for colored console output.
        log_level: Python log level name (DEBUG, INFO, WARNING, etc.).
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _redact_sensitive_keys,
    ]

    if environment == "production":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=environment != "testing")

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # Quiet noisy libraries
    for name in ("uvicorn.access", "httpx", "httpcore", "hpack", "sqlalchemy.engine"):
        logging.getLogger(name).setLevel(logging.WARNING)
