# logging.py

import logging
import os
from logging.handlers import RotatingFileHandler

import structlog
from structlog.contextvars import merge_contextvars

from Questporter.config import Settings

_SENSITIVE_SUFFIXES = ("_token", "_secret", "_key")


def _level(name: str | None, default: int) -> int | None:
    """Map a level name to its number; None means the handler is off."""
    if name is None:
        return default
    if name.upper() == "NONE":
        return None
    return getattr(logging, name.upper(), default)


def _json_formatter() -> structlog.stdlib.ProcessorFormatter:
    # Renders structlog events and third-party stdlib records alike
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.add_log_level,
            merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        foreign_pre_chain=[
            structlog.processors.add_log_level,
            merge_contextvars,
        ],
    )


def _handlers(settings: Settings, level: int) -> list[logging.Handler]:
    formatter = _json_formatter()
    handlers: list[logging.Handler] = []

    console_level = _level(settings.logging_console, level)
    if console_level is not None:
        console = logging.StreamHandler()
        console.setLevel(console_level)
        handlers.append(console)

    file_level = _level(settings.logging_file, level)
    if file_level is not None:
        path = settings.logging_file_path
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        rotating = RotatingFileHandler(
            path,
            maxBytes=settings.logging_max_bytes,
            backupCount=settings.logging_backup_count,
        )
        rotating.setLevel(file_level)
        handlers.append(rotating)

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(settings: Settings | None = None) -> None:
    """Route structlog and stdlib logging to JSON console/file handlers.

    Handler levels come from the [logging] table; with logging disabled every
    record is discarded.
    """
    settings = settings or Settings()
    if not settings.logging_enabled:
        logging.basicConfig(level=logging.CRITICAL + 1, handlers=[logging.NullHandler()], force=True)
        return

    level = _level(settings.logging_level, logging.INFO) or logging.INFO
    logging.captureWarnings(True)
    logging.basicConfig(level=level, handlers=_handlers(settings, level), force=True)

    # World client requests log through httpx
    for name in ("httpx", "httpcore", "asyncio"):
        lg = logging.getLogger(name)
        lg.handlers = []
        lg.propagate = True

    structlog.configure(
        processors=[
            merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def redact_settings(settings: Settings) -> dict:
    """Return settings as a dict with keys, tokens and secrets replaced by "[REDACTED]"."""
    data = settings.model_dump()
    for k in data:
        if k == "setup_admin_key" or k.endswith(_SENSITIVE_SUFFIXES):
            data[k] = "[REDACTED]"
    return data
