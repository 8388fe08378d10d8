"""Structured logging setup shared by the app, gunicorn workers and tests."""

import sys
import logging
from pathlib import Path
from typing import List, Optional

import structlog

from core.config import Settings

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "watchfiles", "aiosqlite", "sqlalchemy.engine", "sqlalchemy.pool")


def _build_handlers(level: int, log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))
    for handler in handlers:
        handler.setLevel(level)
    return handlers


def configure_logging(settings: Settings) -> None:
    """Route structlog through stdlib logging with a JSON or console renderer."""
    level = getattr(logging, settings.log_level.upper())
    logging.basicConfig(
        level=level,
        handlers=_build_handlers(level, settings.log_file),
        format="%(message)s",
        force=True
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    shared = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if settings.log_format == "json":
        processors = [structlog.processors.TimeStamper(fmt="iso", utc=True), *shared,
                      structlog.processors.JSONRenderer()]
    else:
        processors = [structlog.processors.TimeStamper(fmt="%H:%M:%S"), *shared,
                      structlog.dev.ConsoleRenderer(colors=False, pad_event_to=35,
                                                    exception_formatter=structlog.dev.plain_traceback)]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def log_request(logger: structlog.BoundLogger, method: str, path: str,
                status_code: int, start_time: float, end_time: float, **kwargs) -> None:
    """Log a served HTTP request with its duration in milliseconds."""
    log = logger.warning if status_code >= 500 else logger.info
    log(
        "Request completed",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=round((end_time - start_time) * 1000, 2),
        **kwargs
    )


def log_cache_operation(logger: structlog.BoundLogger, operation: str,
                        key: str, hit: Optional[bool] = None, **kwargs) -> None:
    """Debug-level trace of a cache call; ``hit`` is only set for reads."""
    if hit is not None:
        kwargs["cache_hit"] = hit
    logger.debug("Cache operation", operation=operation, cache_key=key, **kwargs)
