"""Structured logging for the Checkout domain.

structlog events are rendered through stdlib logging so that records from
protean, stripe and uvicorn share one stream. Production and staging emit JSON
lines, every other environment the plain console renderer.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

import structlog

DEFAULT_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

QUIET_LOGGERS = ("protean", "stripe", "asyncio")

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024


def current_environment() -> str:
    return (os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def log_level(environment: str) -> str:
    """``LOG_LEVEL`` when set, otherwise the default for ``environment``."""
    return os.getenv("LOG_LEVEL", DEFAULT_LEVELS.get(environment, "INFO")).upper()


def build_handlers(log_dir: str | None) -> list[logging.Handler]:
    """Console handler, plus a rotating ``checkout.log`` when ``log_dir`` is given."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=path / "checkout.log",
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=5,
                encoding="utf-8",
            )
        )
    return handlers


def configure_logging(environment: str | None = None) -> None:
    environment = environment or current_environment()
    level = log_level(environment)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=build_handlers(os.getenv("CHECKOUT_LOG_DIR")),
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if environment in ("production", "staging"):
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
