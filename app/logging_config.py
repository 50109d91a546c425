"""
logging_config.py — Centralized Logging Configuration for the Design Studio Portal

Sets up Loguru as the single logging backend. Intercepts Python's stdlib
logging module so every getLogger() call (ours, uvicorn's, botocore's)
routes through Loguru with the request context attached.

Business Rules:
- All logs go through Loguru (no print())
- JSON lines in production (APP_URL is not localhost) for machine parsing
- Human-readable colored format in development
- Request ID from middleware is included when available

Called by: app/main.py (lifespan startup)
Depends on: LOG_LEVEL, APP_URL environment variables
"""

import logging
import os
import sys

from loguru import logger

_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "botocore",
    "boto3",
    "urllib3",
    "uvicorn.access",
    "sqlalchemy.engine",
    "apscheduler",
)


def _is_production(app_url: str) -> bool:
    return not any(host in app_url for host in ("localhost", "127.0.0.1"))


def setup_logging() -> None:
    """Configure Loguru and intercept stdlib logging.

    Call once at app startup, before any other imports that log.
    """
    logger.remove()

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    is_production = _is_production(os.getenv("APP_URL", "http://localhost:8000"))

    if is_production:
        # JSON lines to stdout; the container runtime collects them
        logger.add(sys.stdout, level=log_level, format="{message}", serialize=True)
    else:
        logger.add(
            sys.stdout,
            level=log_level,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{extra[request_id]} {message}"
            ),
            colorize=True,
        )
        logger.configure(extra={"request_id": "-"})

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.info("Logging configured", level=log_level, production=is_production)


class _InterceptHandler(logging.Handler):
    """Route stdlib logging records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip frames from stdlib logging internals so loguru reports the caller
        frame, depth = logging.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())
