"""
Logging configuration and request logging
"""
import logging
import sys
import time

from fastapi import Request

from itam.core.config import settings

_QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
}

request_logger = logging.getLogger("itam.requests")


def setup_logging() -> None:
    """
    Configure the root logger from settings.LOG_LEVEL

    One stdout handler; uvicorn access and SQLAlchemy engine logs are kept
    at WARNING so request lines come from ``log_requests`` only.
    """
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, env=%s", settings.LOG_LEVEL, settings.APP_ENV
    )


async def log_requests(request: Request, call_next):
    """HTTP middleware: one line per request with status and duration."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    level = logging.WARNING if response.status_code >= 500 else logging.INFO
    request_logger.log(
        level, "%s %s -> %d (%.1f ms)",
        request.method, request.url.path, response.status_code, elapsed_ms,
    )
    return response
