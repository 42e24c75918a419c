"""구조화 로깅 설정 — structlog.

Structured logging configuration. Call setup_logging() once at startup,
then obtain loggers with get_logger(__name__).
"""

import logging
import sys

import structlog

from teamhub.config import settings


def setup_logging() -> None:
    """structlog 프로세서와 표준 logging을 구성합니다."""
    if settings.LOG_FORMAT == "json":
        renderer = structlog.processors.JSONRenderer()
        timestamper = structlog.processors.TimeStamper(fmt="iso")
    else:
        renderer = structlog.dev.ConsoleRenderer()
        timestamper = structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            timestamper,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.LOG_LEVEL.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # 서드파티 라이브러리용 표준 logging — stdlib logging for third-party libraries
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """이름이 지정된 로거를 반환합니다."""
    return structlog.get_logger(name)
