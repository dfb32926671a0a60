"""
Structured logging configuration using structlog.

JSON lines in production, coloured console output in development. Every
event carries the request context bound by RequestLoggingMiddleware and the
application name/version. Participant contact details never reach the log
sink: emails and mobile numbers are masked by `mask_contact_details`.
"""

import logging
import re
import sys

import structlog
from structlog.types import EventDict, WrappedLogger

from gusto.core.config import get_settings

_EMAIL = re.compile(r"([^\s@:]{1,2})[^\s@:]*(@[^\s@]+)")
_MOBILE = re.compile(r"\b(\d{2})\d{6}(\d{2})\b")


def _mask(value: str) -> str:
    value = _EMAIL.sub(r"\1***\2", value)
    return _MOBILE.sub(r"\1******\2", value)


def mask_contact_details(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    for key, value in event_dict.items():
        if key != "event" and isinstance(value, str):
            event_dict[key] = _mask(value)
    return event_dict


def _add_app_context(app_name: str, version: str):
    def processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", app_name)
        event_dict.setdefault("version", version)
        return event_dict

    return processor


def setup_logging() -> None:
    settings = get_settings()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        mask_contact_details,
    ]

    if settings.ENVIRONMENT == "production":
        shared_processors.append(_add_app_context(settings.APP_NAME, settings.APP_VERSION))
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

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
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ]
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    # Replace, not append: uvicorn --reload calls the lifespan again
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("smtplib").setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
