"""
Structured logging configuration using structlog.

JSON logs in production, coloured console output in development. Request
handlers bind ``request_id`` through contextvars so every line emitted
while serving a request carries it.

Archived chat text is user content: log events never carry it verbatim.
Fields named in ``REDACTED_FIELDS`` are replaced by their length before
rendering.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from smaraa.config.settings import get_settings

REDACTED_FIELDS = frozenset({"content", "query", "prompt", "api_key"})


def redact_user_content(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    """Replace chat text and secrets in an event with a length marker."""
    for key in REDACTED_FIELDS.intersection(event_dict):
        value = event_dict[key]
        if isinstance(value, str):
            event_dict[key] = f"<redacted {len(value)} chars>"
    return event_dict


def setup_logging() -> None:
    """
    Configure structlog and route stdlib logging through the same stream.

    Usage:
        setup_logging()
        logger = structlog.get_logger()
        logger.info("Archived message", tenant_id="g1", message_id="m1")
    """
    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        redact_user_content,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_production:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    # Provider SDKs log each HTTP exchange at INFO
    for name in ("httpx", "httpcore", "asyncio", "openai", "anthropic", "asyncpg"):
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**kwargs) -> None:
    """Bind fields (e.g. request_id) to every subsequent log line in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
