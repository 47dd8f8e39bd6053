"""
Structured logging via structlog.

Development gets coloured console lines, production gets one JSON object per
line. Provider credentials never reach the log: NewsAPI takes its key as an
``apiKey`` query parameter, so any logged URL is scrubbed on the way out.
"""

from __future__ import annotations

import logging
import re
import sys

import structlog

from trendspark.core.config import Settings, get_settings

# Provider SDKs log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "groq", "readability", "asyncio")

_SECRET_QUERY = re.compile(r"(?i)(api_?key=)[^&\s\"']+")
_SECRET_FIELDS = frozenset({"api_key", "apikey", "news_api_key", "groq_api_key", "openai_api_key"})


def redact_secrets(
    logger: object, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    for key, value in event_dict.items():
        if key.lower() in _SECRET_FIELDS and value:
            event_dict[key] = "***"
        elif isinstance(value, str) and "=" in value:
            event_dict[key] = _SECRET_QUERY.sub(r"\1***", value)
    return event_dict


def _renderer(settings: Settings) -> structlog.types.Processor:
    if settings.app_env == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            redact_secrets,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.log_level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
