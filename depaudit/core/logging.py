"""Structured logging for the CLI: structlog events routed through stdlib logging.

All records go to stderr so ``--json`` output on stdout stays parseable.
"""

from __future__ import annotations

import logging.config
import sys
from typing import Any

import structlog

from depaudit.core.config import Settings, load_settings

# Third-party loggers that only matter when something is wrong.
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def _pre_chain(log_format: str) -> list[structlog.types.Processor]:
    chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]
    # Interactive output stays short; machine output carries a timestamp.
    if log_format == "json":
        chain.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    chain += [
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    return chain


def _final_renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def build_logging_config(level: str, log_format: str) -> dict[str, Any]:
    """``dictConfig`` payload with one structlog-formatted stderr handler."""
    loggers: dict[str, dict[str, str]] = {"depaudit": {"level": level}}
    loggers.update({name: {"level": "WARNING"} for name in QUIET_LOGGERS})
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "events": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": _pre_chain(log_format),
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    _final_renderer(log_format),
                ],
            },
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "events",
            },
        },
        "root": {"handlers": ["stderr"], "level": level},
        "loggers": loggers,
    }


def setup_logging(verbose: bool = False, settings: Settings | None = None) -> None:
    """Apply ``DEPAUDIT_LOG_LEVEL`` / ``DEPAUDIT_LOG_FORMAT``; *verbose* forces DEBUG."""
    settings = settings or load_settings()
    level = "DEBUG" if verbose else settings.log_level

    structlog.configure(
        processors=[
            *_pre_chain(settings.log_format),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(build_logging_config(level, settings.log_format))
