"""
Structured logging for the onboarding engine, using structlog on top of stdlib.

Modules keep calling ``logging.getLogger(__name__)``; this module only decides
how records are rendered. Console output by default, JSON lines when
``ONBOARDING_LOG_FORMAT=json``. The flow controller binds the conversation
context it is working on, so every record emitted while handling an action
carries ``context=<session|app id>``.

Usage:
    from onboarding.logging_config import setup_logging
    setup_logging()

    with flow_context("session"):
        logger.info("handled action")
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import AbstractContextManager

import structlog

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("uvicorn.access", "httpx", "asyncio")


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    if level is None:
        level = os.environ.get("ONBOARDING_LOG_LEVEL", "INFO")

    if json_output is None:
        json_output = os.environ.get("ONBOARDING_LOG_FORMAT", "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # foreign_pre_chain lets plain stdlib records pick up bound contextvars
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def flow_context(context: str) -> AbstractContextManager:
    """Bind the conversation context key for log records in this block."""
    return structlog.contextvars.bound_contextvars(context=context)


__all__ = ["flow_context", "setup_logging"]
