# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging configuration using structlog.

Modules log through stdlib logging.getLogger(__name__). setup_logging()
installs a structlog ProcessorFormatter on the root handler, so those
records are rendered by structlog too: JSON outside development, colored
console output in development. Values bound with bind_context() (the
request id, the acting user) are merged into every line logged while they
are bound.

Example:
    >>> from coursehub.utils.logging import setup_logging, bind_context
    >>> from coursehub.core.config import get_settings
    >>> setup_logging(get_settings())
    >>> bind_context(request_id="abc-123")
    >>> logging.getLogger("coursehub.api").info("View assembled")  # carries request_id
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from coursehub.core.config.settings import Settings

# Library loggers kept at WARNING whatever the configured level.
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "asyncio")

HANDLER_NAME = "coursehub"


def _pre_chain() -> list[Processor]:
    # Applied to every stdlib record before rendering.
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def build_formatter(json_output: bool) -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering stdlib records through structlog."""
    if json_output:
        renderers: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=True)]
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )


def setup_logging(settings: "Settings") -> None:
    """Route all logging through structlog.

    Installs one stdout handler on the root logger, replacing the one a
    previous call installed. Other root handlers are left alone.

    Args:
        settings: Application settings providing log_level and environment.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(build_formatter(json_output=not settings.is_development))

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**kwargs: object) -> None:
    """Bind values to every line logged in the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all bound values; called at the end of each request."""
    structlog.contextvars.clear_contextvars()
