"""
Structured logging for norm.

norm is a library: its modules log through structlog loggers bound to
stdlib loggers under the ``norm`` namespace, and the ``norm`` logger
carries a ``NullHandler``. An application that never configures logging
sees nothing; one that does gets norm's events through its own handlers.

Manifesto:
    - **Structured:** key/value events (``statement_executed``, ``affected=1``)
    - **Quiet by default:** library events are DEBUG level and go through
      stdlib logging, never straight to stdout
    - **Opt-in output:** :func:`configure_logging` (or
      :func:`norm.settings.configure`) installs the renderer once at startup

Architecture:
    ::

        get_logger("norm.sql.adapter")
            │  structlog proxy over logging.getLogger("norm.sql.adapter")
            ▼
        processors (structlog config) ──► stdlib logger ──► app handlers
                                                  │
                                     "norm" logger: NullHandler

        configure_logging(level="DEBUG", json_format=None, service="billing")
            installs: add_log_level, add_logger_name, TimeStamper,
                      service name, JSONRenderer | ConsoleRenderer
            and a root stream handler at ``level``

Tags:
    logging, structlog, observability, norm

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

ROOT_LOGGER = "norm"

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def _service_processor(service: str) -> Processor:
    def add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        return event_dict

    return add_service


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "norm",
    add_timestamp: bool = True,
) -> None:
    """Render norm's events (and the application's) at ``level``.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for JSON unless stdout is a tty
        service: Value of the ``service`` key stamped on every event
        add_timestamp: Include an ISO timestamp
    """
    numeric_level = getattr(logging, level.upper())
    if json_format is None:
        json_format = not sys.stdout.isatty()

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _service_processor(service),
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))
    processors.append(
        structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def get_logger(name: str = ROOT_LOGGER) -> Any:
    """Structured logger writing to the stdlib logger ``name``."""
    return structlog.wrap_logger(logging.getLogger(name))


__all__ = [
    "configure_logging",
    "get_logger",
]
