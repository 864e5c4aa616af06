"""
Structured logging setup.

Every event carries ``service`` so NexusGuard lines can be picked out of a
shared log stream; services add ``eid`` and ids as key/values themselves.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog

SERVICE_NAME = "nexusguard"


def resolve_level(level: str) -> int:
    """Map a level name such as "info" to its numeric value."""
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def _add_service(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(level: str = "info", fmt: str = "json") -> None:
    """Configure structlog; ``fmt`` is "json" for deployments, "text" for a console."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_service,
    ]
    if fmt == "json":
        # log.exception tracebacks become structured fields
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(resolve_level(level)),
    )
