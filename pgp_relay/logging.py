"""Structured logging setup using structlog."""

from __future__ import annotations

import logging
import sys

import structlog

# Event-dict keys whose values must never be rendered
REDACTED_KEYS = frozenset({"token", "smtp_token"})


def redact_secrets(
    logger: logging.Logger, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Mask confirmation tokens and credentials before rendering."""
    for key in REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def setup_logging(*, json: bool = True, level: str = "INFO") -> None:
    """Configure structlog for the relay process.

    Parameters
    ----------
    json:
        If *True* (the default, suitable for production), output JSON
        lines.  If *False*, use a human-friendly console renderer.
    level:
        Root log level name (e.g. ``"DEBUG"``, ``"INFO"``).
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Records from plain stdlib loggers (uvicorn) go through the same chain
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
