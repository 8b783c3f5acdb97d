"""Structured logging configuration using *structlog*.

The client only ever asks structlog for loggers; applications embedding it
call ``setup_logging`` once at startup.  Every exchange with the daemon is
logged as a ``docker_request`` event carrying method, endpoint, status
code, transport and duration at DEBUG level.
"""

from __future__ import annotations

import structlog

from docker_engine_api.config import Settings


def setup_logging(log_level: str | None = None, *, json_output: bool = True) -> None:
    """Configure structlog for the client's events.

    Parameters:
        log_level: Minimum log level to emit (e.g. ``"DEBUG"``, ``"INFO"``).
                   Defaults to ``LOG_LEVEL`` from the environment.
        json_output: Render JSON lines; otherwise use the human-friendly
                     console renderer.

    Raises:
        ValueError: If *log_level* is not a known level name.
    """
    if log_level is None:
        log_level = Settings().LOG_LEVEL
    if log_level.lower() not in structlog.processors.NAME_TO_LEVEL:
        raise ValueError(f"Unknown log level: {log_level!r}")
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
