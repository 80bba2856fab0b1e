"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys

import structlog


def setup_logging(level: str = "INFO") -> None:
    """Configure structured logging for the coach service.

    Console output when attached to a terminal, JSON lines otherwise.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
            if sys.stderr.isatty()
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_project(project_id: str, stage: str | None = None) -> None:
    """Attach project context to every log line emitted during the current turn."""
    structlog.contextvars.clear_contextvars()
    if stage:
        structlog.contextvars.bind_contextvars(project_id=project_id, stage=stage)
    else:
        structlog.contextvars.bind_contextvars(project_id=project_id)
