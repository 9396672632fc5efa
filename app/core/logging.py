"""Structured logging setup using structlog.

Every log line carries whichever of request_id, user_id, chat_id and task
are bound in the current context: the HTTP middleware binds the first two,
the pipeline binds chat_id, and arq tasks bind task. Output is JSON unless
LOG_FORMAT is "console" (or "auto" with DEBUG on).
"""

import logging
import sys
from contextvars import ContextVar

import structlog

from app.config import get_settings

# ── Context variables (bound per-request/per-task) ───────────────────

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
chat_id_var: ContextVar[str | None] = ContextVar("chat_id", default=None)
task_var: ContextVar[str | None] = ContextVar("task", default=None)

LOG_CONTEXT: dict[str, ContextVar[str | None]] = {
    "request_id": request_id_var,
    "user_id": user_id_var,
    "chat_id": chat_id_var,
    "task": task_var,
}

QUIET_LOGGERS = ("httpx", "httpcore", "openai", "botocore", "arq.jobs", "sqlalchemy.engine")


def bind_context(**values: str | None) -> None:
    """Set log context vars by name, e.g. ``bind_context(task="generate_title")``."""
    for key, value in values.items():
        LOG_CONTEXT[key].set(value)


def _inject_context_vars(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    for key, var in LOG_CONTEXT.items():
        value = var.get()
        if value is not None:
            event_dict.setdefault(key, value)
    return event_dict


def _use_console(log_format: str, debug: bool) -> bool:
    if log_format == "console":
        return True
    if log_format == "json":
        return False
    return debug


def setup_logging() -> None:
    """Configure structlog + stdlib logging. Call once per process."""
    settings = get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _inject_context_vars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if _use_console(settings.log_format, settings.debug):
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
        final_processors = [renderer]
    else:
        renderer = structlog.processors.JSONRenderer()
        final_processors = [structlog.processors.format_exc_info, renderer]

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *final_processors,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)
