"""structlog setup for the controller and its clock loop.

Both stdlib ``logging`` calls and structlog loggers go through one
``ProcessorFormatter`` so request context (trace id, acting user) and
secret masking apply to every line, whichever API emitted it.
"""

import logging
import sys
from collections.abc import Mapping
from typing import Any

import structlog

REDACTED = "[PRIVATE DATA HIDDEN]"
SECRET_FIELDS = frozenset({"docker_credentials", "password", "jwt_secret"})

_NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


def redact(values: Mapping[str, Any]) -> dict[str, Any]:
    """Copy ``values`` with secret fields masked, descending into nested mappings."""
    masked: dict[str, Any] = {}
    for key, value in values.items():
        if key in SECRET_FIELDS and value is not None:
            masked[key] = REDACTED
        elif isinstance(value, Mapping):
            masked[key] = redact(value)
        else:
            masked[key] = value
    return masked


def redact_secrets(logger, method_name: str, event_dict: dict) -> dict:
    return redact(event_dict)


def configure_logging(log_level: str = "info", json_output: bool = False) -> None:
    """Route stdlib and structlog output to stdout.

    JSON lines in deployments; colored console output in local mode.
    """
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(trace_id: str, user_id: str | None = None) -> None:
    structlog.contextvars.bind_contextvars(trace_id=trace_id)
    if user_id:
        structlog.contextvars.bind_contextvars(user_id=user_id)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
