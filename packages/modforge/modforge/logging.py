"""modforge — Structured logging configuration.

structlog renders through the stdlib ``logging`` handlers so that library
records and modforge events share one format.  Every record carries the
level, the logger name, an ISO timestamp and, while an add or delete is
running, the ``module_name`` and ``operation`` it belongs to.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_ctx_module_name: ContextVar[str | None] = ContextVar("module_name", default=None)
_ctx_operation: ContextVar[str | None] = ContextVar("operation", default=None)


def bind_operation_context(
    module_name: str | None = None,
    operation: str | None = None,
) -> None:
    """Bind the current add/delete invocation to every following log record."""
    if module_name is not None:
        _ctx_module_name.set(module_name)
    if operation is not None:
        _ctx_operation.set(operation)


def clear_operation_context() -> None:
    _ctx_module_name.set(None)
    _ctx_operation.set(None)


def _inject_operation(
    _logger: WrappedLogger, _method: str, event_dict: EventDict
) -> EventDict:
    if (module_name := _ctx_module_name.get()) is not None:
        event_dict["module_name"] = module_name
    if (operation := _ctx_operation.get()) is not None:
        event_dict["operation"] = operation
    return event_dict


_PRE_CHAIN: list[Processor] = [
    _inject_operation,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _renderer(format: str) -> Processor:
    if format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    level: str = "warning",
    format: str = "console",
    log_file: str | None = None,
) -> None:
    """Configure structlog and stdlib logging.

    Safe to call again: the CLI configures once from its flags and a second
    time after the project's settings are loaded.

    Args:
        level:    One of debug, info, warning, error, critical.
        format:   ``"console"`` or ``"json"``.
        log_file: Optional path to write logs to in addition to stderr.
    """
    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # Loggers are created at import time, before the final configuration.
        cache_logger_on_first_use=False,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer(format)],
    )

    # stdout belongs to the CLI's rich console output.
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for old in root_logger.handlers:
        if isinstance(old, logging.FileHandler):
            old.close()
    root_logger.handlers = handlers
    root_logger.setLevel(level.upper())


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger for *name*, e.g. ``get_logger(__name__)``."""
    return structlog.get_logger(name)
