# src/workflow_telemetry/core/logging.py
"""Logging setup for the exporter process.

structlog is the front end. stdlib records emitted by httpx, the
OpenTelemetry SDK and the Google client libraries are routed through
the same processor chain by a ProcessorFormatter on the root handler,
so every line on stderr has one shape. stdout is reserved for command
output (``show``, ``validate`` and the console exporter).
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# Library loggers clamped to WARNING (or the root level, if stricter).
_CHATTY_LIBRARIES: tuple[str, ...] = (
    "httpx",
    "httpcore",
    "urllib3",
    "opentelemetry",
    "google",
    "grpc",
)


def _pre_chain() -> list[Any]:
    """Processors run on every record before rendering."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]


def _render_chain(json_output: bool) -> list[Any]:
    if json_output:
        return [
            ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [ProcessorFormatter.remove_processors_meta, structlog.dev.ConsoleRenderer(colors=False)]


def configure_logging(*, json_output: bool = False, level: str = "INFO") -> None:
    """Install the stderr handler and point structlog at it.

    Safe to call more than once; each call replaces the root handlers.

    Args:
        json_output: Emit one JSON object per line instead of console text.
        level: Root level name (DEBUG, INFO, WARNING, ERROR).
    """
    root_level = logging.getLevelName(level.upper())
    if not isinstance(root_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = ProcessorFormatter(processors=_render_chain(json_output), foreign_pre_chain=pre_chain)
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(stderr_handler)
    root.setLevel(root_level)

    library_level = max(root_level, logging.WARNING)
    for name in _CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
