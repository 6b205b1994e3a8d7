"""
Structured logging utilities for testrun.

This module provides a structlog-based logger for the ``testrun`` namespace,
with colored console output, clean tracebacks, and key-value context (test
ids, hook names) without touching the root logger.

Defaults come from the environment:
    TESTRUN_LOG_LEVEL   DEBUG, INFO, WARNING, ERROR (default INFO)
    TESTRUN_LOG_COLORS  1 forces colors on, 0 forces them off, unset auto-detects
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.typing import Processor

LOGGER_NAMESPACE = "testrun"


def _env_log_level() -> str:
    return os.environ.get("TESTRUN_LOG_LEVEL", "INFO")


def _env_force_colors() -> bool | None:
    value = os.environ.get("TESTRUN_LOG_COLORS")
    if value is None or value == "":
        return None
    return value == "1"


def setup_logging(level: str | None = None, force_colors: bool | None = None) -> None:
    """
    Configure structlog for testrun with console output.

    Args:
        level: Log level string. Defaults to $TESTRUN_LOG_LEVEL, then INFO.
        force_colors: Force color output (True/False) or fall back to
            $TESTRUN_LOG_COLORS and finally tty auto-detection (None).
    """
    level_upper = (level or _env_log_level()).upper()
    numeric_level = getattr(logging, level_upper, logging.INFO)
    if force_colors is None:
        force_colors = _env_force_colors()

    # Bound test context, level, logger name and time; rendering happens in the handler.
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="%H:%M:%S", utc=False),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    console_processor = structlog.dev.ConsoleRenderer(
        colors=force_colors if force_colors is not None else sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            console_processor,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    ns_logger = logging.getLogger(LOGGER_NAMESPACE)
    ns_logger.handlers.clear()
    ns_logger.addHandler(handler)
    ns_logger.setLevel(numeric_level)
    ns_logger.propagate = False


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger under the testrun namespace.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("hook_started", hook="TempDirHook", test_id="abc")
    """
    if name is None:
        logger_name = LOGGER_NAMESPACE
    elif name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        logger_name = name
    else:
        logger_name = f"{LOGGER_NAMESPACE}.{name}"

    return structlog.get_logger(logger_name)


def bind_test_context(**kwargs: Any) -> None:
    """
    Bind context variables included in every subsequent log line.

    Example:
        >>> bind_test_context(test_id="abc", test_case_id="def")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_test_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


def unbind_test_context(*keys: str) -> None:
    """Remove specific context variables."""
    structlog.contextvars.unbind_contextvars(*keys)
