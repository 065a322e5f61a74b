#!/usr/bin/env -S python3 -B -u
"""
Structured Logging for RouteX

This module provides structured logging with verbosity levels shared by the
command-line front end and the route engine's module loggers.

Key Features:
- Structured log messages with key=value context
- Verbosity-based filtering (0-3)
- Timing of listing, reconciliation and route commands
- Masking of sensitive context values
- JSON output for log aggregation
"""

import json
import logging as std_logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Union


VERBOSITY_LEVELS = {
    0: std_logging.WARNING,
    1: std_logging.INFO,
    2: std_logging.DEBUG,
    3: std_logging.DEBUG,
}

SENSITIVE_KEYS = {'password', 'secret', 'token', 'auth'}


class JsonFormatter(std_logging.Formatter):
    """One JSON object per record."""

    def format(self, record: std_logging.LogRecord) -> str:
        return json.dumps({
            'time': self.formatTime(record, '%Y-%m-%dT%H:%M:%S'),
            'logger': record.name,
            'level': record.levelname,
            'message': record.getMessage(),
        })


def _create_formatter(verbose_level: int, log_format: str = 'text') -> std_logging.Formatter:
    """Create appropriate formatter based on verbosity."""
    if log_format == 'json':
        return JsonFormatter()
    if verbose_level >= 3:
        return std_logging.Formatter(
            '%(asctime)s [%(name)s] %(levelname)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    if verbose_level >= 2:
        return std_logging.Formatter('[%(name)s] %(levelname)s: %(message)s')
    return std_logging.Formatter('%(levelname)s: %(message)s')


class StructuredLogger:
    """
    Logger wrapper that appends key=value context to messages.

    Verbosity levels:
    - 0: Only errors and warnings
    - 1: Info messages
    - 2: Debug messages with context
    - 3: Trace-level debugging with JSON context
    """

    def __init__(self, name: str, verbose_level: int = 0):
        self.name = name
        self.verbose_level = verbose_level
        self.logger = std_logging.getLogger(name)

    def _with_context(self, message: str, context: Dict[str, Any]) -> str:
        if not context or self.verbose_level < 2:
            return message
        return f"{message} | {self._format_context(context)}"

    def error(self, message: str, **context: Any) -> None:
        self.logger.error(self._with_context(message, context))

    def warning(self, message: str, **context: Any) -> None:
        self.logger.warning(self._with_context(message, context))

    def info(self, message: str, **context: Any) -> None:
        self.logger.info(self._with_context(message, context))

    def debug(self, message: str, **context: Any) -> None:
        self.logger.debug(self._with_context(message, context))

    def trace(self, message: str, **context: Any) -> None:
        """Log trace message (shown at verbosity 3)."""
        if self.verbose_level >= 3:
            self.logger.debug(f"[TRACE] {self._with_context(message, context)}")

    def _format_context(self, context: Dict[str, Any]) -> str:
        masked_context = mask_sensitive_data(context)
        if self.verbose_level >= 3:
            return json.dumps(masked_context, default=str)
        return " ".join(f"{k}={v}" for k, v in masked_context.items())

    @contextmanager
    def timer(self, operation: str):
        """Context manager for timing operations."""
        start_time = time.time()
        self.debug(f"Starting {operation}")
        try:
            yield
        finally:
            elapsed = time.time() - start_time
            self.debug(f"Completed {operation}", elapsed_ms=f"{elapsed*1000:.2f}")

    def log_command_execution(
        self,
        command: Union[str, List[str]],
        success: Optional[bool] = None,
        **details: Any
    ) -> None:
        """Log a route command, with its outcome when known."""
        cmd_str = command if isinstance(command, str) else " ".join(command)
        message = f"Executing: {cmd_str}"
        if success is not None:
            message += f" - {'SUCCESS' if success else 'FAILED'}"
        if success is False:
            self.warning(message, **details)
        else:
            self.info(message, **details)


def mask_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Mask sensitive values in a context dictionary."""
    masked_data = {}
    for key, value in data.items():
        if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            masked_data[key] = "***MASKED***"
        elif isinstance(value, dict):
            masked_data[key] = mask_sensitive_data(value)
        else:
            masked_data[key] = value
    return masked_data


def get_logger(name: str, verbose_level: int = 0) -> StructuredLogger:
    """
    Get or create a structured logger.

    Args:
        name: Logger name (usually __name__)
        verbose_level: Verbosity level (0-3)

    Returns:
        StructuredLogger instance
    """
    if not hasattr(get_logger, '_loggers'):
        get_logger._loggers = {}

    cache_key = f"{name}:{verbose_level}"
    if cache_key not in get_logger._loggers:
        get_logger._loggers[cache_key] = StructuredLogger(name, verbose_level)

    return get_logger._loggers[cache_key]


def setup_logging(verbose_level: int = 0, log_format: str = 'text',
                  level: Optional[str] = None) -> None:
    """
    Setup logging for the entire application.

    Args:
        verbose_level: Global verbosity level (0-3)
        log_format: 'text' or 'json'
        level: Explicit level name from configuration; verbosity wins when higher
    """
    verbose_level = max(0, min(verbose_level, 3))
    numeric_level = VERBOSITY_LEVELS[verbose_level]
    if level:
        configured = std_logging.getLevelName(str(level).upper())
        if isinstance(configured, int):
            numeric_level = min(numeric_level, configured)

    root_logger = std_logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in list(root_logger.handlers):
        if getattr(handler, '_routex_handler', False):
            root_logger.removeHandler(handler)

    handler = std_logging.StreamHandler(sys.stderr)
    handler.setFormatter(_create_formatter(verbose_level, log_format))
    handler._routex_handler = True
    root_logger.addHandler(handler)

    # Thread pool internals are noisy at debug level
    std_logging.getLogger('concurrent').setLevel(std_logging.WARNING)

