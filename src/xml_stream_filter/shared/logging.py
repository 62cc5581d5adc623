"""Structured logging utilities for filtered fragment building.

This module provides correlation-aware logging so that every record emitted
while a document is being filtered can be traced back to the build that
produced it.
"""

import logging
from typing import Any, Dict, Optional

_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(component)s] %(message)s"


class _ComponentDefaultsFilter(logging.Filter):
    """Fill in structured fields for records not emitted by CorrelationLogger."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "component"):
            record.component = record.name.split(".")[-1]
        if not hasattr(record, "correlation_id"):
            record.correlation_id = None
        return True


class CorrelationLogger:
    """Logger that automatically includes correlation ID and component information."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        """Initialize correlation logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Optional correlation ID for build tracking
            component: Component name for structured logging
        """
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.split(".")[-1]

    def child(self, component: str) -> "CorrelationLogger":
        """Derive a logger for a sub-component sharing the correlation ID."""
        return CorrelationLogger(self.logger.name, self.correlation_id, component)

    def is_debug_enabled(self) -> bool:
        """Check whether debug records would be emitted."""
        return self.logger.isEnabledFor(logging.DEBUG)

    def _get_extra(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        combined_extra = {
            "component": self.component,
            "correlation_id": self.correlation_id,
        }
        if extra:
            combined_extra.update(extra)
        return combined_extra

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log debug message with correlation info."""
        self.logger.debug(message, extra=self._get_extra(extra))

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log info message with correlation info."""
        self.logger.info(message, extra=self._get_extra(extra))

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log warning message with correlation info."""
        self.logger.warning(message, extra=self._get_extra(extra))

    def error(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = True
    ) -> None:
        """Log error message with correlation info."""
        self.logger.error(message, extra=self._get_extra(extra), exc_info=exc_info)

    def exception(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log exception message with correlation info and traceback."""
        self.logger.exception(message, extra=self._get_extra(extra))


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Get a correlation-aware logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for build tracking
        component: Component name for structured logging

    Returns:
        CorrelationLogger instance
    """
    return CorrelationLogger(name, correlation_id, component)


def configure_logging(level: str = "INFO") -> None:
    """Install a stderr handler on the package logger.

    Args:
        level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL
    """
    level_name = level.upper()
    if level_name not in _VALID_LEVELS:
        raise ValueError(f"logging level must be one of {list(_VALID_LEVELS)}")

    package_logger = logging.getLogger("xml_stream_filter")
    package_logger.setLevel(level_name)

    # Re-running reconfigures the level without stacking handlers
    for handler in package_logger.handlers:
        if getattr(handler, "_xml_stream_filter_handler", False):
            handler.setLevel(level_name)
            return

    handler = logging.StreamHandler()
    handler.setLevel(level_name)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    handler.addFilter(_ComponentDefaultsFilter())
    handler._xml_stream_filter_handler = True  # type: ignore[attr-defined]
    package_logger.addHandler(handler)
