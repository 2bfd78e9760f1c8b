"""Structured logging utilities for NXML parsing.

Wraps the standard library logger so every record carries the component name
and an optional correlation ID, letting callers tie parse diagnostics back to
the file or request that produced them.
"""

import logging
from typing import Any, Dict, Optional


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
            correlation_id: Optional correlation ID for request tracking
            component: Component name for structured logging
        """
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.rsplit(".", 1)[-1]

    def _log(
        self,
        level: int,
        message: str,
        extra: Optional[Dict[str, Any]]
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        payload = {
            "component": self.component,
            "correlation_id": self.correlation_id,
        }
        if extra:
            payload.update(extra)
        self.logger.log(level, message, extra=payload)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log debug message with correlation info."""
        self._log(logging.DEBUG, message, extra)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Get a correlation-aware logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for request tracking
        component: Component name for structured logging

    Returns:
        CorrelationLogger instance
    """
    return CorrelationLogger(name, correlation_id, component)
