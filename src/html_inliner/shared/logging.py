"""Structured logging helpers.

Every record emitted through a ``CorrelationLogger`` carries the component
name and an optional correlation ID in its ``extra`` mapping, so a single
inlining run can be followed across the tokenizer, builder and inliner.
"""

import logging
import sys
from typing import Any, Dict, Optional, TextIO

DEFAULT_FORMAT = "%(levelname)s %(name)s [%(component)s] %(message)s"


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
        self.component = component or name.split(".")[-1]

    def _get_extra(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        combined_extra = {
            "component": self.component,
            "correlation_id": self.correlation_id,
        }
        if extra:
            combined_extra.update(extra)
        return combined_extra

    def is_enabled_for(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self.logger.debug(message, extra=self._get_extra(extra))

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self.logger.info(message, extra=self._get_extra(extra))

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self.logger.warning(message, extra=self._get_extra(extra))


class _ComponentDefaults(logging.Filter):
    """Fill in structured fields for records that did not come through us."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "component"):
            record.component = record.name.split(".")[-1]
        if not hasattr(record, "correlation_id"):
            record.correlation_id = None
        return True


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


def configure_logging(
    level: str = "WARNING",
    stream: Optional[TextIO] = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Handler:
    """Attach a stream handler to the ``html_inliner`` logger hierarchy.

    Calling it again replaces the handler installed by the previous call.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Destination stream, stderr by default
        fmt: Format string; may use ``%(component)s`` and ``%(correlation_id)s``

    Returns:
        The installed handler
    """
    root = logging.getLogger("html_inliner")
    for handler in list(root.handlers):
        if getattr(handler, "_html_inliner_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(_ComponentDefaults())
    handler._html_inliner_handler = True  # type: ignore[attr-defined]

    root.addHandler(handler)
    root.setLevel(level.upper())
    return handler
