"""Structured logging utilities for markdown token tree construction.

This module provides correlation-aware logging so that the records emitted by a
primary parse and by every nested re-tokenization it triggers can be tied back
to one request.
"""

import logging
from typing import Any, Dict, MutableMapping, Optional, Tuple


class CorrelationLogger(logging.LoggerAdapter):
    """Logger adapter that injects correlation ID, component and depth."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None,
        depth: int = 0
    ) -> None:
        """Initialize correlation logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Optional correlation ID for request tracking
            component: Component name for structured logging
            depth: Re-tokenization depth (0 for the primary parse)
        """
        super().__init__(logging.getLogger(name), {})
        self.correlation_id = correlation_id
        self.component = component or name.split(".")[-1]
        self.depth = depth

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        """Merge correlation info into the ``extra`` mapping of a record."""
        combined_extra: Dict[str, Any] = {
            "component": self.component,
            "correlation_id": self.correlation_id,
            "depth": self.depth,
        }
        extra = kwargs.get("extra")
        if extra:
            combined_extra.update(extra)
        kwargs["extra"] = combined_extra
        return msg, kwargs

    def nested(self, component: Optional[str] = None) -> "CorrelationLogger":
        """Return a logger for one level of delegated re-tokenization."""
        return CorrelationLogger(
            self.logger.name,
            self.correlation_id,
            component or self.component,
            self.depth + 1
        )


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None,
    depth: int = 0
) -> CorrelationLogger:
    """Get a correlation-aware logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for request tracking
        component: Component name for structured logging
        depth: Re-tokenization depth of the caller

    Returns:
        CorrelationLogger instance
    """
    return CorrelationLogger(name, correlation_id, component, depth)
