"""Correlation ID utilities for run tracing.

Every CLI invocation gets one id so log lines of a multi-channel run can be
grouped together.
"""

import contextvars
import uuid
from typing import Optional

_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def generate_correlation_id() -> str:
    """Generate a new correlation ID.

    Returns:
        UUID4 string for correlation tracking
    """
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    """Get current correlation ID from context."""
    return _correlation_id.get()


class CorrelationContext:
    """Context manager for correlation ID tracking.

    Usage:
        with CorrelationContext() as correlation_id:
            logger.info("Processing", extra={"correlation_id": correlation_id})
    """

    def __init__(self, correlation_id: Optional[str] = None):
        """Initialize correlation context.

        Args:
            correlation_id: Optional custom correlation ID, generates new if None
        """
        self.correlation_id = correlation_id or generate_correlation_id()
        self.token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self.token = _correlation_id.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.token is not None:
            _correlation_id.reset(self.token)
