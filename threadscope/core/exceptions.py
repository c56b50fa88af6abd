"""Custom exception types for better error handling and categorization.

Provides boundary exceptions for file inputs and upstream HTTP services.
The thread-building core itself never raises these.
"""

from pathlib import Path
from typing import Optional


class ThreadscopeError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(  # noqa: B042
        self,
        message: str,
        *,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize error with message and optional correlation id."""
        super().__init__(message)
        self.correlation_id = correlation_id


class InputNotFoundError(ThreadscopeError):
    """Input file is missing.

    Raised when:
    - Channel export file doesn't exist
    - A previous stage's artifact (relevance set, threads) wasn't produced
    """

    def __init__(  # noqa: B042
        self,
        message: str,
        path: Optional[Path | str] = None,
        *,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize input-not-found error.

        Args:
            message: Error message
            path: Path that was looked up
            correlation_id: Optional correlation ID for tracing
        """
        super().__init__(message, correlation_id=correlation_id)
        self.path = str(path) if path is not None else None


class MalformedInputError(ThreadscopeError):
    """Input file exists but can't be used.

    Raised when:
    - File isn't valid JSON
    - Pydantic validation of the export/artifact schema failed
    """

    def __init__(  # noqa: B042
        self,
        message: str,
        path: Optional[Path | str] = None,
        validation_errors: Optional[list] = None,
        *,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize malformed input error.

        Args:
            message: Error message
            path: Offending file path
            validation_errors: List of validation errors from Pydantic
            correlation_id: Optional correlation ID for tracing
        """
        super().__init__(message, correlation_id=correlation_id)
        self.path = str(path) if path is not None else None
        self.validation_errors = validation_errors or []


class UpstreamServiceError(ThreadscopeError):
    """Embedding or LLM service call failed.

    Raised when:
    - Connection refused / timeout
    - Non-2xx HTTP status
    - Response body is missing the expected fields
    """

    def __init__(  # noqa: B042
        self,
        message: str,
        service: str,
        status_code: Optional[int] = None,
        *,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize upstream service error.

        Args:
            message: Error message
            service: Upstream service label (e.g., "ollama-embeddings")
            status_code: HTTP status code if a response was received
            correlation_id: Optional correlation ID for tracing
        """
        super().__init__(message, correlation_id=correlation_id)
        self.service = service
        self.status_code = status_code
