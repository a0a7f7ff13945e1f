"""
Error Taxonomy

Exceptions raised by the graph-building pipeline.

    InvalidArgumentError  - programmer error (e.g. merging an empty entity list)
    OperationCancelledError - caller-requested abort, not a failure
    UpstreamFailureError  - a backing store or enrichment service is unavailable

Validation problems are not exceptions: ``Graph.validate()`` returns them
as a list and the caller decides severity.
"""

from __future__ import annotations

from typing import Any


class ChunkGraphError(Exception):
    """Base exception for all chunkgraph errors."""

    def __init__(
        self,
        error_code: str,
        message: str = "",
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize the error.

        Args:
            error_code: Stable machine-readable code
            message: Human-readable description
            details: Technical details about the error
            cause: Original exception, if any
        """
        self.error_code = error_code
        self.message = message or error_code
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)


class InvalidArgumentError(ChunkGraphError, ValueError):
    """Raised when a function is called with arguments it cannot accept."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__("INVALID_ARGUMENT", message, details)


class OperationCancelledError(ChunkGraphError):
    """Raised when a caller cancels a running operation."""

    def __init__(self, operation: str = "", details: dict[str, Any] | None = None):
        message = f"{operation} was cancelled" if operation else "Operation was cancelled"
        super().__init__(
            "CANCELLED",
            message,
            {"operation": operation, **(details or {})},
        )


class UpstreamFailureError(ChunkGraphError):
    """Raised when an upstream store or service fails."""

    def __init__(
        self,
        upstream_error: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(
            "UPSTREAM_FAILURE",
            upstream_error,
            {"upstream_error": upstream_error, **(details or {})},
            cause,
        )
