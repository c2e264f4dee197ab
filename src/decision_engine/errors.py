"""
Custom exceptions and error handling for the Decision Engine.

Provides:
- Typed exception hierarchy for different failure modes
- Error context preservation for debugging
- Wrapping of data store driver errors

The ranking and scheduling core never raises for degraded data; these types
cover the validation layer and the I/O performed around the core.
"""

from typing import Any


class DecisionEngineError(Exception):
    """Base exception for all decision engine errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


# =============================================================================
# Data Store Errors
# =============================================================================


class DataStoreError(DecisionEngineError):
    """Error from data store operations. Callers treat these as retryable."""

    pass


class DataStoreConnectionError(DataStoreError):
    """Failed to connect to the data store."""

    pass


class DataStoreQueryError(DataStoreError):
    """Error executing a data store query."""

    pass


# =============================================================================
# Pipeline Errors
# =============================================================================


class PipelineError(DecisionEngineError):
    """Base class for errors raised by the orchestration around the core."""

    pass


# =============================================================================
# Error Handling Utilities
# =============================================================================


def wrap_data_store_error(
    exc: Exception, context: dict[str, Any] | None = None
) -> DataStoreError:
    """
    Wrap a database driver exception in our typed error hierarchy.

    Args:
        exc: The original exception
        context: Additional context for debugging

    Returns:
        Typed DataStoreError subclass
    """
    error_str = str(exc).lower()
    ctx = context or {}
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__

    if 'connection' in error_str or 'connect' in error_str or 'timeout' in error_str:
        return DataStoreConnectionError(
            f"Data store connection failed: {exc}",
            context=ctx,
        )
    return DataStoreQueryError(
        f"Data store query error: {exc}",
        context=ctx,
    )
