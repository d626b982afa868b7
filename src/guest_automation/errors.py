"""
Custom exceptions and error handling for the guest automation pipeline.

Provides:
- Typed exception hierarchy for different failure modes
- Error context preservation for debugging
- Helpers that classify raw client exceptions
"""

from typing import Any


class GuestAutomationError(Exception):
    """Base exception for all guest automation errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


# =============================================================================
# Client Errors
# =============================================================================


class ClientError(GuestAutomationError):
    """Base class for client-related errors."""

    pass


class CompletionError(ClientError):
    """Error from the text-completion service.

    Always recovered locally by the rule-based fallbacks.
    """

    pass


class CompletionUnavailableError(CompletionError):
    """No completion service is configured."""

    pass


class CompletionRateLimitError(CompletionError):
    """Rate limit exceeded on the completion service."""

    pass


class CompletionTimeoutError(CompletionError):
    """Completion request did not finish within the configured timeout."""

    pass


class CompletionResponseError(CompletionError):
    """Model refused the request or returned output that failed validation."""

    pass


class StoreError(ClientError):
    """Error from Postgres store operations."""

    pass


class StoreConnectionError(StoreError):
    """Failed to connect to Postgres."""

    pass


class StoreQueryError(StoreError):
    """Error executing a Postgres statement."""

    pass


class StoreConstraintError(StoreError):
    """Constraint violation in Postgres (e.g., foreign key)."""

    pass


# =============================================================================
# Pipeline Errors
# =============================================================================


class PipelineError(GuestAutomationError):
    """Base class for pipeline-related errors."""

    pass


class ValidationError(PipelineError):
    """Input validation failed."""

    pass


class SummarizationError(PipelineError):
    """Error during message summarization."""

    pass


class ResponseGenerationError(PipelineError):
    """Error during guest reply generation."""

    pass


class TaskGenerationError(PipelineError):
    """Error during staff task creation."""

    pass


# =============================================================================
# Error Handling Utilities
# =============================================================================


def wrap_completion_error(
    exc: Exception, context: dict[str, Any] | None = None
) -> CompletionError:
    """
    Wrap a completion-service exception in our typed error hierarchy.

    Args:
        exc: The original exception
        context: Additional context for debugging

    Returns:
        Typed CompletionError subclass
    """
    if isinstance(exc, CompletionError):
        return exc

    error_str = str(exc).lower()
    error_type = type(exc).__name__.lower()
    ctx = context or {}
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__

    if 'rate limit' in error_str or 'rate_limit' in error_str or 'ratelimit' in error_type:
        return CompletionRateLimitError(
            f"Completion rate limit exceeded: {exc}",
            context=ctx,
        )
    elif 'timeout' in error_type or 'timed out' in error_str:
        return CompletionTimeoutError(
            f"Completion request timed out: {exc}",
            context=ctx,
        )
    elif (
        'content policy' in error_str
        or 'refused' in error_str
        or 'validation' in error_type
        or 'json' in error_str
    ):
        return CompletionResponseError(
            f"Completion response rejected: {exc}",
            context=ctx,
        )
    else:
        return CompletionError(
            f"Completion API error: {exc}",
            context=ctx,
        )


def wrap_store_error(exc: Exception, context: dict[str, Any] | None = None) -> StoreError:
    """
    Wrap a Postgres/SQLAlchemy exception in our typed error hierarchy.

    Args:
        exc: The original exception
        context: Additional context for debugging

    Returns:
        Typed StoreError subclass
    """
    if isinstance(exc, StoreError):
        return exc

    error_str = str(exc).lower()
    ctx = context or {}
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__

    if 'connection' in error_str or 'connect' in error_str:
        return StoreConnectionError(
            f"Postgres connection failed: {exc}",
            context=ctx,
        )
    elif 'constraint' in error_str or 'unique' in error_str or 'violates' in error_str:
        return StoreConstraintError(
            f"Postgres constraint violation: {exc}",
            context=ctx,
        )
    else:
        return StoreQueryError(
            f"Postgres query error: {exc}",
            context=ctx,
        )
