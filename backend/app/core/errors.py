"""Domain exceptions and centralized error normalization.

Every error surfaced to an API client passes through this module so that:
- Structure is consistent (user_message, error_category, retryable)
- No stack traces reach the response body
- Detailed info is logged for debugging
"""

import logging
from dataclasses import dataclass

from backend.app.core.logging import EVENT_DB_READ_FAILED, EVENT_DB_WRITE_FAILED, log_event

logger = logging.getLogger(__name__)


class InvalidInputError(ValueError):
    """Raised when an activity count or weight is malformed.

    Negative or non-finite counts are rejected rather than coerced so the
    caller learns its upstream data is wrong.
    """


class UnknownUserError(InvalidInputError):
    """Raised when an input references a user outside the cohort."""


@dataclass(frozen=True)
class NormalizedError:
    """Standardized error representation for API responses."""

    user_message: str
    error_category: str
    retryable: bool
    http_status: int = 500


def normalize_db_error(
    exc: Exception,
    *,
    operation: str,
    correlation_id: str | None = None,
    write: bool = False,
) -> NormalizedError:
    """Normalize a database error into a user-friendly message.

    Logged as ``db_write_failed`` when *write* is set, else ``db_read_failed``.
    """
    exc_msg = str(exc).lower()

    if "locked" in exc_msg or "busy" in exc_msg:
        error = NormalizedError(
            user_message=(
                "The database is temporarily busy. Please try again in a moment."
            ),
            error_category="db",
            retryable=True,
            http_status=503,
        )
    elif "no such table" in exc_msg:
        error = NormalizedError(
            user_message=(
                "The workspace database is not initialized. "
                "Run migrations and try again."
            ),
            error_category="db",
            retryable=False,
            http_status=500,
        )
    else:
        error = NormalizedError(
            user_message="A database error occurred. Please try again.",
            error_category="db",
            retryable=True,
            http_status=500,
        )

    log_event(
        logger, "error", EVENT_DB_WRITE_FAILED if write else EVENT_DB_READ_FAILED,
        operation=operation,
        error_category=error.error_category,
        retryable=error.retryable,
        correlation_id=correlation_id or "N/A",
        detail=str(exc),
    )
    return error


def normalize_validation_error(
    messages: list[str],
) -> NormalizedError:
    """Normalize validation errors into a single user-friendly message."""
    joined = "; ".join(messages)
    return NormalizedError(
        user_message=f"Validation failed: {joined}",
        error_category="validation",
        retryable=False,
        http_status=422,
    )


def normalize_unknown_error(
    exc: Exception,
    *,
    operation: str,
    correlation_id: str | None = None,
) -> NormalizedError:
    """Normalize an unexpected error into a safe generic message."""
    log_event(
        logger, "exception", "unknown_error",
        operation=operation,
        error_category="unknown",
        correlation_id=correlation_id or "N/A",
        detail=f"{type(exc).__name__}: {exc}",
    )
    return NormalizedError(
        user_message="An unexpected error occurred. Please try again.",
        error_category="unknown",
        retryable=False,
        http_status=500,
    )
