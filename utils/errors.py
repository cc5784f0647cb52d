"""
================================================================================
ERROR HANDLING UTILITIES
================================================================================

Purpose: Turn Supabase/PostgREST errors into user-facing messages and decide
whether a failed operation is worth retrying. Pages call ``map_supabase_error``
inside their exception handlers and show the result with ``st.toast`` or
``st.error``.
================================================================================
"""

import time
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar

import requests
from postgrest.exceptions import APIError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRIES = 3

# PostgREST / Postgres codes with a dedicated message
_CODE_MESSAGES = {
    "PGRST116": "No data found. You may not have permission to access this information.",
    "PGRST301": "Permission error. You are not authorized to perform this action.",
    "42P01": "Database configuration error. Contact the system administrator.",
    "23503": "Data integrity error. Some related records do not exist.",
}


@dataclass
class AppError:
    message: str
    code: Optional[str] = None
    details: Optional[str] = None
    is_retryable: bool = False


def _is_network_error(exc: Exception) -> bool:
    if isinstance(exc, (requests.ConnectionError, requests.Timeout, ConnectionError, TimeoutError)):
        return True
    # httpx errors (used by the supabase client) are matched by name to keep
    # this module independent of the transport library
    name = type(exc).__name__
    if name in ("ConnectError", "ReadTimeout", "ConnectTimeout", "NetworkError", "RemoteProtocolError"):
        return True
    text = str(exc)
    return "Failed to fetch" in text or "NetworkError" in text


# =============================================================================
# ERROR MAPPING
# =============================================================================

def map_supabase_error(exc: Exception) -> AppError:
    """Map an exception raised by the data layer to an ``AppError``.

    Network failures are retryable. Known PostgREST codes get a friendly,
    non-retryable message. Unknown database codes keep the provider message
    and are considered retryable, as are generic exceptions.
    """
    if _is_network_error(exc):
        return AppError(
            message="Connection error. Check your internet connection and try again.",
            code="NETWORK_ERROR",
            is_retryable=True,
        )

    if isinstance(exc, APIError):
        code = exc.code
        if code in _CODE_MESSAGES:
            return AppError(
                message=_CODE_MESSAGES[code],
                code=code,
                details=exc.details,
                is_retryable=False,
            )
        return AppError(
            message=exc.message or "Unexpected database error.",
            code=code,
            details=exc.details,
            is_retryable=True,
        )

    return AppError(
        message=str(exc) or "Unexpected error. Please try again.",
        is_retryable=True,
    )


def create_auth_error(message: Optional[str] = None) -> AppError:
    return AppError(
        message=message or "Authentication error. Please sign in again.",
        code="AUTH_ERROR",
    )


def create_permission_error(message: Optional[str] = None) -> AppError:
    return AppError(
        message=message or "You do not have permission to access this feature.",
        code="PERMISSION_ERROR",
    )


def create_loading_error(resource: str) -> AppError:
    return AppError(
        message=f"Failed to load {resource}. Please try again.",
        code="LOADING_ERROR",
        is_retryable=True,
    )


def log_error(error, context: Optional[str] = None):
    """Log an exception or ``AppError`` with a consistent shape."""
    info = {
        "message": getattr(error, "message", None) or str(error),
        "context": context,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    code = getattr(error, "code", None)
    if code:
        info["code"] = code
    details = getattr(error, "details", None)
    if details:
        info["details"] = details
    logger.error(f"Application error: {info}")


# =============================================================================
# RETRY
# =============================================================================

def should_retry(error: AppError, retry_count: int = 0) -> bool:
    return error.is_retryable and retry_count < MAX_RETRIES


def retry_operation(func: Callable[[], T], max_retries: int = MAX_RETRIES, delay: float = 0.5) -> T:
    """Call ``func`` and re-invoke it on transient network errors.

    Only errors that map to ``NETWORK_ERROR`` are retried; everything else is
    re-raised immediately. The delay doubles after each attempt.
    """
    attempt = 0
    while True:
        try:
            return func()
        except Exception as exc:
            error = map_supabase_error(exc)
            if error.code != "NETWORK_ERROR" or attempt >= max_retries:
                raise
            attempt += 1
            logger.warning(f"Transient error, retrying ({attempt}/{max_retries}): {exc}")
            time.sleep(delay * (2 ** (attempt - 1)))
