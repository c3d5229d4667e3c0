"""
Retry helper with exponential backoff for Google Drive calls.
Transient errors (429, 5xx, connection drops) are retried up to
max_retries times; everything else, and the last transient failure,
is re-raised unchanged.
"""

import time
import logging
from typing import Callable, TypeVar, Optional, Type, Tuple
from functools import wraps

logger = logging.getLogger("crm_drive.retry")

T = TypeVar('T')

TRANSIENT_STATUS_CODES: Tuple[int, ...] = (429, 500, 502, 503, 504)


def extract_status_code(error: Exception) -> Optional[int]:
    """
    Best-effort HTTP status of a Google API error.
    googleapiclient.errors.HttpError exposes resp.status; other wrappers only
    carry it in the message ("HttpError 503 when requesting...").
    """
    resp = getattr(error, "resp", None)
    status = getattr(resp, "status", None)
    if status is not None:
        try:
            return int(status)
        except (TypeError, ValueError):
            pass

    parts = str(error).split()
    for i, part in enumerate(parts):
        if part.lstrip("<") == "HttpError" and i + 1 < len(parts):
            try:
                return int(parts[i + 1].strip("<>:,"))
            except ValueError:
                return None
    return None


def exponential_backoff_retry(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 32.0,
    exponential_base: float = 2.0,
    transient_error_codes: Tuple[int, ...] = TRANSIENT_STATUS_CODES,
    retriable_exceptions: Tuple[Type[Exception], ...] = (ConnectionError, TimeoutError),
):
    """
    Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Retry attempts after the first call (0 disables retrying)
        initial_delay: Initial delay in seconds
        max_delay: Upper bound for a single delay
        exponential_base: Multiplier applied to the delay after each retry
        transient_error_codes: HTTP status codes to retry
        retriable_exceptions: Exception types to retry regardless of status

    Example:
        @exponential_backoff_retry(max_retries=2, initial_delay=0.5)
        def create_folder():
            return service.files().create(...).execute()
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            delay = initial_delay
            func_name = getattr(func, '__name__', '<function>')

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    status_code = extract_status_code(e)
                    transient = isinstance(e, retriable_exceptions) or (
                        status_code is not None and status_code in transient_error_codes
                    )

                    if not transient:
                        if status_code and 400 <= status_code < 500:
                            logger.error(
                                f"Permanent client error {status_code} in {func_name}. Not retrying: {e}"
                            )
                        raise

                    if attempt >= max_retries:
                        if max_retries:
                            logger.error(
                                f"Max retries exhausted for {func_name} after {max_retries + 1} attempts. "
                                f"Last error: {e}"
                            )
                        raise

                    logger.warning(
                        f"Transient error in {func_name} (attempt {attempt + 1}/{max_retries + 1}): {e}. "
                        f"Retrying in {delay}s..."
                    )
                    time.sleep(delay)
                    delay = min(delay * exponential_base, max_delay)

        return wrapper
    return decorator


def retry_on_transient_errors(
    func: Callable[..., T],
    *args,
    max_retries: int = 3,
    initial_delay: float = 1.0,
    **kwargs
) -> T:
    """
    Function-based retry wrapper (alternative to decorator).

    Example:
        folder = retry_on_transient_errors(request.execute, max_retries=2)
    """
    decorated_func = exponential_backoff_retry(
        max_retries=max_retries,
        initial_delay=initial_delay
    )(func)
    return decorated_func(*args, **kwargs)
