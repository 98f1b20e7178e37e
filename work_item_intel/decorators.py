"""
Decorators for error handling, timeouts and execution logging.

Wraps Azure DevOps SDK calls so callers see the agent's error classes and a
bounded wait. Failed calls are not retried.
"""

import asyncio
import logging
from functools import wraps
from typing import Callable, TypeVar, Optional

from .errors import (
    AzureDevOpsError,
    map_status_code_to_error,
    TimeoutError as ADOTimeoutError
)
from .validation import ValidationError

# Type variable for generic function signatures
T = TypeVar('T')

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def _extract_status_code(error: Exception) -> Optional[int]:
    status_code = getattr(error, 'status_code', None)
    if not status_code:
        response = getattr(error, 'response', None)
        if response is not None:
            status_code = getattr(response, 'status_code', None)
    return status_code if isinstance(status_code, int) else None


def _extract_retry_after(error: Exception) -> Optional[int]:
    response = getattr(error, 'response', None)
    headers = getattr(response, 'headers', None) if response is not None else None
    if not headers:
        return None

    retry_after_header = headers.get('Retry-After') or headers.get('retry-after')
    if not retry_after_header:
        return None
    try:
        return int(retry_after_header)
    except (ValueError, TypeError):
        logger.warning(f"Could not parse Retry-After header: {retry_after_header}")
        return None


def handle_ado_error(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator mapping Azure DevOps SDK exceptions to the agent's error classes.

    Args:
        func: The async function to wrap

    Returns:
        Wrapped function with error handling

    Example:
        @handle_ado_error
        async def get_work_items(self, sprint=None):
            return self.wit_client.query_by_wiql(wiql)
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (AzureDevOpsError, ValidationError):
            raise
        except Exception as e:
            status_code = _extract_status_code(e)

            if status_code:
                error = map_status_code_to_error(
                    status_code,
                    original_error=e,
                    operation=func.__name__,
                    sprint=kwargs.get('sprint'),
                    retry_after=_extract_retry_after(e)
                )
                logger.error(f"Azure DevOps API error in {func.__name__}: {error}")
                raise error

            logger.error(f"Unexpected error in {func.__name__}: {type(e).__name__}")
            raise AzureDevOpsError(
                message=f"Unexpected error in {func.__name__}: {e}",
                original_error=e
            )

    return wrapper


def with_timeout(timeout_seconds: Optional[float] = None) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to add a timeout to async operations.

    Args:
        timeout_seconds: Timeout in seconds. When None, the bound instance's
            ``timeout_seconds`` attribute is used, falling back to 30.

    Returns:
        Decorator function
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            timeout = timeout_seconds
            if timeout is None:
                timeout = getattr(args[0], 'timeout_seconds', None) if args else None
            if timeout is None:
                timeout = DEFAULT_TIMEOUT_SECONDS

            try:
                return await asyncio.wait_for(func(*args, **kwargs), timeout=timeout)
            except asyncio.TimeoutError as e:
                logger.error(f"Timeout after {timeout}s in {func.__name__}")
                raise ADOTimeoutError(timeout_seconds=timeout, original_error=e)

        return wrapper
    return decorator


def log_execution(level: int = logging.INFO) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to log entry and outcome of an async function.

    Args:
        level: Logging level (default: INFO)

    Returns:
        Decorator function
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            func_name = func.__name__
            logger.log(level, f"Calling {func_name}")

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.log(level, f"{func_name} failed with error: {type(e).__name__}")
                raise

            logger.log(level, f"{func_name} completed successfully")
            return result

        return wrapper
    return decorator


def azure_devops_operation(
    timeout_seconds: Optional[float] = None
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Convenience decorator combining timeout, error handling and logging.

    Applied order:
    1. Execution logging (outermost)
    2. Timeout wrapper
    3. Error handling (innermost)

    Args:
        timeout_seconds: Request timeout in seconds (instance default if None)

    Returns:
        Decorator function
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        decorated = handle_ado_error(func)
        decorated = with_timeout(timeout_seconds)(decorated)
        decorated = log_execution(logging.DEBUG)(decorated)
        return decorated

    return decorator
