"""
Custom exception classes for the Work Item Intelligence agent.

Provides structured error handling for snapshot decoding, configuration,
notification delivery and Azure DevOps API failures.
"""

from typing import Optional, Any


class WorkItemIntelError(Exception):
    """
    Base exception for the agent.

    Attributes:
        status_code: HTTP status code, when the error came from an HTTP call
        message: Human-readable error message
        original_error: The original exception that was caught
        details: Additional error details
    """

    def __init__(
        self,
        message: str = "Work item intelligence error",
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
        details: Optional[Any] = None
    ):
        self.status_code = status_code
        self.message = message
        self.original_error = original_error
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        """String representation of the error."""
        if self.status_code:
            return f"[{self.status_code}] {self.message}"
        return self.message

    def to_dict(self) -> dict:
        """Convert error to dictionary for JSON serialization."""
        return {
            'error': self.__class__.__name__,
            'status_code': self.status_code,
            'message': self.message,
            'details': str(self.details) if self.details else None
        }


class DeserializationError(WorkItemIntelError):
    """
    Raised when a state snapshot cannot be decoded.

    This can occur when:
    - The snapshot is not valid JSON
    - A required field is missing
    - A field has the wrong shape (e.g. an object where a list is expected)
    """

    def __init__(
        self,
        message: str = "Malformed state snapshot",
        path: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        if path:
            message = f"{message} (at {path})"

        super().__init__(
            message=message,
            original_error=original_error,
            details={'path': path} if path else None
        )
        self.path = path


class ConfigurationError(WorkItemIntelError):
    """Raised when environment configuration is missing or invalid."""

    def __init__(self, setting: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"Invalid or missing configuration: {setting}",
            details={'setting': setting}
        )
        self.setting = setting


class NotificationError(WorkItemIntelError):
    """
    Raised when a downstream notification cannot be delivered.

    Notification senders catch this and report failure to the caller
    instead of propagating it.
    """

    def __init__(
        self,
        target: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        if status_code:
            message = f"{target} rejected the notification (HTTP {status_code})"
        else:
            message = f"Could not deliver notification to {target}"

        super().__init__(
            message=message,
            status_code=status_code,
            original_error=original_error,
            details={'target': target}
        )
        self.target = target


class AzureDevOpsError(WorkItemIntelError):
    """Base exception for Azure DevOps API errors."""

    def __init__(
        self,
        message: str = "Azure DevOps API error",
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
        details: Optional[Any] = None
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            original_error=original_error,
            details=details
        )


class AuthenticationError(AzureDevOpsError):
    """
    Raised when authentication fails (HTTP 401).

    Usually an expired or revoked personal access token.
    """

    def __init__(
        self,
        message: str = "Authentication failed. Your token may have expired. Please refresh credentials.",
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            status_code=401,
            original_error=original_error
        )


class PermissionDeniedError(AzureDevOpsError):
    """
    Raised when the token lacks permission for an operation (HTTP 403).

    Reading work items needs 'vso.work'; writing tags back needs 'vso.work_write'.
    """

    def __init__(
        self,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        if operation:
            message = f"Permission denied for {operation}. Please check your token scopes."
        else:
            message = "Permission denied. Please check your credentials and project permissions."

        super().__init__(
            message=message,
            status_code=403,
            original_error=original_error,
            details={'operation': operation}
        )


class SprintNotFoundError(AzureDevOpsError):
    """Raised when the project or iteration path does not exist (HTTP 404)."""

    def __init__(
        self,
        sprint: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        message = "Project or iteration not found. Please verify it exists and you have access."
        if sprint:
            message = f"Iteration '{sprint}' not found. Please verify it exists and you have access."

        super().__init__(
            message=message,
            status_code=404,
            original_error=original_error,
            details={'sprint': sprint} if sprint else None
        )


class BadRequestError(AzureDevOpsError):
    """Raised for malformed requests such as invalid WIQL (HTTP 400)."""

    def __init__(
        self,
        message: str = "Bad request. Please check your input values.",
        original_error: Optional[Exception] = None,
        details: Optional[Any] = None
    ):
        super().__init__(
            message=message,
            status_code=400,
            original_error=original_error,
            details=details
        )


class RateLimitError(AzureDevOpsError):
    """Raised when the API rate limit is exceeded (HTTP 429)."""

    def __init__(
        self,
        retry_after: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        if retry_after:
            message = f"Rate limit exceeded. Please retry after {retry_after} seconds."
        else:
            message = "Rate limit exceeded. Please retry after a brief delay."

        super().__init__(
            message=message,
            status_code=429,
            original_error=original_error,
            details={'retry_after': retry_after}
        )
        self.retry_after = retry_after


class TransientError(AzureDevOpsError):
    """Raised for temporary service errors (HTTP 500, 502, 503, 504)."""

    def __init__(
        self,
        status_code: int,
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            message=f"Azure DevOps service temporarily unavailable (HTTP {status_code}).",
            status_code=status_code,
            original_error=original_error
        )


class TimeoutError(AzureDevOpsError):
    """Raised when a backend request does not complete in time."""

    def __init__(
        self,
        timeout_seconds: float = 30,
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            message=f"Request timeout after {timeout_seconds} seconds.",
            status_code=408,
            original_error=original_error,
            details={'timeout_seconds': timeout_seconds}
        )


def map_status_code_to_error(
    status_code: int,
    original_error: Optional[Exception] = None,
    **kwargs
) -> AzureDevOpsError:
    """
    Map HTTP status code to appropriate error class.

    Args:
        status_code: HTTP status code from Azure DevOps API
        original_error: The original exception
        **kwargs: Additional error-specific parameters

    Returns:
        Appropriate AzureDevOpsError subclass instance
    """
    if status_code == 400:
        return BadRequestError(original_error=original_error)
    elif status_code == 401:
        return AuthenticationError(original_error=original_error)
    elif status_code == 403:
        return PermissionDeniedError(
            operation=kwargs.get('operation'),
            original_error=original_error
        )
    elif status_code == 404:
        return SprintNotFoundError(
            sprint=kwargs.get('sprint'),
            original_error=original_error
        )
    elif status_code == 408:
        return TimeoutError(original_error=original_error)
    elif status_code == 429:
        return RateLimitError(
            retry_after=kwargs.get('retry_after'),
            original_error=original_error
        )
    elif status_code in [500, 502, 503, 504]:
        return TransientError(status_code=status_code, original_error=original_error)
    else:
        return AzureDevOpsError(
            message=f"Azure DevOps API error: HTTP {status_code}",
            status_code=status_code,
            original_error=original_error
        )
