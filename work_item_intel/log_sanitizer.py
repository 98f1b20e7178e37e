"""
Log sanitization utilities.

Redacts personal access tokens, Copilot Studio API keys and Teams webhook
secrets before they reach log output or chat replies.
"""

import re
from urllib.parse import urlsplit


_REDACTED = r'\1***REDACTED***'

# Patterns that might carry credentials
SENSITIVE_PATTERNS = [
    (re.compile(r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([^"\'\s,}]+)', re.IGNORECASE), _REDACTED),
    (re.compile(r'(token["\']?\s*[:=]\s*["\']?)([^"\'\s,}]+)', re.IGNORECASE), _REDACTED),
    (re.compile(r'(pat["\']?\s*[:=]\s*["\']?)([^"\'\s,}]+)', re.IGNORECASE), _REDACTED),
    (re.compile(r'(bearer\s+)([a-zA-Z0-9\-._~+/]+=*)', re.IGNORECASE), _REDACTED),
    (re.compile(r'(basic\s+)([a-zA-Z0-9+/]+=*)', re.IGNORECASE), _REDACTED),
    (re.compile(r'(authorization["\']?\s*[:=]\s*["\']?)([^"\'\s,}]+)', re.IGNORECASE), _REDACTED),
    # Workflow/webhook URLs carry their signature as a query parameter
    (re.compile(r'([?&]sig=)([^&\s"\']+)', re.IGNORECASE), _REDACTED),
]

# Teams incoming webhook paths embed tenant and connector secrets
WEBHOOK_PATH_PATTERN = re.compile(r'(https://[^\s/]*webhook\.office\.com/)(\S+)', re.IGNORECASE)


def sanitize_log_message(message: str) -> str:
    """
    Sanitize a log message by redacting sensitive information.

    Args:
        message: The log message to sanitize

    Returns:
        Sanitized log message with sensitive data redacted
    """
    if not message:
        return message

    sanitized = WEBHOOK_PATH_PATTERN.sub(_REDACTED, message)
    for pattern, replacement in SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)

    return sanitized


def describe_endpoint(url: str) -> str:
    """
    Reduce a URL to scheme and host for logging.

    Args:
        url: Endpoint or webhook URL

    Returns:
        "scheme://host", or a placeholder if the URL cannot be parsed
    """
    parts = urlsplit(url or "")
    if not parts.scheme or not parts.netloc:
        return "<unconfigured endpoint>"
    return f"{parts.scheme}://{parts.netloc}"


def safe_log_error(error: Exception, context: str = "") -> str:
    """
    Create a safe error message for logging.

    Args:
        error: The exception
        context: What was being attempted (e.g., "Teams batch summary")

    Returns:
        "<context>: <ErrorType>: <sanitized message>"
    """
    sanitized_error = sanitize_log_message(str(error))
    error_type = type(error).__name__

    if context:
        return f"{context}: {error_type}: {sanitized_error}"
    return f"{error_type}: {sanitized_error}"
