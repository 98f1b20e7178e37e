"""
Shared HTTP delivery for downstream notification senders
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import requests

from ..errors import NotificationError
from ..log_sanitizer import describe_endpoint, safe_log_error

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Base class for senders that POST JSON payloads.

    Subclasses build payloads and call ``_deliver``; delivery failures are
    logged and reported as ``False`` so they never affect the caller's state.
    Failed posts are not retried.
    """

    target_name = "notification endpoint"

    def __init__(self, url: Optional[str], timeout_seconds: float = 30.0):
        """
        Args:
            url: Endpoint to POST to; the sender is disabled when None
            timeout_seconds: Per-request timeout
        """
        self.url = url
        self.timeout_seconds = timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.url)

    def _headers(self) -> Dict[str, str]:
        return {'Content-Type': 'application/json'}

    async def _post_json(self, payload: Dict[str, Any]) -> None:
        """
        POST a JSON payload

        Raises:
            NotificationError: On connection failure or a non-2xx response
        """
        try:
            response = await asyncio.to_thread(
                requests.post,
                self.url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout_seconds
            )
        except requests.RequestException as e:
            raise NotificationError(self.target_name, original_error=e)

        if not 200 <= response.status_code < 300:
            raise NotificationError(self.target_name, status_code=response.status_code)

    async def _deliver(self, payload: Dict[str, Any], description: str) -> bool:
        """
        Send a payload, logging the outcome

        Args:
            payload: JSON body
            description: What is being sent, for log messages

        Returns:
            True on success, False if unconfigured or delivery failed
        """
        if not self.is_configured:
            logger.info(f"{self.target_name} not configured, skipping {description}")
            return False

        try:
            await self._post_json(payload)
        except NotificationError as e:
            logger.error(safe_log_error(e, f"Error sending {description}"))
            return False

        logger.info(f"Sent {description} to {describe_endpoint(self.url)}")
        return True
