"""
Authentication handling for Azure DevOps
Supports Personal Access Tokens and Azure identity (DefaultAzureCredential)
"""
import asyncio
import sys
from datetime import datetime, timezone
from typing import Optional

from azure.devops.connection import Connection
from azure.identity import DefaultAzureCredential
from msrest.authentication import BasicAuthentication

from .log_sanitizer import safe_log_error


class AzureDevOpsAuth:
    """
    Handles authentication to Azure DevOps using:
    1. Personal Access Token (when one is configured)
    2. DefaultAzureCredential (Azure CLI login, managed identity, ...)
    """

    # Azure DevOps resource ID for token acquisition
    AZURE_DEVOPS_RESOURCE_ID = "499b84ac-1321-427f-aa17-267ca6975798"

    def __init__(self, organization_url: str, personal_access_token: Optional[str] = None):
        """
        Initialize authentication handler

        Args:
            organization_url: Azure DevOps organization URL
                            (e.g., https://dev.azure.com/yourorg)
            personal_access_token: Optional PAT; Azure identity is used without one
        """
        self.organization_url = organization_url
        self.connection: Optional[Connection] = None
        self._personal_access_token = personal_access_token
        self._credential = None
        self._auth_method: Optional[str] = None
        self._last_auth_success: Optional[datetime] = None

    async def initialize(self):
        """Establish a connection to Azure DevOps"""
        try:
            if self._personal_access_token:
                self.connection = self._connect_with_pat()
            else:
                self.connection = await self._connect_with_azure_identity()
        except Exception as e:
            safe_error = safe_log_error(e, "Azure DevOps authentication failed")
            print(f"✗ {safe_error}", file=sys.stderr)
            raise ValueError(
                "Failed to authenticate. Set AZURE_DEVOPS_PAT or sign in with "
                "Azure CLI / managed identity and set AZURE_DEVOPS_USE_AZURE_IDENTITY=true."
            ) from e

        self._last_auth_success = datetime.now(timezone.utc)
        print(f"✓ Authenticated using: {self._auth_method}", file=sys.stderr)

    def _connect_with_pat(self) -> Connection:
        credentials = BasicAuthentication('', self._personal_access_token)
        self._auth_method = "Personal Access Token"
        return Connection(base_url=self.organization_url, creds=credentials)

    async def _connect_with_azure_identity(self) -> Connection:
        """
        Authenticate with DefaultAzureCredential

        Azure DevOps accepts the AAD access token the same way as a PAT.
        """
        credential = DefaultAzureCredential()
        token = await asyncio.to_thread(
            credential.get_token,
            f"{self.AZURE_DEVOPS_RESOURCE_ID}/.default"
        )

        self._credential = credential
        self._auth_method = "Azure Identity (DefaultAzureCredential)"
        return Connection(
            base_url=self.organization_url,
            creds=BasicAuthentication('', token.token)
        )

    def get_client(self, client_type: str):
        """
        Get a specific Azure DevOps client

        Args:
            client_type: Only 'work_item_tracking' is used by the agent

        Returns:
            The requested client instance
        """
        if not self.connection:
            raise RuntimeError("Not authenticated. Call initialize() first.")

        client_map = {
            'work_item_tracking': self.connection.clients.get_work_item_tracking_client,
        }

        if client_type not in client_map:
            raise ValueError(f"Unknown client type: {client_type}")

        return client_map[client_type]()

    async def close(self):
        """Clean up resources"""
        if hasattr(self._credential, 'close'):
            self._credential.close()

        self.connection = None

    def get_auth_info(self) -> dict:
        """Get information about current authentication"""
        return {
            "method": self._auth_method,
            "organization_url": self.organization_url,
            "authenticated": self.connection is not None,
            "last_auth_success": self._last_auth_success.isoformat() if self._last_auth_success else None
        }
