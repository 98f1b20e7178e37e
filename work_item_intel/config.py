"""
Environment configuration for the Work Item Intelligence agent
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError


DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


def _getenv(name: str) -> Optional[str]:
    """Read an environment variable, treating blank values as unset"""
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass
class Settings:
    """Runtime settings read from the environment"""
    organization: Optional[str] = None
    project: Optional[str] = None
    personal_access_token: Optional[str] = None
    teams_webhook_url: Optional[str] = None
    copilot_studio_endpoint: Optional[str] = None
    copilot_studio_api_key: Optional[str] = None
    use_azure_identity: bool = False
    log_level: str = DEFAULT_LOG_LEVEL
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "Settings":
        """
        Build settings from environment variables

        Args:
            load_dotenv_file: Load a .env file into the environment first

        Returns:
            Settings instance

        Raises:
            ConfigurationError: If REQUEST_TIMEOUT_SECONDS is not a positive number
        """
        if load_dotenv_file:
            load_dotenv()

        raw_timeout = _getenv("REQUEST_TIMEOUT_SECONDS")
        timeout = DEFAULT_REQUEST_TIMEOUT_SECONDS
        if raw_timeout is not None:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise ConfigurationError(
                    "REQUEST_TIMEOUT_SECONDS",
                    f"REQUEST_TIMEOUT_SECONDS must be a number, got '{raw_timeout}'"
                )
            if timeout <= 0:
                raise ConfigurationError(
                    "REQUEST_TIMEOUT_SECONDS",
                    "REQUEST_TIMEOUT_SECONDS must be greater than zero"
                )

        return cls(
            organization=_getenv("AZURE_DEVOPS_ORG"),
            project=_getenv("AZURE_DEVOPS_PROJECT"),
            personal_access_token=_getenv("AZURE_DEVOPS_PAT"),
            teams_webhook_url=_getenv("TEAMS_WEBHOOK_URL"),
            copilot_studio_endpoint=_getenv("COPILOT_STUDIO_ENDPOINT"),
            copilot_studio_api_key=_getenv("COPILOT_STUDIO_API_KEY"),
            use_azure_identity=(_getenv("AZURE_DEVOPS_USE_AZURE_IDENTITY") or "false").lower() == "true",
            log_level=(_getenv("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
            request_timeout_seconds=timeout
        )

    @property
    def azure_devops_configured(self) -> bool:
        """True when organization, project and a credential source are set"""
        has_credential = bool(self.personal_access_token) or self.use_azure_identity
        return bool(self.organization and self.project and has_credential)

    @property
    def organization_url(self) -> Optional[str]:
        """Organization URL, e.g. https://dev.azure.com/contoso"""
        if not self.organization:
            return None
        return f"https://dev.azure.com/{self.organization}"

    def __repr__(self) -> str:
        """Representation without secrets"""
        return (
            f"Settings(organization={self.organization!r}, project={self.project!r}, "
            f"pat={'set' if self.personal_access_token else 'unset'}, "
            f"teams={'set' if self.teams_webhook_url else 'unset'}, "
            f"copilot_studio={'set' if self.copilot_studio_endpoint else 'unset'})"
        )
