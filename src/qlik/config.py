"""
Qlik Cloud configuration

Reads tenant URL, API key and transport settings from the environment and
hands them to the REST client and engine sessions as one value.
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlsplit


@dataclass(frozen=True)
class QlikConfig:
    """Connection settings for one Qlik Cloud tenant."""

    tenant_url: str
    api_key: str
    http_timeout: Optional[float] = None

    @property
    def base_url(self) -> str:
        return self.tenant_url.rstrip("/")

    @property
    def api_base(self) -> str:
        return f"{self.base_url}/api/v1"

    @property
    def is_configured(self) -> bool:
        return bool(self.tenant_url and self.api_key)

    def engine_url(self, app_id: str) -> str:
        """WebSocket URL of the engine endpoint for an app."""
        parts = urlsplit(self.base_url)
        scheme = "ws" if parts.scheme == "http" else "wss"
        host = parts.netloc or parts.path
        return f"{scheme}://{host}/app/{app_id}"

    def auth_headers(self, additional_headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """
        Get request headers with bearer auth.

        Args:
            additional_headers: Optional additional headers to merge

        Returns:
            Complete headers dictionary for API requests
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        if additional_headers:
            headers.update(additional_headers)
        return headers

    def validate(self) -> Optional[str]:
        """
        Validate the configuration.

        Returns:
            Error message if configuration is invalid, None if valid
        """
        if self.is_configured:
            return None

        missing = []
        if not self.tenant_url:
            missing.append("QLIK_TENANT_URL")
        if not self.api_key:
            missing.append("QLIK_API_KEY")
        return f"Error: Qlik Cloud credentials not configured. Please set {', '.join(missing)} environment variables."


def load_qlik_config() -> QlikConfig:
    """
    Build the configuration from environment variables.

    QLIK_HTTP_TIMEOUT is optional; when unset REST calls run without a timeout.
    """
    timeout = os.getenv("QLIK_HTTP_TIMEOUT", "")
    return QlikConfig(
        tenant_url=os.getenv("QLIK_TENANT_URL", ""),
        api_key=os.getenv("QLIK_API_KEY", ""),
        http_timeout=float(timeout) if timeout else None,
    )
