"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from identity_admin.core.identity_toolkit.client import (
    DEFAULT_API_URL,
    REQUEST_TIMEOUT,
    IdentityToolkitClient,
)
from identity_admin.core.identity_toolkit.users import MAX_LIST_USERS_RESULTS

logger = logging.getLogger(__name__)


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    # Priority 1: Read from /run/secrets
    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.debug(f"Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            logger.warning(f"Failed to read /run/secrets/{secret_name}: {e}")

    # Priority 2: Fallback to environment variable
    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.debug(f"Loaded {env_var} from environment (fallback)")
            return secret_value

    return None


def _get_int(var_name: str, default: int) -> int:
    raw = os.environ.get(var_name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be an integer, got {raw!r}") from None


@dataclass
class AppConfig:
    """Application configuration container."""
    project_id: str
    api_url: str = DEFAULT_API_URL

    # Credentials: a ready access token, or client credentials to obtain one
    access_token: str = ""
    token_url: str = ""
    client_id: str = ""
    client_secret: str = ""

    # Scope every user operation to this tenant when set
    tenant_id: str = ""

    request_timeout: int = REQUEST_TIMEOUT
    page_size: int = MAX_LIST_USERS_RESULTS
    log_level: str = "INFO"

    def build_client(self) -> IdentityToolkitClient:
        """Return an authenticated client.

        Priority:
        1. Pre-obtained access token
        2. Client credentials grant against token_url

        Raises:
            RuntimeError: If no credentials are configured
        """
        client = IdentityToolkitClient(self.project_id, self.api_url, timeout=self.request_timeout)
        if self.access_token:
            client.authenticate_with_token(self.access_token)
        elif self.token_url and self.client_id and self.client_secret:
            client.authenticate_service_account(self.token_url, self.client_id, self.client_secret)
        else:
            raise RuntimeError(
                "No credentials configured. Set IDENTITY_ACCESS_TOKEN, or IDENTITY_TOKEN_URL, "
                "IDENTITY_CLIENT_ID and IDENTITY_CLIENT_SECRET."
            )
        return client


def load_settings(project_id: Optional[str] = None) -> AppConfig:
    """Load settings from environment and /run/secrets.

    Args:
        project_id: Overrides IDENTITY_PROJECT_ID / GOOGLE_CLOUD_PROJECT

    Raises:
        RuntimeError: If the project ID is missing or a numeric variable is malformed
    """
    project_id = project_id or os.environ.get("IDENTITY_PROJECT_ID") or os.environ.get("GOOGLE_CLOUD_PROJECT")
    if not project_id:
        raise RuntimeError(
            "Project ID is required. Set IDENTITY_PROJECT_ID or GOOGLE_CLOUD_PROJECT."
        )

    return AppConfig(
        project_id=project_id,
        api_url=os.environ.get("IDENTITY_API_URL", DEFAULT_API_URL),
        access_token=_load_secret_from_file("identity_access_token", "IDENTITY_ACCESS_TOKEN") or "",
        token_url=os.environ.get("IDENTITY_TOKEN_URL", ""),
        client_id=os.environ.get("IDENTITY_CLIENT_ID", ""),
        client_secret=_load_secret_from_file("identity_client_secret", "IDENTITY_CLIENT_SECRET") or "",
        tenant_id=os.environ.get("IDENTITY_TENANT_ID", ""),
        request_timeout=_get_int("IDENTITY_REQUEST_TIMEOUT", REQUEST_TIMEOUT),
        page_size=_get_int("IDENTITY_PAGE_SIZE", MAX_LIST_USERS_RESULTS),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
