"""Low-level HTTP client for the Identity Toolkit REST API.

Handles authentication, token management, and HTTP operations.
"""
from __future__ import annotations
import json
import logging
import os
import re
from typing import Optional, Dict, Any
from datetime import datetime, timedelta

import requests

from identity_admin import __version__

from .exceptions import (
    IdentityAPIError,
    IdentityTransportError,
    InsufficientPermissionsError,
    TenantNotFoundError,
    UserAlreadyExistsError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 5
DEFAULT_API_URL = "https://identitytoolkit.googleapis.com"
CLIENT_VERSION_HEADER = "X-Client-Version"
CLIENT_VERSION = f"Python/Admin/{__version__}"

_ERROR_CODE_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")

# Service error code -> exception type
ERROR_CODES = {
    "USER_NOT_FOUND": UserNotFoundError,
    "EMAIL_EXISTS": UserAlreadyExistsError,
    "DUPLICATE_LOCAL_ID": UserAlreadyExistsError,
    "PHONE_NUMBER_EXISTS": UserAlreadyExistsError,
    "TENANT_NOT_FOUND": TenantNotFoundError,
    "INSUFFICIENT_PERMISSION": InsufficientPermissionsError,
    "PERMISSION_DENIED": InsufficientPermissionsError,
}


class IdentityToolkitClient:
    """HTTP client for the Identity Toolkit API with automatic token management.

    Features:
    - Automatic token refresh when expired (client credentials only)
    - Centralized error handling with typed exceptions
    - Project and tenant scoped path building

    Usage:
        client = IdentityToolkitClient("my-project")
        client.authenticate_with_token(access_token)
        resp = client.get(client.project_path() + "/accounts:batchGet")
    """

    def __init__(self, project_id: str, base_url: Optional[str] = None, timeout: int = REQUEST_TIMEOUT):
        """Initialize the client.

        Args:
            project_id: Cloud project that owns the user accounts
            base_url: API base URL (defaults to IDENTITY_API_URL env var)
            timeout: Per-request timeout in seconds
        """
        if not project_id:
            raise ValueError(
                "Project ID is required to access the auth service. Set IDENTITY_PROJECT_ID "
                "or the GOOGLE_CLOUD_PROJECT environment variable."
            )
        self.project_id = project_id
        self.base_url = (base_url or os.environ.get("IDENTITY_API_URL", DEFAULT_API_URL)).rstrip("/")
        self.timeout = timeout
        self._token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._auth_method: Optional[str] = None
        self._auth_params: Dict[str, Any] = {}

    def authenticate_with_token(self, token: str, expires_in: int = 3600) -> str:
        """Use a pre-obtained access token.

        The token cannot be refreshed; requests fail with 401 once it expires.
        """
        self._auth_method = "token"
        self._auth_params = {}
        self._token = token
        self._token_expires_at = datetime.now() + timedelta(seconds=expires_in)
        return token

    def authenticate_service_account(self, token_url: str, client_id: str, client_secret: str) -> str:
        """Authenticate with the client credentials grant and store credentials for auto-refresh.

        Args:
            token_url: OAuth2 token endpoint
            client_id: Service account client ID
            client_secret: Service account client secret

        Returns:
            Access token
        """
        self._auth_method = "service_account"
        self._auth_params = {
            "token_url": token_url,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        self._refresh_service_account_token()
        return self._token

    def _ensure_authenticated(self) -> None:
        """Ensure we have a valid token, refreshing if necessary."""
        if not self._token or not self._token_expires_at:
            raise IdentityAPIError(
                401,
                "Not authenticated - call authenticate_with_token or authenticate_service_account first",
                "",
            )

        # Refresh if token expired or expiring soon (within 10 seconds)
        if datetime.now() >= self._token_expires_at - timedelta(seconds=10):
            if self._auth_method == "service_account":
                self._refresh_service_account_token()
            else:
                raise IdentityAPIError(401, "Access token expired", "")

    def _refresh_service_account_token(self) -> None:
        url = self._auth_params["token_url"]
        data = {
            "grant_type": "client_credentials",
            "client_id": self._auth_params["client_id"],
            "client_secret": self._auth_params["client_secret"],
        }
        try:
            resp = requests.post(url, data=data, timeout=self.timeout)
        except requests.RequestException as exc:
            raise IdentityTransportError(str(exc), url) from exc
        if resp.status_code != 200:
            raise IdentityAPIError(resp.status_code, resp.text, url)
        payload = resp.json()
        self._token = payload["access_token"]
        self._token_expires_at = datetime.now() + timedelta(seconds=int(payload.get("expires_in", 60)))
        logger.debug(f"Obtained service account token from {url}")

    def project_path(self, version: str = "v1", tenant_id: Optional[str] = None) -> str:
        """Return the resource path of the project, optionally scoped to a tenant.

        Example:
            >>> IdentityToolkitClient("demo").project_path(tenant_id="t1")
            '/v1/projects/demo/tenants/t1'
        """
        path = f"/{version}/projects/{self.project_id}"
        if tenant_id:
            path += f"/tenants/{tenant_id}"
        return path

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request with automatic authentication.

        Raises:
            IdentityAPIError: On HTTP error
            IdentityTransportError: If no response was received
        """
        return self._request("GET", path, params=params, **kwargs)

    def post(self, path: str, json: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute POST request with automatic authentication.

        Raises:
            IdentityAPIError: On HTTP error
            IdentityTransportError: If no response was received
        """
        return self._request("POST", path, json=json, **kwargs)

    def patch(self, path: str, json: Optional[Dict] = None, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute PATCH request with automatic authentication."""
        return self._request("PATCH", path, json=json, params=params, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        """Execute DELETE request with automatic authentication."""
        return self._request("DELETE", path, **kwargs)

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        self._ensure_authenticated()
        url = f"{self.base_url}{path}"
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self._token}"
        headers[CLIENT_VERSION_HEADER] = CLIENT_VERSION

        try:
            resp = requests.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise IdentityTransportError(str(exc), url) from exc
        self._handle_error(resp)
        return resp

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Args:
            resp: Response object to check

        Raises:
            IdentityAPIError: If response status indicates error (or a typed subclass)
        """
        if resp.status_code < 400:
            return

        error_code, message = parse_error_response(resp.text)
        exc_type = ERROR_CODES.get(error_code, IdentityAPIError)
        raise exc_type(resp.status_code, message or resp.text, resp.url, error_code)


def read_json(resp: requests.Response) -> Dict[str, Any]:
    """Decode a successful response body as a JSON object.

    Raises:
        IdentityAPIError: If the body is not a JSON object (e.g. a proxy HTML page)
    """
    try:
        data = resp.json()
    except ValueError as exc:
        raise IdentityAPIError(resp.status_code, "malformed response: body is not JSON", resp.url) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise IdentityAPIError(resp.status_code, "malformed response: expected a JSON object", resp.url)
    return data


def parse_error_response(body: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """Extract (error_code, message) from an error body.

    The service reports errors as ``{"error": {"message": "CODE : detail"}}``.
    Bodies that are not JSON (e.g. proxy HTML pages) yield ``(None, None)``.
    """
    if not body:
        return None, None
    try:
        parsed = json.loads(body)
    except ValueError:
        logger.warning("Identity Toolkit returned a non-JSON error response")
        return None, None

    error = parsed.get("error") if isinstance(parsed, dict) else None
    if not isinstance(error, dict):
        return None, None
    raw = (error.get("message") or "").strip()
    code, _, detail = raw.partition(":")
    code = code.strip()
    if not _ERROR_CODE_RE.match(code):
        return None, raw or None
    detail = detail.strip()
    return code, f"{code}: {detail}" if detail else code


def create_client_with_token(
    project_id: str,
    token: str,
    base_url: Optional[str] = None,
    expires_in: int = 3600,
) -> IdentityToolkitClient:
    """Create a pre-authenticated client.

    Args:
        project_id: Cloud project ID
        token: Pre-obtained access token
        base_url: API base URL override
        expires_in: Token validity in seconds (default: 1 hour)

    Returns:
        IdentityToolkitClient instance with token pre-set
    """
    client = IdentityToolkitClient(project_id, base_url)
    client.authenticate_with_token(token, expires_in)
    return client
