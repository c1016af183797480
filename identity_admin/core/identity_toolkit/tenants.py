"""Identity Toolkit tenant management operations."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from .client import IdentityToolkitClient, read_json
from .exceptions import IdentityAPIError, InvalidArgumentError
from .pagination import Batch, Page, PageFactory
from .records import Tenant
from .users import UserService
from .validators import END_OF_LIST, validate_display_name, validate_tenant_id

logger = logging.getLogger(__name__)

MAX_LIST_TENANTS_RESULTS = 1000

# Python keyword -> wire field, in the order used for update masks
_TENANT_FIELDS = (
    ("display_name", "displayName"),
    ("allow_password_signup", "allowPasswordSignup"),
    ("enable_email_link_signin", "enableEmailLinkSignin"),
)


class TenantPageSource:
    """Loads batches of tenants of the project."""

    max_page_size = MAX_LIST_TENANTS_RESULTS

    def __init__(self, client: IdentityToolkitClient):
        self.client = client

    def fetch(self, max_results: int, page_token: Optional[str]) -> Batch:
        params: Dict[str, Any] = {"pageSize": max_results}
        if page_token is not None:
            params["pageToken"] = page_token
        resp = self.client.get(self.client.project_path("v2") + "/tenants", params=params)
        data = read_json(resp)
        try:
            tenants = [Tenant.from_response(tenant) for tenant in data.get("tenants") or []]
        except (ValueError, TypeError, AttributeError) as exc:
            raise IdentityAPIError(resp.status_code, f"malformed tenant record: {exc}", resp.url) from exc
        return Batch(tuple(tenants), data.get("nextPageToken") or END_OF_LIST)


class TenantService:
    """Service for managing tenants of a multi-tenant project."""

    def __init__(self, client: IdentityToolkitClient):
        """Initialize tenant service.

        Args:
            client: Authenticated Identity Toolkit client
        """
        self.client = client

    def _tenant_path(self, tenant_id: str) -> str:
        validate_tenant_id(tenant_id)
        return self.client.project_path("v2", tenant_id=tenant_id)

    def get_tenant(self, tenant_id: str) -> Tenant:
        """Return the tenant with the given ID.

        Raises:
            TenantNotFoundError: If the tenant does not exist
        """
        resp = self.client.get(self._tenant_path(tenant_id))
        return Tenant.from_response(resp.json())

    def create_tenant(
        self,
        display_name: Optional[str] = None,
        allow_password_signup: Optional[bool] = None,
        enable_email_link_signin: Optional[bool] = None,
    ) -> Tenant:
        payload = _tenant_payload(
            display_name=display_name,
            allow_password_signup=allow_password_signup,
            enable_email_link_signin=enable_email_link_signin,
        )
        resp = self.client.post(self.client.project_path("v2") + "/tenants", json=payload)
        tenant = Tenant.from_response(resp.json())
        logger.info(f"Created tenant (tenant_id={tenant.tenant_id})")
        return tenant

    def update_tenant(
        self,
        tenant_id: str,
        display_name: Optional[str] = None,
        allow_password_signup: Optional[bool] = None,
        enable_email_link_signin: Optional[bool] = None,
    ) -> Tenant:
        """Update the given fields of a tenant.

        Raises:
            InvalidArgumentError: If no field is given
            TenantNotFoundError: If the tenant does not exist
        """
        path = self._tenant_path(tenant_id)
        payload = _tenant_payload(
            display_name=display_name,
            allow_password_signup=allow_password_signup,
            enable_email_link_signin=enable_email_link_signin,
        )
        if not payload:
            raise InvalidArgumentError("Tenant update must specify at least one property to update")
        update_mask = ",".join(wire for _, wire in _TENANT_FIELDS if wire in payload)
        resp = self.client.patch(path, json=payload, params={"updateMask": update_mask})
        logger.info(f"Updated tenant (tenant_id={tenant_id}, mask={update_mask})")
        return Tenant.from_response(resp.json())

    def delete_tenant(self, tenant_id: str) -> None:
        self.client.delete(self._tenant_path(tenant_id))
        logger.info(f"Deleted tenant (tenant_id={tenant_id})")

    def list_tenants(
        self,
        page_token: Optional[str] = None,
        max_results: int = MAX_LIST_TENANTS_RESULTS,
    ) -> Page:
        """Return one page of tenants, starting at page_token.

        Raises:
            InvalidArgumentError: If max_results or page_token is invalid (no request is sent)
            SourceFetchError: If the service call fails
        """
        return PageFactory(TenantPageSource(self.client), max_results, page_token).create()

    def users_for_tenant(self, tenant_id: str) -> UserService:
        """Return a user service whose operations are scoped to one tenant."""
        return UserService(self.client, tenant_id=tenant_id)


def _tenant_payload(**fields: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for name, wire in _TENANT_FIELDS:
        value = fields.get(name)
        if value is None:
            continue
        if name == "display_name":
            payload[wire] = validate_display_name(value)
        else:
            payload[wire] = bool(value)
    return payload
