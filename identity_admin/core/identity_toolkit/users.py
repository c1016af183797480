"""Identity Toolkit user account operations."""
from __future__ import annotations
import enum
import json
import logging
from typing import Any, Dict, Optional

from .client import IdentityToolkitClient, read_json
from .exceptions import IdentityAPIError, InvalidArgumentError, UserNotFoundError
from .pagination import Batch, Page, PageFactory
from .records import ActionCodeSettings, ExportedUserRecord, UserRecord
from .validators import (
    END_OF_LIST,
    validate_display_name,
    validate_email,
    validate_password,
    validate_phone_number,
    validate_photo_url,
    validate_tenant_id,
    validate_uid,
)

logger = logging.getLogger(__name__)

MAX_LIST_USERS_RESULTS = 1000
MAX_CLAIMS_PAYLOAD_SIZE = 1000

RESERVED_CLAIMS = (
    "amr", "at_hash", "aud", "auth_time", "azp", "cnf", "c_hash", "exp", "iat",
    "iss", "jti", "nbf", "nonce", "sub", "firebase",
)


class _DeleteAttribute:
    def __repr__(self) -> str:
        return "DELETE_ATTRIBUTE"


# Pass to update_user() to remove display_name, photo_url or phone_number
DELETE_ATTRIBUTE = _DeleteAttribute()


class EmailLinkType(enum.Enum):
    VERIFY_EMAIL = "VERIFY_EMAIL"
    EMAIL_SIGNIN = "EMAIL_SIGNIN"
    PASSWORD_RESET = "PASSWORD_RESET"


def _fetch_users(client: IdentityToolkitClient, path: str, max_results: int, page_token: Optional[str]) -> Batch:
    params: Dict[str, Any] = {"maxResults": max_results}
    if page_token is not None:
        params["nextPageToken"] = page_token
    resp = client.get(path, params=params)
    data = read_json(resp)
    try:
        users = [ExportedUserRecord.from_response(user) for user in data.get("users") or []]
    except (ValueError, TypeError, AttributeError) as exc:
        raise IdentityAPIError(resp.status_code, f"malformed user record: {exc}", resp.url) from exc
    return Batch(tuple(users), data.get("nextPageToken") or END_OF_LIST)


class UserPageSource:
    """Loads batches of users of the whole project."""

    max_page_size = MAX_LIST_USERS_RESULTS

    def __init__(self, client: IdentityToolkitClient):
        self.client = client

    def fetch(self, max_results: int, page_token: Optional[str]) -> Batch:
        path = self.client.project_path() + "/accounts:batchGet"
        return _fetch_users(self.client, path, max_results, page_token)


class TenantUserPageSource:
    """Loads batches of users that belong to one tenant."""

    max_page_size = MAX_LIST_USERS_RESULTS

    def __init__(self, client: IdentityToolkitClient, tenant_id: str):
        self.client = client
        self.tenant_id = validate_tenant_id(tenant_id)

    def fetch(self, max_results: int, page_token: Optional[str]) -> Batch:
        path = self.client.project_path(tenant_id=self.tenant_id) + "/accounts:batchGet"
        return _fetch_users(self.client, path, max_results, page_token)


class UserService:
    """Service for managing user accounts, optionally scoped to a tenant."""

    def __init__(self, client: IdentityToolkitClient, tenant_id: Optional[str] = None):
        """Initialize user service.

        Args:
            client: Authenticated Identity Toolkit client
            tenant_id: Restrict all operations to this tenant
        """
        self.client = client
        self.tenant_id = validate_tenant_id(tenant_id) if tenant_id is not None else None

    @property
    def _base_path(self) -> str:
        return self.client.project_path(tenant_id=self.tenant_id)

    def get_user(self, uid: str) -> UserRecord:
        """Return the user with the given ID.

        Raises:
            UserNotFoundError: If no user has this ID
        """
        validate_uid(uid)
        return self._lookup({"localId": [uid]}, f"user ID: {uid}")

    def get_user_by_email(self, email: str) -> UserRecord:
        validate_email(email)
        return self._lookup({"email": [email]}, f"email: {email}")

    def get_user_by_phone_number(self, phone_number: str) -> UserRecord:
        validate_phone_number(phone_number)
        return self._lookup({"phoneNumber": [phone_number]}, f"phone number: {phone_number}")

    def create_user(
        self,
        uid: Optional[str] = None,
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
        password: Optional[str] = None,
        email_verified: Optional[bool] = None,
        disabled: Optional[bool] = None,
    ) -> UserRecord:
        """Create a new user account and return it.

        Args:
            uid: Desired user ID; the service generates one when omitted
            email: Primary email
            phone_number: E.164 phone number
            display_name: Display name
            photo_url: Profile photo URL
            password: Initial password (at least 6 characters)
            email_verified: Whether the email is verified
            disabled: Whether the account starts disabled

        Returns:
            The created user record

        Raises:
            InvalidArgumentError: If a field is invalid (no request is sent)
            UserAlreadyExistsError: If uid, email or phone number is taken
        """
        payload: Dict[str, Any] = {}
        if uid is not None:
            payload["localId"] = validate_uid(uid)
        if email is not None:
            payload["email"] = validate_email(email)
        if phone_number is not None:
            payload["phoneNumber"] = validate_phone_number(phone_number)
        if display_name is not None:
            payload["displayName"] = validate_display_name(display_name)
        if photo_url is not None:
            payload["photoUrl"] = validate_photo_url(photo_url)
        if password is not None:
            payload["password"] = validate_password(password)
        if email_verified is not None:
            payload["emailVerified"] = bool(email_verified)
        if disabled is not None:
            payload["disabled"] = bool(disabled)

        resp = self.client.post(f"{self._base_path}/accounts", json=payload)
        created_uid = (resp.json() or {}).get("localId")
        if not created_uid:
            raise IdentityAPIError(500, "Failed to create new user", self._base_path + "/accounts")
        logger.info(f"Created user (uid={created_uid}, tenant={self.tenant_id})")
        return self.get_user(created_uid)

    def update_user(
        self,
        uid: str,
        email: Optional[str] = None,
        phone_number: Any = None,
        display_name: Any = None,
        photo_url: Any = None,
        password: Optional[str] = None,
        email_verified: Optional[bool] = None,
        disabled: Optional[bool] = None,
        custom_claims: Optional[Dict[str, Any]] = None,
    ) -> UserRecord:
        """Update an existing user account and return the updated record.

        Pass ``DELETE_ATTRIBUTE`` as display_name, photo_url or phone_number to
        remove that attribute. An empty ``custom_claims`` dict clears the claims.
        """
        validate_uid(uid)
        payload: Dict[str, Any] = {"localId": uid}
        delete_attributes = []

        if email is not None:
            payload["email"] = validate_email(email)
        if display_name is DELETE_ATTRIBUTE:
            delete_attributes.append("DISPLAY_NAME")
        elif display_name is not None:
            payload["displayName"] = validate_display_name(display_name)
        if photo_url is DELETE_ATTRIBUTE:
            delete_attributes.append("PHOTO_URL")
        elif photo_url is not None:
            payload["photoUrl"] = validate_photo_url(photo_url)
        if phone_number is DELETE_ATTRIBUTE:
            payload["deleteProvider"] = ["phone"]
        elif phone_number is not None:
            payload["phoneNumber"] = validate_phone_number(phone_number)
        if password is not None:
            payload["password"] = validate_password(password)
        if email_verified is not None:
            payload["emailVerified"] = bool(email_verified)
        if disabled is not None:
            payload["disableUser"] = bool(disabled)
        if custom_claims is not None:
            payload["customAttributes"] = serialize_custom_claims(custom_claims)
        if delete_attributes:
            payload["deleteAttribute"] = delete_attributes

        if len(payload) == 1:
            raise InvalidArgumentError("update_user requires at least one field to update")

        self.client.post(f"{self._base_path}/accounts:update", json=payload)
        logger.info(f"Updated user (uid={uid}, fields={sorted(k for k in payload if k != 'localId')})")
        return self.get_user(uid)

    def set_custom_user_claims(self, uid: str, custom_claims: Optional[Dict[str, Any]]) -> None:
        """Replace the custom claims of a user. None or {} removes all claims."""
        validate_uid(uid)
        payload = {"localId": uid, "customAttributes": serialize_custom_claims(custom_claims or {})}
        self.client.post(f"{self._base_path}/accounts:update", json=payload)
        logger.info(f"Set custom claims (uid={uid}, claims={sorted((custom_claims or {}).keys())})")

    def delete_user(self, uid: str) -> None:
        validate_uid(uid)
        self.client.post(f"{self._base_path}/accounts:delete", json={"localId": uid})
        logger.info(f"Deleted user (uid={uid}, tenant={self.tenant_id})")

    def list_users(
        self,
        page_token: Optional[str] = None,
        max_results: int = MAX_LIST_USERS_RESULTS,
    ) -> Page:
        """Return one page of users, starting at page_token.

        Use ``page.iterate_all()`` to walk every user lazily.

        Raises:
            InvalidArgumentError: If max_results or page_token is invalid (no request is sent)
            SourceFetchError: If the service call fails
        """
        return PageFactory(self.page_source(), max_results, page_token).create()

    def page_source(self):
        if self.tenant_id is None:
            return UserPageSource(self.client)
        return TenantUserPageSource(self.client, self.tenant_id)

    def generate_password_reset_link(self, email: str, settings: Optional[ActionCodeSettings] = None) -> str:
        return self._email_action_link(EmailLinkType.PASSWORD_RESET, email, settings)

    def generate_email_verification_link(self, email: str, settings: Optional[ActionCodeSettings] = None) -> str:
        return self._email_action_link(EmailLinkType.VERIFY_EMAIL, email, settings)

    def generate_sign_in_with_email_link(self, email: str, settings: ActionCodeSettings) -> str:
        if settings is None:
            raise InvalidArgumentError("ActionCodeSettings must not be None when generating sign-in links")
        return self._email_action_link(EmailLinkType.EMAIL_SIGNIN, email, settings)

    def _email_action_link(
        self,
        link_type: EmailLinkType,
        email: str,
        settings: Optional[ActionCodeSettings],
    ) -> str:
        validate_email(email)
        payload: Dict[str, Any] = {
            "requestType": link_type.value,
            "email": email,
            "returnOobLink": True,
        }
        if settings is not None:
            payload.update(settings.to_payload())
        path = f"{self._base_path}/accounts:sendOobCode"
        resp = self.client.post(path, json=payload)
        link = (resp.json() or {}).get("oobLink")
        if not link:
            raise IdentityAPIError(500, f"Failed to generate {link_type.value} link", path)
        return link

    def _lookup(self, payload: Dict[str, Any], identifier: str) -> UserRecord:
        path = f"{self._base_path}/accounts:lookup"
        resp = self.client.post(path, json=payload)
        users = (resp.json() or {}).get("users") or []
        if not users:
            raise UserNotFoundError(
                404,
                f"No user record found for the provided {identifier}",
                path,
                "USER_NOT_FOUND",
            )
        return UserRecord.from_response(users[0])


def serialize_custom_claims(claims: Dict[str, Any]) -> str:
    """Serialize custom claims, rejecting reserved names and oversized payloads.

    Raises:
        InvalidArgumentError: If a claim is reserved or the payload is too large
    """
    if not isinstance(claims, dict):
        raise InvalidArgumentError("custom claims must be a dict")
    reserved = sorted(set(claims).intersection(RESERVED_CLAIMS))
    if reserved:
        raise InvalidArgumentError(f"Claim(s) {', '.join(reserved)} are reserved and cannot be set")
    serialized = json.dumps(claims)
    if len(serialized) > MAX_CLAIMS_PAYLOAD_SIZE:
        raise InvalidArgumentError(
            f"Custom claims payload must not exceed {MAX_CLAIMS_PAYLOAD_SIZE} characters"
        )
    return serialized
