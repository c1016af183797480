"""Identity Toolkit wire representations -> Python records.

Usage:
    user = UserRecord.from_response(resp.json()["users"][0])
    tenant = Tenant.from_response(resp.json())
"""
from __future__ import annotations
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .exceptions import InvalidArgumentError
from .validators import validate_url

# Listing responses carry this value when the caller may not read password hashes
REDACTED_PASSWORD_HASH = "UkVEQUNURUQ="


@dataclass(frozen=True)
class UserRecord:
    """A user account as returned by the accounts:lookup endpoint."""

    uid: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    disabled: bool = False
    email_verified: bool = False
    tenant_id: Optional[str] = None
    provider_ids: Tuple[str, ...] = ()
    # Excluded from hashing; still compared for equality
    custom_claims: Dict[str, Any] = field(default_factory=dict, hash=False)
    creation_timestamp: Optional[int] = None
    last_sign_in_timestamp: Optional[int] = None
    tokens_valid_after_timestamp: Optional[int] = None

    @classmethod
    def _fields_from_response(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        if not data.get("localId"):
            raise ValueError("user response must contain a non-empty localId")

        claims_raw = data.get("customAttributes")
        custom_claims = json.loads(claims_raw) if claims_raw else {}

        valid_since = data.get("validSince")
        return {
            "uid": data["localId"],
            "email": data.get("email"),
            "phone_number": data.get("phoneNumber"),
            "display_name": data.get("displayName"),
            "photo_url": data.get("photoUrl"),
            "disabled": bool(data.get("disabled", False)),
            "email_verified": bool(data.get("emailVerified", False)),
            "tenant_id": data.get("tenantId"),
            "provider_ids": tuple(
                info["providerId"] for info in data.get("providerUserInfo") or [] if info.get("providerId")
            ),
            "custom_claims": custom_claims,
            "creation_timestamp": _optional_int(data.get("createdAt")),
            "last_sign_in_timestamp": _optional_int(data.get("lastLoginAt")),
            # validSince is in seconds, exposed in milliseconds like the other timestamps
            "tokens_valid_after_timestamp": int(valid_since) * 1000 if valid_since else None,
        }

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "UserRecord":
        return cls(**cls._fields_from_response(data))


@dataclass(frozen=True)
class ExportedUserRecord(UserRecord):
    """A user account as returned by the listing endpoint, including password hash data."""

    password_hash: Optional[str] = None
    password_salt: Optional[str] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "ExportedUserRecord":
        password_hash = data.get("passwordHash")
        if password_hash == REDACTED_PASSWORD_HASH:
            password_hash = None
        return cls(
            password_hash=password_hash,
            password_salt=data.get("salt"),
            **cls._fields_from_response(data),
        )


@dataclass(frozen=True)
class Tenant:
    """A tenant of a multi-tenant project."""

    tenant_id: str
    display_name: Optional[str] = None
    allow_password_signup: bool = False
    enable_email_link_signin: bool = False

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "Tenant":
        name = data.get("name") or ""
        # name is projects/{project}/tenants/{tenant_id}
        tenant_id = name.rsplit("/", 1)[-1]
        if not tenant_id:
            raise ValueError("tenant response must contain a resource name")
        return cls(
            tenant_id=tenant_id,
            display_name=data.get("displayName"),
            allow_password_signup=bool(data.get("allowPasswordSignup", False)),
            enable_email_link_signin=bool(data.get("enableEmailLinkSignin", False)),
        )


@dataclass(frozen=True)
class ActionCodeSettings:
    """Settings that control email action links (continue URL, mobile app handoff)."""

    url: str
    handle_code_in_app: Optional[bool] = None
    dynamic_link_domain: Optional[str] = None
    ios_bundle_id: Optional[str] = None
    android_package_name: Optional[str] = None
    android_install_app: Optional[bool] = None
    android_minimum_version: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Map to the sendOobCode request fields.

        Raises:
            InvalidArgumentError: If the settings are inconsistent
        """
        validate_url(self.url, "continue URL")

        payload: Dict[str, Any] = {"continueUrl": self.url}
        if self.handle_code_in_app is not None:
            payload["canHandleCodeInApp"] = bool(self.handle_code_in_app)
        if self.dynamic_link_domain:
            payload["dynamicLinkDomain"] = self.dynamic_link_domain
        if self.ios_bundle_id:
            payload["iOSBundleId"] = self.ios_bundle_id
        if self.android_package_name:
            payload["androidPackageName"] = self.android_package_name
            if self.android_install_app is not None:
                payload["androidInstallApp"] = bool(self.android_install_app)
            if self.android_minimum_version:
                payload["androidMinimumVersion"] = self.android_minimum_version
        elif self.android_install_app is not None or self.android_minimum_version:
            raise InvalidArgumentError(
                "android_package_name is required when specifying other Android settings"
            )
        return payload


def _optional_int(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    return int(value)
