"""Input validation helpers for account and listing parameters."""
from __future__ import annotations
from typing import Optional
from urllib.parse import urlparse

from .exceptions import InvalidArgumentError

END_OF_LIST = ""


def validate_uid(uid: str) -> str:
    """Validate a user ID.

    Args:
        uid: User ID to validate

    Returns:
        The uid unchanged

    Raises:
        InvalidArgumentError: If uid is not a non-empty string of at most 128 characters
    """
    if not isinstance(uid, str) or not uid:
        raise InvalidArgumentError("uid must be a non-empty string")
    if len(uid) > 128:
        raise InvalidArgumentError("uid must not be longer than 128 characters")
    return uid


def validate_email(email: str) -> str:
    """Validate email address.

    Args:
        email: Email address to validate

    Returns:
        Email address with surrounding whitespace removed

    Raises:
        InvalidArgumentError: If email is invalid
    """
    if not isinstance(email, str):
        raise InvalidArgumentError("email must be a string")
    email = email.strip()
    if not email or "@" not in email:
        raise InvalidArgumentError("Invalid email format")

    local, domain = email.rsplit("@", 1)
    if not local or not domain:
        raise InvalidArgumentError("Invalid email format")
    if len(email) > 254:
        raise InvalidArgumentError("Email exceeds maximum length")

    return email


def validate_phone_number(phone_number: str) -> str:
    """Validate an E.164 phone number (must start with '+')."""
    if not isinstance(phone_number, str) or not phone_number:
        raise InvalidArgumentError("phone number must be a non-empty string")
    if not phone_number.startswith("+"):
        raise InvalidArgumentError("phone number must be a valid, E.164 compliant identifier")
    if not any(char.isalnum() for char in phone_number[1:]):
        raise InvalidArgumentError("phone number must be a valid, E.164 compliant identifier")
    return phone_number


def validate_display_name(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidArgumentError("display name must be a non-empty string")
    return name


def validate_url(url: str, label: str = "URL") -> str:
    if not isinstance(url, str) or not url:
        raise InvalidArgumentError(f"{label} must be a non-empty string")
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise InvalidArgumentError(f"malformed {label}: {url}")
    return url


def validate_photo_url(url: str) -> str:
    return validate_url(url, "photo URL")


def validate_password(password: str) -> str:
    if not isinstance(password, str) or len(password) < 6:
        raise InvalidArgumentError("password must be a string with at least 6 characters")
    return password


def validate_tenant_id(tenant_id: str) -> str:
    if not isinstance(tenant_id, str) or not tenant_id:
        raise InvalidArgumentError("tenant ID must be a non-empty string")
    return tenant_id


def validate_max_results(max_results: int, limit: int) -> int:
    """Validate a page size against the per-entity maximum.

    Args:
        max_results: Requested number of items per page
        limit: Largest page size the service accepts

    Returns:
        The page size unchanged

    Raises:
        InvalidArgumentError: If the page size is not an int in [1, limit]
    """
    # bool is an int subclass but never a meaningful page size
    if isinstance(max_results, bool) or not isinstance(max_results, int):
        raise InvalidArgumentError(f"max_results must be an integer, got {max_results!r}")
    if max_results <= 0 or max_results > limit:
        raise InvalidArgumentError(
            f"max_results must be a positive integer that does not exceed {limit}"
        )
    return max_results


def validate_page_token(page_token: Optional[str]) -> Optional[str]:
    """Validate a continuation token supplied by a caller.

    None asks for the first page. The end-of-list marker is only ever
    returned by the service and is rejected as input.

    Raises:
        InvalidArgumentError: If the token is not a string or is the end-of-list marker
    """
    if page_token is None:
        return None
    if not isinstance(page_token, str):
        raise InvalidArgumentError("page token must be a string")
    if page_token == END_OF_LIST:
        raise InvalidArgumentError("invalid end of list page token")
    return page_token
