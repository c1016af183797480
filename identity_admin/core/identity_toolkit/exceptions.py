"""Identity Toolkit exceptions for error handling."""
from __future__ import annotations
from typing import Optional


class IdentityError(Exception):
    """Base exception for all identity operations."""
    pass


class InvalidArgumentError(IdentityError, ValueError):
    """Caller supplied an argument the service would reject.

    Raised before any request is sent.
    """
    pass


class SourceFetchError(IdentityError):
    """The remote service could not produce a result (network, auth or server error)."""
    pass


class IdentityTransportError(SourceFetchError):
    """Request never got an HTTP response (DNS, connection reset, timeout)."""

    def __init__(self, message: str, endpoint: str):
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"{endpoint}: {message}")


class IdentityAPIError(SourceFetchError):
    """HTTP error from the Identity Toolkit API.

    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
        error_code: Service error code (e.g. USER_NOT_FOUND), when present
    """

    def __init__(self, status_code: int, message: str, endpoint: str, error_code: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        self.error_code = error_code
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class UserNotFoundError(IdentityAPIError):
    """User lookup failed - no account matches the identifier."""
    pass


class UserAlreadyExistsError(IdentityAPIError):
    """User creation failed - uid, email or phone number already in use."""
    pass


class TenantNotFoundError(IdentityAPIError):
    """Tenant does not exist in the project."""
    pass


class InsufficientPermissionsError(IdentityAPIError):
    """Service credential lacks required permissions."""
    pass


class NoSuchElementError(IdentityError, StopIteration):
    """Iterator asked for an element after it was exhausted."""
    pass


class UnsupportedOperationError(IdentityError):
    """Operation is not supported on this object."""
    pass
