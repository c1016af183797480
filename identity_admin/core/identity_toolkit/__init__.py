"""Identity Toolkit Admin API client library.

This package provides a modular, testable interface to the Identity Toolkit
REST API.

Architecture:
- client.py: HTTP client with authentication and auto-refresh
- pagination.py: Lazy cursor-based paging shared by every listing
- users.py: User account lookup, lifecycle and email action links
- tenants.py: Tenant management and tenant-scoped user services
- records.py: Wire representations mapped to immutable records
- validators.py: Argument validation performed before any request
- exceptions.py: Typed exceptions for error handling

Usage:
    from identity_admin.core.identity_toolkit import create_client_with_token, UserService

    client = create_client_with_token("my-project", access_token)
    users = UserService(client)
    for user in users.list_users().iterate_all():
        print(user.uid, user.email)
"""
from .client import (
    IdentityToolkitClient,
    create_client_with_token,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    IdentityError,
    InvalidArgumentError,
    SourceFetchError,
    IdentityTransportError,
    IdentityAPIError,
    UserNotFoundError,
    UserAlreadyExistsError,
    TenantNotFoundError,
    InsufficientPermissionsError,
    NoSuchElementError,
    UnsupportedOperationError,
)
from .pagination import (
    Batch,
    PageSource,
    Page,
    PageFactory,
    PageIterable,
    LazyIterator,
    IterationStep,
)
from .records import (
    UserRecord,
    ExportedUserRecord,
    Tenant,
    ActionCodeSettings,
)
from .users import (
    UserService,
    UserPageSource,
    TenantUserPageSource,
    EmailLinkType,
    DELETE_ATTRIBUTE,
    MAX_LIST_USERS_RESULTS,
)
from .tenants import (
    TenantService,
    TenantPageSource,
    MAX_LIST_TENANTS_RESULTS,
)
from .validators import END_OF_LIST

__all__ = [
    # Client
    "IdentityToolkitClient",
    "create_client_with_token",
    "REQUEST_TIMEOUT",

    # Exceptions
    "IdentityError",
    "InvalidArgumentError",
    "SourceFetchError",
    "IdentityTransportError",
    "IdentityAPIError",
    "UserNotFoundError",
    "UserAlreadyExistsError",
    "TenantNotFoundError",
    "InsufficientPermissionsError",
    "NoSuchElementError",
    "UnsupportedOperationError",

    # Pagination
    "END_OF_LIST",
    "Batch",
    "PageSource",
    "Page",
    "PageFactory",
    "PageIterable",
    "LazyIterator",
    "IterationStep",

    # Records
    "UserRecord",
    "ExportedUserRecord",
    "Tenant",
    "ActionCodeSettings",

    # Services
    "UserService",
    "UserPageSource",
    "TenantUserPageSource",
    "EmailLinkType",
    "DELETE_ATTRIBUTE",
    "MAX_LIST_USERS_RESULTS",
    "TenantService",
    "TenantPageSource",
    "MAX_LIST_TENANTS_RESULTS",
]
