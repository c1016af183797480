"""Core Business Logic Module

This module provides the account and tenant management logic, independent
of any CLI or configuration source.

Module Structure:
    - identity_toolkit/ : Identity Toolkit REST client, services and pagination

Usage Pattern:
    Import explicitly when needed:
        from identity_admin.core.identity_toolkit import UserService, TenantService
        from identity_admin.core.identity_toolkit import Page, PageFactory, IterationStep

Public APIs:
    Users (identity_admin.core.identity_toolkit.users):
        - UserService.get_user() / get_user_by_email() / get_user_by_phone_number()
        - UserService.create_user() / update_user() / delete_user()
        - UserService.set_custom_user_claims()
        - UserService.list_users()
        - UserService.generate_*_link()

    Tenants (identity_admin.core.identity_toolkit.tenants):
        - TenantService.get_tenant() / create_tenant() / update_tenant() / delete_tenant()
        - TenantService.list_tenants()
        - TenantService.users_for_tenant()

    Pagination (identity_admin.core.identity_toolkit.pagination):
        - PageFactory.create()
        - Page.get_next_page() / iterate_all()
        - LazyIterator.step()
"""
