"""Models package exports."""

from authserver.models.admin import (
    RoleRequest,
    UserCreateRequest,
    UserRoleRequest,
    UserStatusRequest,
    UserUpdateRequest,
)
from authserver.models.page import Page
from authserver.models.request import (
    AccountRequest,
    ChangePasswordRequest,
    ConfirmationRequest,
    LoginRequest,
    RefreshRequest,
    RegistrationRequest,
    ResetPasswordRequest,
    UnlockRequest,
)
from authserver.models.response import (
    AccountProcessType,
    AccountResponse,
    AccountResponseType,
)
from authserver.models.token import TokenKind, TokenPair, TokenRecord, TokenSummary
from authserver.models.user import Role, User, UserRole, UserRoles, UserRoleSummary, UserSummary

__all__ = [
    "AccountProcessType",
    "AccountRequest",
    "AccountResponse",
    "AccountResponseType",
    "ChangePasswordRequest",
    "ConfirmationRequest",
    "LoginRequest",
    "Page",
    "RefreshRequest",
    "RegistrationRequest",
    "ResetPasswordRequest",
    "Role",
    "RoleRequest",
    "TokenKind",
    "TokenPair",
    "TokenRecord",
    "TokenSummary",
    "UnlockRequest",
    "User",
    "UserCreateRequest",
    "UserRole",
    "UserRoleRequest",
    "UserRoleSummary",
    "UserRoles",
    "UserStatusRequest",
    "UserSummary",
    "UserUpdateRequest",
]
