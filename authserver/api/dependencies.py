"""FastAPI dependencies for bearer authentication and authorization."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from authserver.exceptions import InvalidTokenError
from authserver.models.user import User
from authserver.services.accounts import AccountService
from authserver.services.admin_service import (
    RoleAdminService,
    UserAdminService,
    UserRoleAdminService,
)
from authserver.services.auth_service import AuthService
from authserver.services.jwt_service import TokenIssuer
from authserver.services.token_store import AccessTokenStore
from authserver.services.user_role_service import UserRoleService
from authserver.services.user_service import UserService

ADMIN_ROLE = "ROLE_ADMIN"

bearer_scheme = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> User:
    """Resolve the user behind a bearer access token.

    The token must verify and must also still be stored and unexpired
    server-side.

    Raises:
        HTTPException 401: If the token is invalid, unknown or expired, or
            the user is missing or blocked
    """
    token = credentials.credentials
    issuer = TokenIssuer()
    if not issuer.validate(token):
        raise _unauthorized("Invalid or expired access token")

    record = await AccessTokenStore().find_by_token(token)
    if record is None or not record.is_valid():
        raise _unauthorized("Access token is not active")

    try:
        user_id = issuer.get_identity_id(token)
    except InvalidTokenError:
        raise _unauthorized("Invalid token subject")

    user = await UserService().find_by_id(user_id)
    if user is None:
        raise _unauthorized("User not found")
    if user.blocked:
        raise _unauthorized("User account is blocked")

    return user


async def require_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    """Require the current user to hold the admin role.

    Raises:
        HTTPException 403: If the user is not an admin
    """
    roles = await UserRoleService().get_roles(current_user.id)
    if ADMIN_ROLE not in {role.name for role in roles}:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def get_account_service() -> AccountService:
    return AccountService()


def get_auth_service() -> AuthService:
    return AuthService()


def get_user_admin_service() -> UserAdminService:
    return UserAdminService()


def get_role_admin_service() -> RoleAdminService:
    return RoleAdminService()


def get_user_role_admin_service() -> UserRoleAdminService:
    return UserRoleAdminService()
