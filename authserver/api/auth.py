"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
import structlog

from authserver.api.dependencies import get_account_service, get_auth_service, get_current_user
from authserver.exceptions import AuthenticationError
from authserver.models.request import LoginRequest, RefreshRequest
from authserver.models.token import TokenPair
from authserver.models.user import User, UserSummary
from authserver.services.accounts import AccountService
from authserver.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login")
async def login(
    request: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenPair:
    """Login with a username or email and a password.

    Raises:
        HTTPException 401: If the credentials are wrong or the account is
            blocked or not verified
    """
    try:
        return await service.login(request.login, request.password)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )


@router.post("/refresh")
async def refresh(
    request: RefreshRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenPair:
    """Exchange a stored refresh token for a new access token.

    Raises:
        HTTPException 401: If the refresh token is invalid, unknown or expired
    """
    try:
        return await service.refresh(request.refresh_token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )


@router.get("/me")
async def get_me(
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> dict:
    """Current user and the names of its roles."""
    user_roles = await service.get_user_roles(current_user.username, current_user.email)
    return {
        "user": UserSummary.from_user(current_user).model_dump(mode="json"),
        "roles": user_roles.role_names if user_roles is not None else [],
    }
