"""Administrative account management."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
import structlog

from authserver.api.dependencies import get_user_admin_service, require_admin
from authserver.models.admin import UserCreateRequest, UserStatusRequest, UserUpdateRequest
from authserver.models.page import Page
from authserver.models.user import User, UserSummary
from authserver.services.admin_service import UserAdminService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def _not_found(user_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"User {user_id} not found",
    )


@router.get("")
async def list_users(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    sort_by: Optional[str] = Query(None),
    sort_order: str = Query("ASC"),
    username: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    service: UserAdminService = Depends(get_user_admin_service),
) -> Page[UserSummary]:
    """List accounts filtered by username and email substrings.

    ``sort_by`` accepts username, email or created; anything else sorts by id.
    """
    result = await service.get_page(page, size, sort_by, sort_order, username, email)
    return Page[UserSummary](
        items=[UserSummary.from_user(user) for user in result.items],
        total=result.total,
        page=result.page,
        size=result.size,
    )


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    admin: User = Depends(require_admin),
    service: UserAdminService = Depends(get_user_admin_service),
) -> UserSummary:
    user = await service.get(user_id)
    if user is None:
        raise _not_found(user_id)
    return UserSummary.from_user(user)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: UserCreateRequest,
    admin: User = Depends(require_admin),
    service: UserAdminService = Depends(get_user_admin_service),
) -> UserSummary:
    """Create an account without sending a confirmation mail.

    Raises:
        ConflictError: Mapped to 409 when the username or email is taken
    """
    user = await service.save(
        request.username,
        request.email,
        request.password,
        verified=request.verified,
        blocked=request.blocked,
    )
    logger.info("user_created_by_admin", user_id=user.id, admin_id=admin.id)
    return UserSummary.from_user(user)


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    request: UserUpdateRequest,
    admin: User = Depends(require_admin),
    service: UserAdminService = Depends(get_user_admin_service),
) -> UserSummary:
    user = await service.update(user_id, request.username, request.email)
    if user is None:
        raise _not_found(user_id)
    return UserSummary.from_user(user)


@router.patch("/{user_id}/status")
async def set_user_status(
    user_id: int,
    request: UserStatusRequest,
    admin: User = Depends(require_admin),
    service: UserAdminService = Depends(get_user_admin_service),
) -> UserSummary:
    """Block, unblock or mark an account verified."""
    user = await service.set_status(user_id, request.verified, request.blocked)
    if user is None:
        raise _not_found(user_id)
    logger.info(
        "user_status_set_by_admin",
        user_id=user_id,
        verified=request.verified,
        blocked=request.blocked,
        admin_id=admin.id,
    )
    return UserSummary.from_user(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    service: UserAdminService = Depends(get_user_admin_service),
) -> None:
    """Delete an account with its roles and tokens.

    Raises:
        HTTPException 400: If an administrator targets their own account
        HTTPException 404: If the account does not exist
    """
    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Administrators cannot delete their own account",
        )
    if not await service.delete(user_id):
        raise _not_found(user_id)
    logger.info("user_deleted_by_admin", user_id=user_id, admin_id=admin.id)
