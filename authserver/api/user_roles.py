"""Administrative role grants."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
import structlog

from authserver.api.dependencies import get_user_role_admin_service, require_admin
from authserver.models.admin import UserRoleRequest
from authserver.models.page import Page
from authserver.models.user import User, UserRoleSummary
from authserver.services.admin_service import UserRoleAdminService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/user-roles", tags=["User roles"])


@router.get("")
async def list_user_roles(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    sort_by: Optional[str] = Query(None),
    sort_order: str = Query("ASC"),
    username: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    role_name: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    service: UserRoleAdminService = Depends(get_user_role_admin_service),
) -> Page[UserRoleSummary]:
    """List assignments filtered by username, email and role name.

    ``sort_by`` accepts username, email or rolename; anything else sorts by
    user id.
    """
    result = await service.get_page(
        page, size, sort_by, sort_order, username, email, role_name
    )
    return Page[UserRoleSummary](
        items=[UserRoleSummary.from_user_role(item) for item in result.items],
        total=result.total,
        page=result.page,
        size=result.size,
    )


@router.get("/{user_role_id}")
async def get_user_role(
    user_role_id: int,
    admin: User = Depends(require_admin),
    service: UserRoleAdminService = Depends(get_user_role_admin_service),
) -> UserRoleSummary:
    user_role = await service.get(user_role_id)
    if user_role is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Role assignment {user_role_id} not found",
        )
    return UserRoleSummary.from_user_role(user_role)


@router.post("", status_code=status.HTTP_201_CREATED)
async def grant_role(
    request: UserRoleRequest,
    admin: User = Depends(require_admin),
    service: UserRoleAdminService = Depends(get_user_role_admin_service),
) -> UserRoleSummary:
    """Grant a role.

    Raises:
        HTTPException 404: If the user or the role does not exist
        ConflictError: Mapped to 409 when the user already holds the role
    """
    user_role = await service.save(request.user_id, request.role_id)
    if user_role is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User or role not found",
        )
    logger.info(
        "role_granted_by_admin",
        user_id=request.user_id,
        role_id=request.role_id,
        admin_id=admin.id,
    )
    return UserRoleSummary.from_user_role(user_role)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_role(
    user_id: int = Query(..., ge=1),
    role_id: int = Query(..., ge=1),
    admin: User = Depends(require_admin),
    service: UserRoleAdminService = Depends(get_user_role_admin_service),
) -> None:
    if not await service.delete(user_id, role_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Role assignment not found",
        )
    logger.info("role_revoked_by_admin", user_id=user_id, role_id=role_id, admin_id=admin.id)
