"""Administrative role management."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
import structlog

from authserver.api.dependencies import get_role_admin_service, require_admin
from authserver.models.admin import RoleRequest
from authserver.models.page import Page
from authserver.models.user import Role, User
from authserver.services.admin_service import RoleAdminService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/roles", tags=["Roles"])


def _not_found(role_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Role {role_id} not found",
    )


@router.get("")
async def list_roles(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    sort_by: Optional[str] = Query(None),
    sort_order: str = Query("ASC"),
    role_name: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    service: RoleAdminService = Depends(get_role_admin_service),
) -> Page[Role]:
    return await service.get_page(page, size, sort_by, sort_order, role_name)


@router.get("/list")
async def list_all_roles(
    role_name: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    service: RoleAdminService = Depends(get_role_admin_service),
) -> list[Role]:
    """Unpaged role list for pickers, ordered by id."""
    return await service.get_list(role_name)


@router.get("/{role_id}")
async def get_role(
    role_id: int,
    admin: User = Depends(require_admin),
    service: RoleAdminService = Depends(get_role_admin_service),
) -> Role:
    role = await service.get(role_id)
    if role is None:
        raise _not_found(role_id)
    return role


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_role(
    request: RoleRequest,
    admin: User = Depends(require_admin),
    service: RoleAdminService = Depends(get_role_admin_service),
) -> Role:
    role = await service.save(request.name)
    logger.info("role_created_by_admin", role_id=role.id, admin_id=admin.id)
    return role


@router.put("/{role_id}")
async def rename_role(
    role_id: int,
    request: RoleRequest,
    admin: User = Depends(require_admin),
    service: RoleAdminService = Depends(get_role_admin_service),
) -> Role:
    role = await service.update(role_id, request.name)
    if role is None:
        raise _not_found(role_id)
    return role


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role_id: int,
    admin: User = Depends(require_admin),
    service: RoleAdminService = Depends(get_role_admin_service),
) -> None:
    """Delete a role and every assignment of it."""
    if not await service.delete(role_id):
        raise _not_found(role_id)
    logger.info("role_deleted_by_admin", role_id=role_id, admin_id=admin.id)
