"""Administrative listing and revocation of stored tokens."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
import structlog

from authserver.api.dependencies import require_admin
from authserver.models.page import Page
from authserver.models.token import TokenKind, TokenSummary
from authserver.models.user import User
from authserver.services.token_service import TokenService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/tokens", tags=["Tokens"])


def _summaries(page: Page) -> Page[TokenSummary]:
    return Page[TokenSummary](
        items=[TokenSummary.from_record(record) for record in page.items],
        total=page.total,
        page=page.page,
        size=page.size,
    )


@router.get("/{kind}")
async def list_tokens(
    kind: TokenKind,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    sort_by: Optional[str] = Query(None),
    sort_order: str = Query("ASC"),
    username: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
) -> Page[TokenSummary]:
    """List stored tokens of one kind, filtered by owner username and email.

    Raises:
        InvalidSortParameterError: Mapped to 400 by the application
    """
    result = await TokenService(kind).get_page(page, size, sort_by, sort_order, username, email)
    return _summaries(result)


@router.get("/{kind}/valid")
async def list_valid_tokens(
    kind: TokenKind,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    sort_by: Optional[str] = Query(None),
    sort_order: str = Query("ASC"),
    admin: User = Depends(require_admin),
) -> Page[TokenSummary]:
    """List unexpired tokens of one kind."""
    result = await TokenService(kind).get_valid(page, size, sort_by, sort_order)
    return _summaries(result)


@router.delete("/{kind}/{token_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_token(
    kind: TokenKind,
    token_id: int,
    user_id: int = Query(..., ge=1),
    admin: User = Depends(require_admin),
) -> None:
    """Delete a token owned by ``user_id``.

    Raises:
        HTTPException 404: If no such token belongs to the user
    """
    if not await TokenService(kind).delete(token_id, user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Token not found",
        )
    logger.info("token_revoked", kind=kind.value, token_id=token_id, admin_id=admin.id)
