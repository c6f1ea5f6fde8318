"""Management of stored tokens: lookup, grant, revoke and paged listings."""

from typing import Optional

import structlog

from authserver.models.page import Page
from authserver.models.token import TokenKind, TokenRecord
from authserver.services.token_store import (
    AccessTokenStore,
    ConfirmationTokenStore,
    RefreshTokenStore,
    TokenStore,
)
from authserver.services.user_service import UserService

logger = structlog.get_logger(__name__)

SORT_KEYS = {
    "id": "u.user_id",
    "username": "u.username",
    "email": "u.email",
    "expiration": "t.expiration_date",
    "token_id": "t.token_id",
}

_STORES = {
    TokenKind.ACCESS: AccessTokenStore,
    TokenKind.REFRESH: RefreshTokenStore,
    TokenKind.CONFIRMATION: ConfirmationTokenStore,
}


def sort_column(sort_by: Optional[str]) -> str:
    """Map a public sort key to its column; unknown keys sort by user id."""
    return SORT_KEYS.get((sort_by or "").lower(), "u.user_id")


class TokenService:
    """Token operations for one token kind."""

    def __init__(self, kind: TokenKind, store: Optional[TokenStore] = None, users: Optional[UserService] = None):
        self.kind = kind
        self.store = store or _STORES[kind]()
        self.users = users or UserService()

    async def get(self, token_id: int) -> Optional[TokenRecord]:
        return await self.store.find_by_id(token_id)

    async def save(self, user_id: int, token: str) -> Optional[TokenRecord]:
        """Store a token for an existing user under a freshly allocated id.

        Returns:
            The stored record, or None if the user does not exist or no free
            id could be allocated
        """
        if not await self.users.is_valid_id(user_id):
            logger.warning("token_save_unknown_user", kind=self.kind.value, user_id=user_id)
            return None

        token_id = await self.store.allocate_and_save(user_id, token)
        if token_id is None:
            return None
        return await self.store.find_by_id(token_id)

    async def delete(self, token_id: int, user_id: int) -> bool:
        """Delete a token owned by ``user_id``.

        Returns:
            True if a row was deleted
        """
        return await self.store.delete_by_id(token_id, user_id) > 0

    async def get_page(
        self,
        page: int,
        size: int,
        sort_by: Optional[str] = None,
        sort_order: str = "ASC",
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Page[TokenRecord]:
        items = await self.store.get_sorted_page_with_filters(
            page * size, size, sort_column(sort_by), sort_order, username, email
        )
        total = await self.store.count_with_filters(username, email)
        return Page[TokenRecord](items=items, total=total, page=page, size=size)

    async def get_valid(
        self,
        page: int,
        size: int,
        sort_by: Optional[str] = None,
        sort_order: str = "ASC",
    ) -> Page[TokenRecord]:
        items = await self.store.find_valid(page * size, size, sort_column(sort_by), sort_order)
        total = await self.store.count_valid()
        return Page[TokenRecord](items=items, total=total, page=page, size=size)
