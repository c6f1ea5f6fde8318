"""Persistence of issued credential tokens.

Every issued token is stored with a server-side expiration date computed at
save time from its kind's validity window. That date is independent of any
expiry embedded in the token string itself.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import asyncpg
import structlog

from authserver.database import get_pool
from authserver.models.token import TokenKind, TokenRecord
from authserver.services.sorting import TOKEN_SORT_COLUMNS, like_param, validate_sort_parameters
from authserver.services.store import USER_COLUMNS, Store, rows_affected, user_from_row

logger = structlog.get_logger(__name__)

MAX_ID_ATTEMPTS = 3


class TokenStore(Store):
    """Token rows of one kind, joined with their owning user on read."""

    kind: TokenKind

    @property
    def table(self) -> str:
        return self.kind.table

    def _select(self) -> str:
        return f"""
            SELECT t.token_id, t.token, t.expiration_date, {USER_COLUMNS}
            FROM users u
            JOIN {self.table} t ON u.user_id = t.user_id
        """

    def _record(self, row: Mapping[str, Any]) -> TokenRecord:
        return TokenRecord(
            token_id=row["token_id"],
            user=user_from_row(row),
            token=row["token"],
            expiration_date=row["expiration_date"],
            kind=self.kind,
        )

    async def save(self, token_id: int, user_id: int, token: str) -> int:
        """Insert a token expiring one validity window from now.

        Args:
            token_id: Pre-allocated identifier, see ``next_id``
            user_id: Owner of the token
            token: Opaque token value

        Returns:
            Rows inserted: 1, or 0 if ``token_id`` is already taken
        """
        expires_at = datetime.now(timezone.utc) + self.kind.validity

        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                status = await conn.execute(
                    f"""
                    INSERT INTO {self.table} (token_id, user_id, token, expiration_date)
                    VALUES ($1, $2, $3, $4)
                    """,
                    token_id,
                    user_id,
                    token,
                    expires_at,
                )
        except asyncpg.UniqueViolationError:
            logger.warning(
                "token_id_already_taken",
                kind=self.kind.value,
                token_id=token_id,
            )
            return 0

        logger.info(
            "token_saved",
            kind=self.kind.value,
            token_id=token_id,
            user_id=user_id,
            expires_at=expires_at.isoformat(),
        )
        return rows_affected(status)

    async def find_by_id(self, token_id: int) -> Optional[TokenRecord]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                self._select() + " WHERE t.token_id = $1",
                token_id,
            )

        if row is None:
            return None
        return self._record(row)

    async def find_by_token(self, token: str) -> Optional[TokenRecord]:
        """Look up a stored token by its value, latest first if repeated."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                self._select() + " WHERE t.token = $1 ORDER BY t.token_id DESC LIMIT 1",
                token,
            )

        if row is None:
            return None
        return self._record(row)

    async def delete_by_id(self, token_id: int, user_id: int) -> int:
        """Delete a token only if it belongs to ``user_id``.

        Returns:
            Rows deleted
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            status = await conn.execute(
                f"DELETE FROM {self.table} WHERE token_id = $1 AND user_id = $2",
                token_id,
                user_id,
            )

        deleted = rows_affected(status)
        logger.info(
            "token_deleted",
            kind=self.kind.value,
            token_id=token_id,
            user_id=user_id,
            deleted=deleted,
        )
        return deleted

    async def find_valid(
        self, offset: int, size: int, sort_by: str, sort_order: str
    ) -> list[TokenRecord]:
        """Return unexpired tokens, sorted and paginated.

        Raises:
            InvalidSortParameterError: Before any query runs, if the sort
                parameters are not allow-listed
        """
        column, direction = validate_sort_parameters(sort_by, sort_order, TOKEN_SORT_COLUMNS)
        query = (
            self._select()
            + f" WHERE t.expiration_date > $1 ORDER BY {column} {direction} LIMIT $2 OFFSET $3"
        )

        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(query, datetime.now(timezone.utc), size, offset)

        return [self._record(row) for row in rows]

    async def get_sorted_page_with_filters(
        self,
        offset: int,
        size: int,
        sort_by: str,
        sort_order: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> list[TokenRecord]:
        """Return tokens whose owner matches the username/email substrings.

        Raises:
            InvalidSortParameterError: Before any query runs, if the sort
                parameters are not allow-listed
        """
        column, direction = validate_sort_parameters(sort_by, sort_order, TOKEN_SORT_COLUMNS)
        query = self._select() + f"""
            WHERE u.username LIKE $1 AND u.email LIKE $2
            ORDER BY {column} {direction}
            LIMIT $3 OFFSET $4
        """

        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(query, like_param(username), like_param(email), size, offset)

        return [self._record(row) for row in rows]

    async def count_valid(self) -> int:
        pool = await get_pool()

        async with pool.acquire() as conn:
            return await conn.fetchval(
                f"SELECT COUNT(*) FROM {self.table} WHERE expiration_date > $1",
                datetime.now(timezone.utc),
            )

    async def count_with_filters(
        self, username: Optional[str] = None, email: Optional[str] = None
    ) -> int:
        pool = await get_pool()

        async with pool.acquire() as conn:
            return await conn.fetchval(
                f"""
                SELECT COUNT(*)
                FROM users u
                JOIN {self.table} t ON u.user_id = t.user_id
                WHERE u.username LIKE $1 AND u.email LIKE $2
                """,
                like_param(username),
                like_param(email),
            )

    async def next_id(self) -> int:
        """Allocate the next free token id for this kind."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            return await conn.fetchval(
                f"SELECT COALESCE(MAX(token_id) + 1, 1) FROM {self.table}"
            )

    async def allocate_and_save(
        self, user_id: int, token: str, attempts: int = MAX_ID_ATTEMPTS
    ) -> Optional[int]:
        """Save a token under a freshly allocated id.

        Ids come from ``next_id``; when a concurrent insert takes the id first
        a new one is allocated.

        Returns:
            The token id, or None if every attempt collided
        """
        for _ in range(attempts):
            token_id = await self.next_id()
            if await self.save(token_id, user_id, token) > 0:
                return token_id
        return None


class AccessTokenStore(TokenStore):
    kind = TokenKind.ACCESS


class RefreshTokenStore(TokenStore):
    kind = TokenKind.REFRESH


class ConfirmationTokenStore(TokenStore):
    """Confirmation tokens are never deleted by account flows, only expired."""

    kind = TokenKind.CONFIRMATION

    async def set_expired(self, token_id: int) -> int:
        """Force a confirmation token to expire now without deleting it.

        Returns:
            Rows updated
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            status = await conn.execute(
                "UPDATE confirmation_tokens SET expiration_date = $1 WHERE token_id = $2",
                datetime.now(timezone.utc),
                token_id,
            )

        updated = rows_affected(status)
        logger.info("confirmation_token_expired", token_id=token_id, updated=updated)
        return updated
