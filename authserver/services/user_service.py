"""User persistence."""

from datetime import datetime, timezone
from typing import Optional

import asyncpg
import structlog

from authserver.database import get_pool
from authserver.models.user import User
from authserver.services.sorting import USER_SORT_COLUMNS, like_param, validate_sort_parameters
from authserver.services.store import Store, rows_affected, user_from_row

logger = structlog.get_logger(__name__)

_SELECT_USER = """
    SELECT user_id, username, email, password, verified, blocked, created_at, updated_at
    FROM users u
"""


class UserService(Store):
    """Store for user accounts."""

    async def find_by_id(self, user_id: int) -> Optional[User]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(_SELECT_USER + " WHERE user_id = $1", user_id)

        return user_from_row(row) if row is not None else None

    async def find_by_email(self, email: str) -> Optional[User]:
        """Get a user by email address (case-insensitive)."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                _SELECT_USER + " WHERE LOWER(email) = LOWER($1)",
                email,
            )

        return user_from_row(row) if row is not None else None

    async def find_by_username(self, username: str) -> Optional[User]:
        """Get a user by username (case-insensitive)."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                _SELECT_USER + " WHERE LOWER(username) = LOWER($1)",
                username,
            )

        return user_from_row(row) if row is not None else None

    async def is_email_exist(self, email: str) -> bool:
        pool = await get_pool()

        async with pool.acquire() as conn:
            count = await conn.fetchval(
                "SELECT COUNT(*) FROM users WHERE LOWER(email) = LOWER($1)",
                email,
            )

        return count > 0

    async def is_login_exist(self, username: str) -> bool:
        pool = await get_pool()

        async with pool.acquire() as conn:
            count = await conn.fetchval(
                "SELECT COUNT(*) FROM users WHERE LOWER(username) = LOWER($1)",
                username,
            )

        return count > 0

    async def is_valid_id(self, user_id: int) -> bool:
        pool = await get_pool()

        async with pool.acquire() as conn:
            count = await conn.fetchval(
                "SELECT COUNT(*) FROM users WHERE user_id = $1",
                user_id,
            )

        return count > 0

    async def next_id(self) -> int:
        pool = await get_pool()

        async with pool.acquire() as conn:
            return await conn.fetchval("SELECT COALESCE(MAX(user_id) + 1, 1) FROM users")

    async def save(self, user: User) -> int:
        """Insert a user row.

        Args:
            user: User with a pre-allocated id and an encoded password

        Returns:
            Rows inserted, or 0 if the id, username or email is taken
        """
        now = datetime.now(timezone.utc)

        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                status = await conn.execute(
                    """
                    INSERT INTO users (user_id, username, email, password, verified, blocked, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    """,
                    user.id,
                    user.username,
                    user.email,
                    user.password,
                    user.verified,
                    user.blocked,
                    now,
                    now,
                )
        except asyncpg.UniqueViolationError:
            logger.warning("user_already_exists", user_id=user.id, username=user.username)
            return 0

        logger.info("user_created", user_id=user.id, username=user.username)
        return rows_affected(status)

    async def update(self, user_id: int, username: str, email: str) -> int:
        now = datetime.now(timezone.utc)

        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                status = await conn.execute(
                    """
                    UPDATE users
                    SET username = $1, email = $2, updated_at = $3
                    WHERE user_id = $4
                    """,
                    username,
                    email,
                    now,
                    user_id,
                )
        except asyncpg.UniqueViolationError:
            logger.warning("user_update_conflict", user_id=user_id, username=username)
            return 0

        logger.info("user_updated", user_id=user_id)
        return rows_affected(status)

    async def unlock(self, user_id: int) -> int:
        """Mark an account verified and not blocked."""
        return await self.update_status(user_id, verified=True, blocked=False)

    async def update_status(self, user_id: int, verified: bool, blocked: bool) -> int:
        now = datetime.now(timezone.utc)

        pool = await get_pool()

        async with pool.acquire() as conn:
            status = await conn.execute(
                """
                UPDATE users
                SET verified = $1, blocked = $2, updated_at = $3
                WHERE user_id = $4
                """,
                verified,
                blocked,
                now,
                user_id,
            )

        logger.info(
            "user_status_updated",
            user_id=user_id,
            verified=verified,
            blocked=blocked,
        )
        return rows_affected(status)

    async def update_password(self, user_id: int, password_hash: str) -> int:
        """Replace the stored password hash in place."""
        now = datetime.now(timezone.utc)

        pool = await get_pool()

        async with pool.acquire() as conn:
            status = await conn.execute(
                """
                UPDATE users
                SET password = $1, updated_at = $2
                WHERE user_id = $3
                """,
                password_hash,
                now,
                user_id,
            )

        logger.info("user_password_updated", user_id=user_id)
        return rows_affected(status)

    async def delete_by_id(self, user_id: int) -> int:
        """Hard-delete a user. Reserved for explicit admin action."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            status = await conn.execute("DELETE FROM users WHERE user_id = $1", user_id)

        deleted = rows_affected(status)
        if deleted:
            logger.info("user_deleted", user_id=user_id)
        else:
            logger.warning("user_delete_not_found", user_id=user_id)
        return deleted

    async def get_sorted_page_with_filters(
        self,
        offset: int,
        size: int,
        sort_by: str,
        sort_order: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> list[User]:
        """List users matching username/email substrings.

        Raises:
            InvalidSortParameterError: Before any query runs, if the sort
                parameters are not allow-listed
        """
        column, direction = validate_sort_parameters(sort_by, sort_order, USER_SORT_COLUMNS)

        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                _SELECT_USER
                + f"""
                WHERE username LIKE $1 AND email LIKE $2
                ORDER BY {column} {direction}
                LIMIT $3 OFFSET $4
                """,
                like_param(username),
                like_param(email),
                size,
                offset,
            )

        return [user_from_row(row) for row in rows]

    async def count_with_filters(
        self, username: Optional[str] = None, email: Optional[str] = None
    ) -> int:
        pool = await get_pool()

        async with pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT COUNT(*) FROM users WHERE username LIKE $1 AND email LIKE $2",
                like_param(username),
                like_param(email),
            )
