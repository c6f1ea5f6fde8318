"""User-to-role assignment persistence."""

from typing import Any, Mapping, Optional

import asyncpg
import structlog

from authserver.database import get_pool
from authserver.models.user import Role, UserRole, UserRoles
from authserver.services.sorting import (
    USER_ROLE_SORT_COLUMNS,
    like_param,
    validate_sort_parameters,
)
from authserver.services.store import USER_COLUMNS, Store, role_from_row, rows_affected, user_from_row

logger = structlog.get_logger(__name__)

_SELECT_USER_ROLE = f"""
    SELECT ur.user_role_id, {USER_COLUMNS}, r.role_id, r.role_name
    FROM users u
    JOIN user_roles ur ON u.user_id = ur.user_id
    JOIN roles r ON ur.role_id = r.role_id
"""


def _user_role(row: Mapping[str, Any]) -> UserRole:
    return UserRole(id=row["user_role_id"], user=user_from_row(row), role=role_from_row(row))


class UserRoleService(Store):
    """Store for user-role assignments, unique per (user, role)."""

    async def find_by_id(self, user_role_id: int) -> Optional[UserRole]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                _SELECT_USER_ROLE + " WHERE ur.user_role_id = $1",
                user_role_id,
            )

        return _user_role(row) if row is not None else None

    async def find_by_ids(self, user_id: int, role_id: int) -> Optional[UserRole]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                _SELECT_USER_ROLE + " WHERE u.user_id = $1 AND r.role_id = $2",
                user_id,
                role_id,
            )

        return _user_role(row) if row is not None else None

    async def next_id(self) -> int:
        pool = await get_pool()

        async with pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT COALESCE(MAX(user_role_id) + 1, 1) FROM user_roles"
            )

    async def save(self, user_role_id: int, user_id: int, role_id: int) -> int:
        """Grant a role to a user.

        Returns:
            Rows inserted: 1, or 0 if the user already holds the role or the
            id is taken
        """
        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                status = await conn.execute(
                    "INSERT INTO user_roles (user_role_id, user_id, role_id) VALUES ($1, $2, $3)",
                    user_role_id,
                    user_id,
                    role_id,
                )
        except asyncpg.UniqueViolationError:
            logger.warning("user_role_already_exists", user_id=user_id, role_id=role_id)
            return 0

        logger.info("user_role_granted", user_id=user_id, role_id=role_id)
        return rows_affected(status)

    async def delete_by_ids(self, user_id: int, role_id: int) -> int:
        pool = await get_pool()

        async with pool.acquire() as conn:
            status = await conn.execute(
                "DELETE FROM user_roles WHERE user_id = $1 AND role_id = $2",
                user_id,
                role_id,
            )

        logger.info("user_role_revoked", user_id=user_id, role_id=role_id)
        return rows_affected(status)

    async def get_roles(self, user_id: int) -> list[Role]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT r.role_id, r.role_name
                FROM roles r
                JOIN user_roles ur ON r.role_id = ur.role_id
                WHERE ur.user_id = $1
                ORDER BY r.role_id
                """,
                user_id,
            )

        return [role_from_row(row) for row in rows]

    async def get_user_roles(self, username: str, email: str) -> Optional[UserRoles]:
        """Return a user and its roles, matched by exact username and email."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                _SELECT_USER_ROLE + " WHERE u.username = $1 AND u.email = $2 ORDER BY r.role_id",
                username,
                email,
            )

        if not rows:
            return None
        return UserRoles(user=user_from_row(rows[0]), roles=[role_from_row(row) for row in rows])

    async def get_sorted_page_with_filters(
        self,
        offset: int,
        size: int,
        sort_by: str,
        sort_order: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
        role_name: Optional[str] = None,
    ) -> list[UserRole]:
        """List assignments filtered by username, email and role substrings.

        Raises:
            InvalidSortParameterError: Before any query runs, if the sort
                parameters are not allow-listed
        """
        column, direction = validate_sort_parameters(
            sort_by, sort_order, USER_ROLE_SORT_COLUMNS
        )

        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                _SELECT_USER_ROLE
                + f"""
                WHERE u.username LIKE $1 AND u.email LIKE $2 AND r.role_name LIKE $3
                ORDER BY {column} {direction}
                LIMIT $4 OFFSET $5
                """,
                like_param(username),
                like_param(email),
                like_param(role_name),
                size,
                offset,
            )

        return [_user_role(row) for row in rows]

    async def count_with_filters(
        self,
        username: Optional[str] = None,
        email: Optional[str] = None,
        role_name: Optional[str] = None,
    ) -> int:
        pool = await get_pool()

        async with pool.acquire() as conn:
            return await conn.fetchval(
                """
                SELECT COUNT(*)
                FROM users u
                JOIN user_roles ur ON u.user_id = ur.user_id
                JOIN roles r ON ur.role_id = r.role_id
                WHERE u.username LIKE $1 AND u.email LIKE $2 AND r.role_name LIKE $3
                """,
                like_param(username),
                like_param(email),
                like_param(role_name),
            )
