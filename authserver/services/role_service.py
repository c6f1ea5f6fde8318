"""Role persistence."""

from typing import Optional

import asyncpg
import structlog

from authserver.database import get_pool
from authserver.models.user import Role
from authserver.services.sorting import ROLE_SORT_COLUMNS, like_param, validate_sort_parameters
from authserver.services.store import Store, role_from_row, rows_affected

logger = structlog.get_logger(__name__)


class RoleService(Store):
    """Store for roles."""

    async def find_by_id(self, role_id: int) -> Optional[Role]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT role_id, role_name FROM roles WHERE role_id = $1",
                role_id,
            )

        return role_from_row(row) if row is not None else None

    async def find_all(self, role_name: Optional[str] = None) -> list[Role]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT role_id, role_name FROM roles WHERE role_name LIKE $1 ORDER BY role_id",
                like_param(role_name),
            )

        return [role_from_row(row) for row in rows]

    async def next_id(self) -> int:
        pool = await get_pool()

        async with pool.acquire() as conn:
            return await conn.fetchval("SELECT COALESCE(MAX(role_id) + 1, 1) FROM roles")

    async def save(self, role: Role) -> int:
        """Insert a role; 0 if the id or name is already taken."""
        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                status = await conn.execute(
                    "INSERT INTO roles (role_id, role_name) VALUES ($1, $2)",
                    role.id,
                    role.name,
                )
        except asyncpg.UniqueViolationError:
            logger.warning("role_already_exists", role_id=role.id, role_name=role.name)
            return 0

        logger.info("role_created", role_id=role.id, role_name=role.name)
        return rows_affected(status)

    async def update(self, role_id: int, role_name: str) -> int:
        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                status = await conn.execute(
                    "UPDATE roles SET role_name = $1 WHERE role_id = $2",
                    role_name,
                    role_id,
                )
        except asyncpg.UniqueViolationError:
            logger.warning("role_name_taken", role_id=role_id, role_name=role_name)
            return 0

        logger.info("role_updated", role_id=role_id, role_name=role_name)
        return rows_affected(status)

    async def delete_by_id(self, role_id: int) -> int:
        pool = await get_pool()

        async with pool.acquire() as conn:
            status = await conn.execute("DELETE FROM roles WHERE role_id = $1", role_id)

        logger.info("role_deleted", role_id=role_id)
        return rows_affected(status)

    async def get_sorted_page_with_filters(
        self,
        offset: int,
        size: int,
        sort_by: str,
        sort_order: str,
        role_name: Optional[str] = None,
    ) -> list[Role]:
        """List roles whose name contains ``role_name``.

        Raises:
            InvalidSortParameterError: Before any query runs, if the sort
                parameters are not allow-listed
        """
        column, direction = validate_sort_parameters(sort_by, sort_order, ROLE_SORT_COLUMNS)

        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT role_id, role_name
                FROM roles
                WHERE role_name LIKE $1
                ORDER BY {column} {direction}
                LIMIT $2 OFFSET $3
                """,
                like_param(role_name),
                size,
                offset,
            )

        return [role_from_row(row) for row in rows]

    async def count_with_filters(self, role_name: Optional[str] = None) -> int:
        pool = await get_pool()

        async with pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT COUNT(*) FROM roles WHERE role_name LIKE $1",
                like_param(role_name),
            )
