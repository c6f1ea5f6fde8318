"""Unit tests for RoleService."""

from unittest.mock import AsyncMock, patch

import asyncpg
import pytest

from authserver.exceptions import InvalidSortParameterError
from authserver.models.user import Role
from authserver.services.role_service import RoleService


class TestRoleService:
    async def test_find_all_filters_by_name(self, mock_pool):
        pool, conn = mock_pool
        conn.fetch.return_value = [{"role_id": 1, "role_name": "ROLE_USER"}]

        with patch("authserver.services.role_service.get_pool", new_callable=AsyncMock) as mock_get_pool:
            mock_get_pool.return_value = pool
            roles = await RoleService().find_all("USER")

        assert roles == [Role(id=1, name="ROLE_USER")]
        assert conn.fetch.call_args[0][1] == "%USER%"

    async def test_save(self, mock_pool):
        pool, conn = mock_pool

        with patch("authserver.services.role_service.get_pool", new_callable=AsyncMock) as mock_get_pool:
            mock_get_pool.return_value = pool
            assert await RoleService().save(Role(id=3, name="ROLE_AUDITOR")) == 1

        assert conn.execute.call_args[0][1:] == (3, "ROLE_AUDITOR")

    async def test_save_duplicate_name_returns_zero(self, mock_pool):
        pool, conn = mock_pool
        conn.execute.side_effect = asyncpg.UniqueViolationError("roles_role_name_unique")

        with patch("authserver.services.role_service.get_pool", new_callable=AsyncMock) as mock_get_pool:
            mock_get_pool.return_value = pool
            assert await RoleService().save(Role(id=3, name="ROLE_USER")) == 0

    async def test_sorted_page(self, mock_pool):
        pool, conn = mock_pool

        with patch("authserver.services.role_service.get_pool", new_callable=AsyncMock) as mock_get_pool:
            mock_get_pool.return_value = pool
            await RoleService().get_sorted_page_with_filters(0, 5, "role_name", "ASC")

        assert "ORDER BY role_name ASC" in conn.fetch.call_args[0][0]

    async def test_rejects_sort_before_query(self):
        with patch("authserver.services.role_service.get_pool", new_callable=AsyncMock) as mock_get_pool:
            with pytest.raises(InvalidSortParameterError):
                await RoleService().get_sorted_page_with_filters(0, 5, "u.user_id", "ASC")

        mock_get_pool.assert_not_called()

    async def test_rename_to_taken_name_returns_zero(self, mock_pool):
        pool, conn = mock_pool
        conn.execute.side_effect = asyncpg.UniqueViolationError("roles_role_name_unique")

        with patch("authserver.services.role_service.get_pool", new_callable=AsyncMock) as mock_get_pool:
            mock_get_pool.return_value = pool
            assert await RoleService().update(3, "ROLE_USER") == 0
