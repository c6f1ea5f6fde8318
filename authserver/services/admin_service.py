"""Administrative management of users, roles and role assignments.

Each service wraps one store with paged listings, lookups and checked
writes. Public sort keys are mapped onto allow-listed columns here; the
stores validate the mapped column again before building SQL.
"""

from typing import Optional

import structlog

from authserver.exceptions import ConflictError
from authserver.models.page import Page
from authserver.models.user import Role, User, UserRole
from authserver.services.password_service import PasswordEncoder
from authserver.services.role_service import RoleService
from authserver.services.user_role_service import UserRoleService
from authserver.services.user_service import UserService

logger = structlog.get_logger(__name__)

USER_SORT_KEYS = {
    "username": "username",
    "email": "email",
    "created": "created_at",
}
ROLE_SORT_KEYS = {
    "rolename": "role_name",
    "role_name": "role_name",
}
USER_ROLE_SORT_KEYS = {
    "username": "u.username",
    "email": "u.email",
    "rolename": "r.role_name",
    "role_name": "r.role_name",
}


def _column(keys: dict[str, str], sort_by: Optional[str], default: str) -> str:
    return keys.get((sort_by or "").lower(), default)


class UserAdminService:
    """Create, edit, block and delete accounts outside the account flows."""

    def __init__(
        self,
        users: Optional[UserService] = None,
        encoder: Optional[PasswordEncoder] = None,
    ):
        self.users = users or UserService()
        self.encoder = encoder or PasswordEncoder()

    async def get(self, user_id: int) -> Optional[User]:
        return await self.users.find_by_id(user_id)

    async def get_page(
        self,
        page: int,
        size: int,
        sort_by: Optional[str] = None,
        sort_order: str = "ASC",
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Page[User]:
        items = await self.users.get_sorted_page_with_filters(
            page * size,
            size,
            _column(USER_SORT_KEYS, sort_by, "user_id"),
            sort_order,
            username,
            email,
        )
        total = await self.users.count_with_filters(username, email)
        return Page[User](items=items, total=total, page=page, size=size)

    async def save(
        self,
        username: str,
        email: str,
        password: str,
        verified: bool = False,
        blocked: bool = False,
    ) -> User:
        """Insert an account with an encoded password and no roles.

        Raises:
            ConflictError: If the username or email is already taken
        """
        if await self.users.is_email_exist(email):
            raise ConflictError("Email already registered")
        if await self.users.is_login_exist(username):
            raise ConflictError(f"Username already taken: {username}")

        user_id = await self.users.next_id()
        saved = await self.users.save(
            User(
                id=user_id,
                username=username,
                email=email,
                password=self.encoder.encode(password),
                verified=verified,
                blocked=blocked,
            )
        )
        if not saved:
            raise ConflictError("Account could not be created, try again")
        return await self.users.find_by_id(user_id)

    async def update(self, user_id: int, username: str, email: str) -> Optional[User]:
        """Rename an account or change its email.

        Returns:
            The updated user, or None if it does not exist

        Raises:
            ConflictError: If the new username or email belongs to another account
        """
        if await self.users.find_by_id(user_id) is None:
            return None
        if not await self.users.update(user_id, username, email):
            raise ConflictError("Username or email already in use")
        return await self.users.find_by_id(user_id)

    async def set_status(self, user_id: int, verified: bool, blocked: bool) -> Optional[User]:
        if not await self.users.update_status(user_id, verified, blocked):
            return None
        return await self.users.find_by_id(user_id)

    async def delete(self, user_id: int) -> bool:
        return await self.users.delete_by_id(user_id) > 0


class RoleAdminService:
    def __init__(self, roles: Optional[RoleService] = None):
        self.roles = roles or RoleService()

    async def get(self, role_id: int) -> Optional[Role]:
        return await self.roles.find_by_id(role_id)

    async def get_list(self, role_name: Optional[str] = None) -> list[Role]:
        """Every role whose name contains ``role_name``, by id."""
        return await self.roles.find_all(role_name)

    async def get_page(
        self,
        page: int,
        size: int,
        sort_by: Optional[str] = None,
        sort_order: str = "ASC",
        role_name: Optional[str] = None,
    ) -> Page[Role]:
        items = await self.roles.get_sorted_page_with_filters(
            page * size,
            size,
            _column(ROLE_SORT_KEYS, sort_by, "role_id"),
            sort_order,
            role_name,
        )
        total = await self.roles.count_with_filters(role_name)
        return Page[Role](items=items, total=total, page=page, size=size)

    async def save(self, name: str) -> Role:
        """Create a role under the next free id.

        Raises:
            ConflictError: If a role with that name exists
        """
        role_id = await self.roles.next_id()
        if not await self.roles.save(Role(id=role_id, name=name)):
            raise ConflictError(f"Role already exists: {name}")
        return await self.roles.find_by_id(role_id)

    async def update(self, role_id: int, name: str) -> Optional[Role]:
        """Rename a role.

        Raises:
            ConflictError: If another role already has that name
        """
        if await self.roles.find_by_id(role_id) is None:
            return None
        if not await self.roles.update(role_id, name):
            raise ConflictError(f"Role already exists: {name}")
        return await self.roles.find_by_id(role_id)

    async def delete(self, role_id: int) -> bool:
        return await self.roles.delete_by_id(role_id) > 0


class UserRoleAdminService:
    """Grant and revoke roles."""

    def __init__(
        self,
        user_roles: Optional[UserRoleService] = None,
        users: Optional[UserService] = None,
        roles: Optional[RoleService] = None,
    ):
        self.user_roles = user_roles or UserRoleService()
        self.users = users or UserService()
        self.roles = roles or RoleService()

    async def get(self, user_role_id: int) -> Optional[UserRole]:
        return await self.user_roles.find_by_id(user_role_id)

    async def get_page(
        self,
        page: int,
        size: int,
        sort_by: Optional[str] = None,
        sort_order: str = "ASC",
        username: Optional[str] = None,
        email: Optional[str] = None,
        role_name: Optional[str] = None,
    ) -> Page[UserRole]:
        items = await self.user_roles.get_sorted_page_with_filters(
            page * size,
            size,
            _column(USER_ROLE_SORT_KEYS, sort_by, "u.user_id"),
            sort_order,
            username,
            email,
            role_name,
        )
        total = await self.user_roles.count_with_filters(username, email, role_name)
        return Page[UserRole](items=items, total=total, page=page, size=size)

    async def save(self, user_id: int, role_id: int) -> Optional[UserRole]:
        """Grant ``role_id`` to ``user_id``.

        Returns:
            The assignment, or None if the user or role does not exist

        Raises:
            ConflictError: If the user already holds the role
        """
        if not await self.users.is_valid_id(user_id) or await self.roles.find_by_id(role_id) is None:
            logger.warning("role_grant_unknown_target", user_id=user_id, role_id=role_id)
            return None

        if not await self.user_roles.save(await self.user_roles.next_id(), user_id, role_id):
            raise ConflictError(f"User {user_id} already holds role {role_id}")
        return await self.user_roles.find_by_ids(user_id, role_id)

    async def delete(self, user_id: int, role_id: int) -> bool:
        if await self.user_roles.find_by_ids(user_id, role_id) is None:
            return False
        return await self.user_roles.delete_by_ids(user_id, role_id) > 0
