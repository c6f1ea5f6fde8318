"""Identity, role and role-assignment models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    """A registered account.

    ``password`` holds the encoded hash, never the raw password.
    """

    id: int
    username: str
    email: str
    password: str
    verified: bool = False
    blocked: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Role(BaseModel):
    """A named role that can be granted to users."""

    id: int
    name: str


class UserRole(BaseModel):
    """A single user-to-role assignment."""

    id: int
    user: User
    role: Role


class UserRoles(BaseModel):
    """A user together with every role granted to it."""

    user: User
    roles: list[Role]

    @property
    def role_names(self) -> list[str]:
        return [role.name for role in self.roles]


class UserSummary(BaseModel):
    """Public view of a user, without the password hash."""

    id: int
    username: str
    email: str
    verified: bool
    blocked: bool
    created_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            verified=user.verified,
            blocked=user.blocked,
            created_at=user.created_at,
        )


class UserRoleSummary(BaseModel):
    """Public view of a role assignment."""

    id: int
    user: UserSummary
    role: Role

    @classmethod
    def from_user_role(cls, user_role: UserRole) -> "UserRoleSummary":
        return cls(
            id=user_role.id,
            user=UserSummary.from_user(user_role.user),
            role=user_role.role,
        )
