"""Request bodies for the administrative user, role and assignment routes."""

from pydantic import BaseModel, Field, field_validator

from authserver.models.request import _check_email, _check_password, _check_username


class UserCreateRequest(BaseModel):
    """An account created by an administrator.

    Same constraints as self-registration. The account starts unverified
    unless ``verified`` is set.
    """

    username: str = Field(..., min_length=3, max_length=100)
    email: str = Field(..., max_length=320)
    password: str = Field(..., min_length=8)
    verified: bool = False
    blocked: bool = False

    @field_validator("username")
    @classmethod
    def username_valid_chars(cls, v: str) -> str:
        return _check_username(v)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def password_valid(cls, v: str) -> str:
        return _check_password(v)


class UserUpdateRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: str = Field(..., max_length=320)

    @field_validator("username")
    @classmethod
    def username_valid_chars(cls, v: str) -> str:
        return _check_username(v)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)


class UserStatusRequest(BaseModel):
    """Set the verified and blocked flags directly."""

    verified: bool
    blocked: bool


class RoleRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, pattern=r"^[A-Z][A-Z0-9_]*$")


class UserRoleRequest(BaseModel):
    """Grant a role to a user."""

    user_id: int = Field(..., ge=1)
    role_id: int = Field(..., ge=1)
