"""Account process requests.

Each account flow accepts exactly one request variant. The variants form a
tagged union discriminated by ``kind`` so a JSON body can be parsed straight
into the right model.
"""

import re
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]+$")

# bcrypt only accepts this many bytes of input
MAX_PASSWORD_BYTES = 72


def _check_email(value: str) -> str:
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Email address is not valid")
    return value


def _check_username(value: str) -> str:
    if not USERNAME_PATTERN.match(value):
        raise ValueError(
            "Username must contain only alphanumeric characters, "
            "underscores, hyphens or dots"
        )
    return value


def _check_password(value: str) -> str:
    if not value.strip():
        raise ValueError("Password cannot be empty or whitespace only")
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return value


class RegistrationRequest(BaseModel):
    """New account registration.

    Attributes:
        username: Unique login (3-100 chars, alphanumeric + underscore/hyphen/dot)
        email: Unique email address
        password: Raw password (min 8 chars, at most 72 bytes as UTF-8),
            encoded before storage
    """

    kind: Literal["registration"] = "registration"
    username: str = Field(..., min_length=3, max_length=100)
    email: str = Field(..., max_length=320)
    password: str = Field(..., min_length=8)

    @field_validator("username")
    @classmethod
    def username_valid_chars(cls, v: str) -> str:
        """Ensure username contains only alphanumeric, underscore, hyphen or dot."""
        return _check_username(v)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        return _check_password(v)


class ConfirmationRequest(BaseModel):
    """Confirmation of an account with a mailed one-time token."""

    kind: Literal["confirmation"] = "confirmation"
    token_id: int = Field(..., ge=1)
    token: str = Field(..., min_length=1)


class UnlockRequest(BaseModel):
    """Request a fresh confirmation mail for a blocked or unverified account."""

    kind: Literal["unlock"] = "unlock"
    user_id: int = Field(..., ge=1)


class ResetPasswordRequest(BaseModel):
    """Replace a forgotten password with a generated one."""

    kind: Literal["reset_password"] = "reset_password"
    email: str = Field(..., max_length=320)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)


class ChangePasswordRequest(BaseModel):
    """Change a password, proving knowledge of the current one."""

    kind: Literal["change_password"] = "change_password"
    email: str = Field(..., max_length=320)
    actual_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("new_password")
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        return _check_password(v)


AccountRequest = Annotated[
    Union[
        RegistrationRequest,
        ConfirmationRequest,
        UnlockRequest,
        ResetPasswordRequest,
        ChangePasswordRequest,
    ],
    Field(discriminator="kind"),
]


class LoginRequest(BaseModel):
    """Credentials for token issuance. ``login`` is a username or an email."""

    login: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    """Exchange a refresh token for a new access token."""

    refresh_token: str
