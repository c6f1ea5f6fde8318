"""Credential token models."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from authserver.models.user import User


class TokenKind(str, Enum):
    """The three kinds of persisted credential tokens."""

    ACCESS = "access"
    REFRESH = "refresh"
    CONFIRMATION = "confirmation"

    @property
    def table(self) -> str:
        return f"{self.value}_tokens"

    @property
    def validity(self) -> timedelta:
        """Server-side validity window applied when a token row is saved."""
        return TOKEN_VALIDITY[self]


TOKEN_VALIDITY = {
    TokenKind.ACCESS: timedelta(days=1),
    TokenKind.REFRESH: timedelta(days=1),
    TokenKind.CONFIRMATION: timedelta(hours=1),
}


class TokenRecord(BaseModel):
    """A persisted credential token row joined with its owner."""

    token_id: int
    user: User
    token: str
    expiration_date: datetime
    kind: TokenKind

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """A token is valid while its expiration date lies in the future."""
        now = now or datetime.now(timezone.utc)
        return self.expiration_date > now


class TokenPair(BaseModel):
    """Access and refresh tokens issued together at login."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenSummary(BaseModel):
    """Listing view of a stored token; the token value itself is omitted."""

    token_id: int
    kind: TokenKind
    user_id: int
    username: str
    email: str
    expiration_date: datetime
    valid: bool

    @classmethod
    def from_record(cls, record: TokenRecord) -> "TokenSummary":
        return cls(
            token_id=record.token_id,
            kind=record.kind,
            user_id=record.user.id,
            username=record.user.username,
            email=record.user.email,
            expiration_date=record.expiration_date,
            valid=record.is_valid(),
        )
