"""Issuing and validating signed JWT credentials."""

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

import jwt
import structlog

from authserver.config import get_settings
from authserver.exceptions import InvalidTokenError
from authserver.models.user import User

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"


class TokenIssuer:
    """Create and verify signed, time-bound tokens carrying identity and roles.

    Tokens are HS256 JWTs. The subject is ``"<user_id>,<email>"``; the
    ``username`` and ``roles`` claims carry the login and role names, and
    ``type`` tells access tokens from refresh tokens.
    Nothing here touches the database.
    """

    def __init__(self):
        self.settings = get_settings()

    def generate_access_token(self, user: User, roles: Iterable[str]) -> str:
        """Create a signed access token for a user."""
        return self._encode(
            user,
            roles,
            timedelta(seconds=self.settings.jwt_access_expiration_seconds),
            token_type="access",
        )

    def generate_refresh_token(self, user: User, roles: Iterable[str]) -> str:
        """Create a signed refresh token for a user."""
        return self._encode(
            user,
            roles,
            timedelta(seconds=self.settings.jwt_refresh_expiration_seconds),
            token_type="refresh",
        )

    def _encode(
        self, user: User, roles: Iterable[str], lifetime: timedelta, token_type: str
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": f"{user.id},{user.email}",
            "username": user.username,
            "roles": sorted(set(roles)),
            "type": token_type,
            "iss": self.settings.jwt_issuer,
            "iat": now,
            "exp": now + lifetime,
        }
        token = jwt.encode(payload, self.settings.jwt_secret, algorithm=JWT_ALGORITHM)
        logger.debug(
            "jwt_issued",
            user_id=user.id,
            token_type=token_type,
            expires_seconds=int(lifetime.total_seconds()),
        )
        return token

    def validate(self, token: Any) -> bool:
        """Check signature, issuer and expiry of a token.

        Never raises: malformed, unsigned, tampered, expired or empty input
        yields False.
        """
        if not isinstance(token, str) or not token.strip():
            logger.warning("jwt_validation_failed", reason="empty")
            return False
        try:
            self._decode(token)
            return True
        except jwt.ExpiredSignatureError:
            logger.warning("jwt_validation_failed", reason="expired")
        except jwt.InvalidTokenError as e:
            logger.warning("jwt_validation_failed", reason="invalid", error=str(e))
        return False

    def parse_claims(self, token: str) -> dict:
        """Decode a token and return its claims.

        Raises:
            InvalidTokenError: If the token does not validate
        """
        try:
            return self._decode(token)
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

    def get_identity_id(self, token: str) -> int:
        """Return the user id embedded in a validated token."""
        subject = self.parse_claims(token)["sub"]
        try:
            return int(subject.split(",", 1)[0])
        except ValueError as e:
            raise InvalidTokenError(f"Invalid token subject: {subject}") from e

    def get_expiration(self, token: str) -> datetime:
        """Return the expiry claim of a validated token as an aware UTC datetime."""
        exp = self.parse_claims(token)["exp"]
        return datetime.fromtimestamp(exp, tz=timezone.utc)

    def _decode(self, token: str) -> dict:
        return jwt.decode(
            token,
            self.settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            issuer=self.settings.jwt_issuer,
            options={"require": ["sub", "exp", "iat"]},
        )
