"""Authentication service: credential login and access token refresh."""

from typing import Optional

import structlog

from authserver.config import get_settings
from authserver.exceptions import AuthenticationError
from authserver.models.token import TokenPair
from authserver.models.user import User
from authserver.services.jwt_service import TokenIssuer
from authserver.services.password_service import PasswordEncoder
from authserver.services.token_store import AccessTokenStore, RefreshTokenStore, TokenStore
from authserver.services.user_role_service import UserRoleService
from authserver.services.user_service import UserService

logger = structlog.get_logger(__name__)


class AuthService:
    """Service for issuing stored access and refresh tokens."""

    def __init__(
        self,
        users: Optional[UserService] = None,
        user_roles: Optional[UserRoleService] = None,
        access_tokens: Optional[AccessTokenStore] = None,
        refresh_tokens: Optional[RefreshTokenStore] = None,
        issuer: Optional[TokenIssuer] = None,
        encoder: Optional[PasswordEncoder] = None,
    ):
        self.settings = get_settings()
        self.users = users or UserService()
        self.user_roles = user_roles or UserRoleService()
        self.access_tokens = access_tokens or AccessTokenStore()
        self.refresh_tokens = refresh_tokens or RefreshTokenStore()
        self.issuer = issuer or TokenIssuer()
        self.encoder = encoder or PasswordEncoder()

    async def login(self, login: str, password: str) -> TokenPair:
        """Authenticate by username or email and issue a token pair.

        Args:
            login: Username or email address
            password: Plain-text password

        Returns:
            Newly issued and stored access and refresh tokens

        Raises:
            AuthenticationError: If the credentials are wrong or the account
                is blocked or not yet verified
        """
        user = await self.users.find_by_username(login)
        if user is None:
            user = await self.users.find_by_email(login)

        if user is None or not self.encoder.matches(password, user.password):
            logger.warning("login_failed", reason="invalid_credentials")
            raise AuthenticationError("Invalid username or password")
        if user.blocked:
            logger.warning("login_failed", reason="blocked", user_id=user.id)
            raise AuthenticationError("Account is blocked")
        if not user.verified:
            logger.warning("login_failed", reason="not_verified", user_id=user.id)
            raise AuthenticationError("Account is not verified")

        roles = await self._role_names(user)
        access_token = self.issuer.generate_access_token(user, roles)
        refresh_token = self.issuer.generate_refresh_token(user, roles)
        await self._store(self.access_tokens, user, access_token)
        await self._store(self.refresh_tokens, user, refresh_token)

        logger.info("user_logged_in", user_id=user.id, roles=roles)
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.settings.jwt_access_expiration_seconds,
        )

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Issue a new access token for a stored, unexpired refresh token.

        Raises:
            AuthenticationError: If the token does not validate, is not
                stored, has expired or belongs to a blocked account
        """
        if not self.issuer.validate(refresh_token):
            raise AuthenticationError("Invalid refresh token")

        record = await self.refresh_tokens.find_by_token(refresh_token)
        if record is None:
            logger.warning("refresh_failed", reason="not_stored")
            raise AuthenticationError("Unknown refresh token")
        if not record.is_valid():
            logger.warning("refresh_failed", reason="expired", token_id=record.token_id)
            raise AuthenticationError("Refresh token has expired")

        user = record.user
        if user.blocked:
            logger.warning("refresh_failed", reason="blocked", user_id=user.id)
            raise AuthenticationError("Account is blocked")

        roles = await self._role_names(user)
        access_token = self.issuer.generate_access_token(user, roles)
        await self._store(self.access_tokens, user, access_token)

        logger.info("access_token_refreshed", user_id=user.id, refresh_token_id=record.token_id)
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.settings.jwt_access_expiration_seconds,
        )

    async def _role_names(self, user: User) -> list[str]:
        return [role.name for role in await self.user_roles.get_roles(user.id)]

    async def _store(self, store: TokenStore, user: User, token: str) -> int:
        token_id = await store.allocate_and_save(user.id, token)
        if token_id is None:
            raise RuntimeError(f"Could not store {store.kind.value} token for user {user.id}")
        return token_id
