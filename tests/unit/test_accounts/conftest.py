"""In-memory stores for account process tests.

Each fake subclasses the real asyncpg-backed store so the registry resolves
it by type, and overrides only the queries the account flows issue.
"""

from datetime import datetime, timezone
from typing import Optional

import bcrypt
import pytest

from authserver.models.token import TokenRecord
from authserver.models.user import Role, User, UserRoles
from authserver.services.email_service import EmailService
from authserver.services.password_service import PasswordEncoder
from authserver.services.token_store import (
    AccessTokenStore,
    ConfirmationTokenStore,
    RefreshTokenStore,
)
from authserver.services.user_role_service import UserRoleService
from authserver.services.user_service import UserService


class FastEncoder(PasswordEncoder):
    """bcrypt with the minimum cost factor."""

    def encode(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


class InMemoryUsers(UserService):
    def __init__(self):
        self.rows: dict[int, User] = {}

    def add(self, user: User) -> User:
        self.rows[user.id] = user
        return user

    async def find_by_id(self, user_id: int) -> Optional[User]:
        return self.rows.get(user_id)

    async def find_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.rows.values() if u.email.lower() == email.lower()), None)

    async def find_by_username(self, username: str) -> Optional[User]:
        return next(
            (u for u in self.rows.values() if u.username.lower() == username.lower()), None
        )

    async def is_email_exist(self, email: str) -> bool:
        return await self.find_by_email(email) is not None

    async def is_login_exist(self, username: str) -> bool:
        return await self.find_by_username(username) is not None

    async def is_valid_id(self, user_id: int) -> bool:
        return user_id in self.rows

    async def next_id(self) -> int:
        return max(self.rows, default=0) + 1

    async def save(self, user: User) -> int:
        if user.id in self.rows:
            return 0
        self.rows[user.id] = user.model_copy(update={"created_at": datetime.now(timezone.utc)})
        return 1

    async def update_status(self, user_id: int, verified: bool, blocked: bool) -> int:
        if user_id not in self.rows:
            return 0
        self.rows[user_id] = self.rows[user_id].model_copy(
            update={"verified": verified, "blocked": blocked}
        )
        return 1

    async def update_password(self, user_id: int, password_hash: str) -> int:
        if user_id not in self.rows:
            return 0
        self.rows[user_id] = self.rows[user_id].model_copy(update={"password": password_hash})
        return 1


class InMemoryUserRoles(UserRoleService):
    ROLES = {1: Role(id=1, name="ROLE_USER"), 2: Role(id=2, name="ROLE_ADMIN")}

    def __init__(self, users: InMemoryUsers):
        self.users = users
        self.rows: dict[int, tuple[int, int]] = {}

    async def next_id(self) -> int:
        return max(self.rows, default=0) + 1

    async def save(self, user_role_id: int, user_id: int, role_id: int) -> int:
        if user_role_id in self.rows or (user_id, role_id) in self.rows.values():
            return 0
        self.rows[user_role_id] = (user_id, role_id)
        return 1

    async def get_roles(self, user_id: int) -> list[Role]:
        return [self.ROLES[r] for (u, r) in sorted(self.rows.values()) if u == user_id]

    async def get_user_roles(self, username: str, email: str) -> Optional[UserRoles]:
        user = next(
            (u for u in self.users.rows.values() if u.username == username and u.email == email),
            None,
        )
        if user is None:
            return None
        return UserRoles(user=user, roles=await self.get_roles(user.id))


class InMemoryTokens:
    """Token rows keyed by id, expiring one validity window after save."""

    def __init__(self, users: InMemoryUsers):
        self.users = users
        self.rows: dict[int, TokenRecord] = {}

    async def next_id(self) -> int:
        return max(self.rows, default=0) + 1

    async def save(self, token_id: int, user_id: int, token: str) -> int:
        if token_id in self.rows:
            return 0
        self.rows[token_id] = TokenRecord(
            token_id=token_id,
            user=self.users.rows[user_id],
            token=token,
            expiration_date=datetime.now(timezone.utc) + self.kind.validity,
            kind=self.kind,
        )
        return 1

    async def find_by_id(self, token_id: int) -> Optional[TokenRecord]:
        record = self.rows.get(token_id)
        if record is None:
            return None
        return record.model_copy(update={"user": self.users.rows[record.user.id]})

    async def find_by_token(self, token: str) -> Optional[TokenRecord]:
        matches = [r for r in self.rows.values() if r.token == token]
        if not matches:
            return None
        return await self.find_by_id(max(r.token_id for r in matches))

    async def set_expired(self, token_id: int) -> int:
        if token_id not in self.rows:
            return 0
        self.rows[token_id] = self.rows[token_id].model_copy(
            update={"expiration_date": datetime.now(timezone.utc)}
        )
        return 1

    def expire(self, token_id: int) -> None:
        """Move a token's expiry into the past, as if its window elapsed."""
        record = self.rows[token_id]
        self.rows[token_id] = record.model_copy(
            update={"expiration_date": datetime(2000, 1, 1, tzinfo=timezone.utc)}
        )


class InMemoryConfirmationTokens(InMemoryTokens, ConfirmationTokenStore):
    pass


class InMemoryAccessTokens(InMemoryTokens, AccessTokenStore):
    pass


class InMemoryRefreshTokens(InMemoryTokens, RefreshTokenStore):
    pass


class RecordingEmailService(EmailService):
    """Keeps sent mails instead of delivering them."""

    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.sent: list[tuple[str, str, str]] = []

    async def send_email(self, to_email: str, subject: str, text: str) -> bool:
        if not self.deliver:
            return False
        self.sent.append((to_email, subject, text))
        return True


@pytest.fixture
def encoder():
    return FastEncoder()


@pytest.fixture
def users():
    return InMemoryUsers()


@pytest.fixture
def user_roles(users):
    return InMemoryUserRoles(users)


@pytest.fixture
def confirmation_tokens(users):
    return InMemoryConfirmationTokens(users)


@pytest.fixture
def access_tokens(users):
    return InMemoryAccessTokens(users)


@pytest.fixture
def refresh_tokens(users):
    return InMemoryRefreshTokens(users)


@pytest.fixture
def mailer():
    return RecordingEmailService()


@pytest.fixture
def stores(users, user_roles, confirmation_tokens, access_tokens, refresh_tokens):
    return [users, user_roles, confirmation_tokens, access_tokens, refresh_tokens]


@pytest.fixture
def make_user(users, encoder):
    """Insert a user directly into the in-memory store."""

    def _make(
        user_id=1,
        username="alice",
        email="alice@example.com",
        password="Secret123!",
        verified=True,
        blocked=False,
    ) -> User:
        return users.add(
            User(
                id=user_id,
                username=username,
                email=email,
                password=encoder.encode(password),
                verified=verified,
                blocked=blocked,
            )
        )

    return _make


@pytest.fixture
def failing_mailer():
    return RecordingEmailService(deliver=False)
