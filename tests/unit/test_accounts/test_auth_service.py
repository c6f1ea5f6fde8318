"""Unit tests for login and token refresh."""

from unittest.mock import patch

import pytest

from authserver.exceptions import AuthenticationError
from authserver.services.auth_service import AuthService
from authserver.services.jwt_service import TokenIssuer


@pytest.fixture
def issuer(mock_settings):
    with patch("authserver.services.jwt_service.get_settings", return_value=mock_settings):
        yield TokenIssuer()


@pytest.fixture
def auth(users, user_roles, access_tokens, refresh_tokens, issuer, encoder):
    return AuthService(
        users=users,
        user_roles=user_roles,
        access_tokens=access_tokens,
        refresh_tokens=refresh_tokens,
        issuer=issuer,
        encoder=encoder,
    )


@pytest.fixture
async def alice(make_user, user_roles):
    user = make_user()
    await user_roles.save(1, user.id, 1)
    return user


class TestLogin:
    async def test_login_by_username(self, auth, alice, issuer):
        pair = await auth.login("alice", "Secret123!")

        assert pair.token_type == "bearer"
        assert issuer.validate(pair.access_token)
        assert issuer.get_identity_id(pair.access_token) == alice.id
        assert issuer.parse_claims(pair.access_token)["roles"] == ["ROLE_USER"]

    async def test_login_by_email(self, auth, alice):
        pair = await auth.login("alice@example.com", "Secret123!")
        assert pair.access_token

    async def test_tokens_are_stored(self, auth, alice, access_tokens, refresh_tokens):
        pair = await auth.login("alice", "Secret123!")

        (access,) = access_tokens.rows.values()
        (refresh,) = refresh_tokens.rows.values()
        assert access.token == pair.access_token
        assert refresh.token == pair.refresh_token
        assert access.user.id == alice.id

    async def test_access_and_refresh_differ(self, auth, alice, issuer):
        pair = await auth.login("alice", "Secret123!")

        assert pair.access_token != pair.refresh_token
        assert issuer.parse_claims(pair.refresh_token)["type"] == "refresh"

    async def test_unknown_login(self, auth, access_tokens):
        with pytest.raises(AuthenticationError):
            await auth.login("ghost", "Secret123!")
        assert access_tokens.rows == {}

    async def test_wrong_password(self, auth, alice, access_tokens):
        with pytest.raises(AuthenticationError):
            await auth.login("alice", "wrong")
        assert access_tokens.rows == {}

    async def test_blocked_account(self, auth, make_user):
        make_user(blocked=True)
        with pytest.raises(AuthenticationError, match="blocked"):
            await auth.login("alice", "Secret123!")

    async def test_unverified_account(self, auth, make_user):
        make_user(verified=False)
        with pytest.raises(AuthenticationError, match="not verified"):
            await auth.login("alice", "Secret123!")


class TestRefresh:
    async def test_refresh_issues_new_access_token(self, auth, alice, access_tokens):
        pair = await auth.login("alice", "Secret123!")

        refreshed = await auth.refresh(pair.refresh_token)

        assert refreshed.refresh_token == pair.refresh_token
        assert len(access_tokens.rows) == 2

    async def test_invalid_jwt(self, auth):
        with pytest.raises(AuthenticationError):
            await auth.refresh("not-a-jwt")

    async def test_unstored_token(self, auth, alice, issuer):
        token = issuer.generate_refresh_token(alice, ["ROLE_USER"])
        with pytest.raises(AuthenticationError, match="Unknown"):
            await auth.refresh(token)

    async def test_access_token_is_not_a_refresh_token(self, auth, alice):
        pair = await auth.login("alice", "Secret123!")
        with pytest.raises(AuthenticationError, match="Unknown"):
            await auth.refresh(pair.access_token)

    async def test_expired_row(self, auth, alice, refresh_tokens):
        pair = await auth.login("alice", "Secret123!")
        (record,) = refresh_tokens.rows.values()
        refresh_tokens.expire(record.token_id)

        with pytest.raises(AuthenticationError, match="expired"):
            await auth.refresh(pair.refresh_token)

    async def test_blocked_after_login(self, auth, alice, users):
        pair = await auth.login("alice", "Secret123!")
        await users.update_status(alice.id, True, True)

        with pytest.raises(AuthenticationError, match="blocked"):
            await auth.refresh(pair.refresh_token)
