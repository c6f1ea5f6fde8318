"""Check and mutation steps of each account process."""

import pytest

from authserver.models.request import (
    ChangePasswordRequest,
    ConfirmationRequest,
    RegistrationRequest,
    ResetPasswordRequest,
    UnlockRequest,
)
from authserver.models.response import AccountResponseType
from authserver.services.accounts import (
    ChangePasswordProcess,
    ConfirmationProcess,
    RegistrationProcess,
    ResetPasswordProcess,
    StoreRegistry,
    UnlockProcess,
    issue_confirmation_token,
)

R = AccountResponseType


@pytest.fixture
def registry(stores):
    return StoreRegistry(stores)


def _registration(**kwargs) -> RegistrationRequest:
    defaults = {"username": "bob", "email": "bob@example.com", "password": "Passw0rd!"}
    defaults.update(kwargs)
    return RegistrationRequest(**defaults)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

class TestRegistrationProcess:
    @pytest.fixture
    def process(self, registry, mailer, encoder):
        return RegistrationProcess(registry, mailer, encoder, default_role_id=1)

    async def test_unique(self, process):
        assert (await process.check(_registration())).type == R.UNIQUE_LOGIN_AND_EMAIL

    async def test_email_taken_case_insensitive(self, process, make_user):
        make_user(email="bob@example.com", username="someone")
        result = await process.check(_registration(email="BOB@example.com"))
        assert result.type == R.EMAIL_IS_NOT_UNIQUE

    async def test_login_taken(self, process, make_user):
        make_user(username="bob", email="other@example.com")
        assert (await process.check(_registration())).type == R.LOGIN_IS_NOT_UNIQUE

    async def test_email_checked_before_login(self, process, make_user):
        make_user(username="bob", email="bob@example.com")
        assert (await process.check(_registration())).type == R.EMAIL_IS_NOT_UNIQUE

    async def test_wrong_variant(self, process):
        result = await process.check(UnlockRequest(user_id=1))
        assert result.type == R.BAD_REGISTRATION_REQUEST_TYPE
        assert result.success is False

    async def test_save_creates_unverified_user_with_default_role(
        self, process, users, user_roles, encoder
    ):
        user = await process.save(_registration())

        assert user.verified is False
        assert user.blocked is False
        assert user.password != "Passw0rd!"
        assert encoder.matches("Passw0rd!", user.password)
        assert [role.name for role in await user_roles.get_roles(user.id)] == ["ROLE_USER"]

    async def test_save_wrong_variant(self, process, users):
        assert await process.save(UnlockRequest(user_id=1)) is None
        assert users.rows == {}

    async def test_save_conflict_grants_no_role(self, process, users, user_roles):
        async def lose_race(user):
            return 0

        users.save = lose_race

        assert await process.save(_registration()) is None
        assert user_roles.rows == {}

    async def test_notify_mails_confirmation_link(self, process, mailer, confirmation_tokens):
        user = await process.save(_registration())

        result = await process.notify(user)

        assert result.type == R.VERIFICATION_MAIL_FROM_REGISTRATION
        (token,) = confirmation_tokens.rows.values()
        to_email, _, text = mailer.sent[0]
        assert to_email == "bob@example.com"
        assert f"{token.token_id}/{token.token}" in text


# ---------------------------------------------------------------------------
# Confirmation
# ---------------------------------------------------------------------------

class TestConfirmationProcess:
    @pytest.fixture
    def process(self, registry):
        return ConfirmationProcess(registry)

    @pytest.fixture
    async def token(self, make_user, confirmation_tokens):
        user = make_user(verified=False)
        return await issue_confirmation_token(confirmation_tokens, user)

    async def test_valid(self, process, token):
        request = ConfirmationRequest(token_id=token.token_id, token=token.token)
        assert (await process.check(request)).type == R.TOKEN_IS_VALID

    async def test_not_found(self, process, token):
        request = ConfirmationRequest(token_id=token.token_id + 1, token=token.token)
        assert (await process.check(request)).type == R.TOKEN_NOT_FOUND

    async def test_wrong_value(self, process, token):
        request = ConfirmationRequest(token_id=token.token_id, token=token.token + "x")
        assert (await process.check(request)).type == R.INVALID_TOKEN_VALUE

    async def test_value_checked_before_expiry(self, process, token, confirmation_tokens):
        confirmation_tokens.expire(token.token_id)
        request = ConfirmationRequest(token_id=token.token_id, token="wrong")
        assert (await process.check(request)).type == R.INVALID_TOKEN_VALUE

    async def test_expired(self, process, token, confirmation_tokens):
        confirmation_tokens.expire(token.token_id)
        request = ConfirmationRequest(token_id=token.token_id, token=token.token)
        assert (await process.check(request)).type == R.TOKEN_EXPIRED

    async def test_wrong_variant(self, process):
        result = await process.check(_registration())
        assert result.type == R.BAD_CONFIRMATION_REQUEST_TYPE

    async def test_update_unlocks_then_expires(self, process, token, users, confirmation_tokens):
        request = ConfirmationRequest(token_id=token.token_id, token=token.token)

        result = await process.update(request)

        assert result.type == R.ACCOUNT_CONFIRMED
        owner = users.rows[token.user.id]
        assert owner.verified is True
        assert owner.blocked is False
        assert not confirmation_tokens.rows[token.token_id].is_valid()

    async def test_update_wrong_variant(self, process):
        result = await process.update(UnlockRequest(user_id=1))
        assert result.type == R.BAD_CONFIRMATION_REQUEST_TYPE


# ---------------------------------------------------------------------------
# Unlock
# ---------------------------------------------------------------------------

class TestUnlockProcess:
    @pytest.fixture
    def process(self, registry, mailer):
        return UnlockProcess(registry, mailer)

    async def test_blocked_can_be_unlocked(self, process, make_user):
        make_user(user_id=4, blocked=True)
        result = await process.check(UnlockRequest(user_id=4))
        assert result.type == R.ACCOUNT_CAN_BE_UNLOCKED

    async def test_unverified_can_be_unlocked(self, process, make_user):
        make_user(user_id=4, verified=False)
        result = await process.check(UnlockRequest(user_id=4))
        assert result.type == R.ACCOUNT_CAN_BE_UNLOCKED

    async def test_active_account_rejected(self, process, make_user):
        make_user(user_id=4)
        result = await process.check(UnlockRequest(user_id=4))
        assert result.type == R.ACCOUNT_VERIFIED_AND_NOT_BLOCKED
        assert result.success is False

    async def test_missing_account(self, process):
        result = await process.check(UnlockRequest(user_id=4))
        assert result.type == R.ACCOUNT_NOT_EXIST_UNLOCK_ACCOUNT

    async def test_wrong_variant(self, process):
        result = await process.check(ResetPasswordRequest(email="a@example.com"))
        assert result.type == R.BAD_UNLOCK_REQUEST_TYPE

    async def test_save_leaves_account_pending_confirmation(self, process, make_user):
        make_user(user_id=4, blocked=True)

        user = await process.save(UnlockRequest(user_id=4))

        assert user.blocked is False
        assert user.verified is False

    async def test_notify_issues_new_token(self, process, make_user, confirmation_tokens, mailer):
        user = make_user(user_id=4, verified=False)

        result = await process.notify(user)

        assert result.type == R.VERIFICATION_MAIL_FROM_UNLOCK
        assert len(confirmation_tokens.rows) == 1
        assert len(mailer.sent) == 1


# ---------------------------------------------------------------------------
# Reset password
# ---------------------------------------------------------------------------

class TestResetPasswordProcess:
    @pytest.fixture
    def process(self, registry, mailer, encoder):
        return ResetPasswordProcess(registry, mailer, encoder)

    async def test_can_generate(self, process, make_user):
        make_user()
        result = await process.check(ResetPasswordRequest(email="alice@example.com"))
        assert result.type == R.PASSWORD_CAN_BE_GENERATED

    async def test_missing_account(self, process):
        result = await process.check(ResetPasswordRequest(email="ghost@example.com"))
        assert result.type == R.ACCOUNT_NOT_EXIST_RESET_PASSWD

    async def test_blocked(self, process, make_user):
        make_user(blocked=True, verified=False)
        result = await process.check(ResetPasswordRequest(email="alice@example.com"))
        assert result.type == R.ACCOUNT_IS_BLOCKED_RESET_PASSWD

    async def test_not_verified(self, process, make_user):
        make_user(verified=False)
        result = await process.check(ResetPasswordRequest(email="alice@example.com"))
        assert result.type == R.ACCOUNT_IS_NOT_VERIFIED

    async def test_wrong_variant(self, process):
        result = await process.check(UnlockRequest(user_id=1))
        assert result.type == R.BAD_RESET_PASSWD_REQUEST_TYPE

    async def test_save_replaces_hash(self, process, make_user, users, encoder):
        make_user(password="OldPassw0rd!")

        generated = await process.save(ResetPasswordRequest(email="alice@example.com"))

        assert len(generated.password) == 12
        stored = users.rows[1].password
        assert encoder.matches(generated.password, stored)
        assert not encoder.matches("OldPassw0rd!", stored)

    async def test_notify_mails_password(self, process, make_user, mailer):
        make_user()
        generated = await process.save(ResetPasswordRequest(email="alice@example.com"))

        result = await process.notify(generated)

        assert result.type == R.MAIL_NEW_PASSWD_SENT
        assert generated.password in mailer.sent[0][2]


# ---------------------------------------------------------------------------
# Change password
# ---------------------------------------------------------------------------

class TestChangePasswordProcess:
    @pytest.fixture
    def process(self, registry, mailer, encoder):
        return ChangePasswordProcess(registry, mailer, encoder)

    def _request(self, **kwargs) -> ChangePasswordRequest:
        defaults = {
            "email": "alice@example.com",
            "actual_password": "Secret123!",
            "new_password": "Brand-new-1",
        }
        defaults.update(kwargs)
        return ChangePasswordRequest(**defaults)

    async def test_can_change(self, process, make_user):
        make_user()
        assert (await process.check(self._request())).type == R.PASSWORD_CAN_BE_CHANGED

    async def test_unknown_email(self, process):
        assert (await process.check(self._request())).type == R.EMAIL_NOT_EXIST_CHANGE_PASSWD

    async def test_blocked(self, process, make_user):
        make_user(blocked=True)
        assert (await process.check(self._request())).type == R.ACCOUNT_IS_BLOCKED_CHANGE_PASSWD

    async def test_wrong_actual_password(self, process, make_user):
        make_user()
        result = await process.check(self._request(actual_password="nope"))
        assert result.type == R.BAD_ACTUAL_PASSWORD_CHANGE_PASSWD

    async def test_wrong_variant_shares_reset_code(self, process):
        result = await process.check(ResetPasswordRequest(email="alice@example.com"))
        assert result.type == R.BAD_RESET_PASSWD_REQUEST_TYPE

    async def test_update(self, process, make_user, users, encoder):
        make_user()

        result = await process.update(self._request())

        assert result.type == R.PASSWORD_CHANGED
        assert encoder.matches("Brand-new-1", users.rows[1].password)

    async def test_update_wrong_variant(self, process):
        result = await process.update(UnlockRequest(user_id=1))
        assert result.type == R.PASSWORD_NOT_CHANGED
