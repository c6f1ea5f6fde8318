"""Account lifecycle processes.

Every process runs in three steps:

1. ``check`` reads state and returns exactly one outcome from the process's
   closed set. A request of the wrong variant is an outcome too.
2. ``save`` or ``update`` performs the mutation. It is only called after a
   successful check and does not validate again.
3. ``notify`` sends the mail. Delivery failure never undoes step 2.
"""

import secrets
from typing import Any, NamedTuple, Optional

import structlog

from authserver.models.request import (
    ChangePasswordRequest,
    ConfirmationRequest,
    RegistrationRequest,
    ResetPasswordRequest,
    UnlockRequest,
)
from authserver.models.response import AccountProcessType, AccountResponse, AccountResponseType
from authserver.models.token import TokenRecord
from authserver.models.user import User
from authserver.services import mail_templates
from authserver.services.accounts.registry import StoreRegistry
from authserver.services.email_service import EmailService
from authserver.services.password_service import (
    PasswordEncoder,
    generate_confirmation_token,
    generate_password,
)
from authserver.services.token_store import ConfirmationTokenStore

logger = structlog.get_logger(__name__)


def _response(response_type: AccountResponseType) -> AccountResponse:
    return AccountResponse(type=response_type)


async def issue_confirmation_token(
    store: ConfirmationTokenStore, user: User
) -> TokenRecord:
    """Store a new one-hour confirmation token for ``user``.

    The id is allocated before insert and reallocated on collision.

    Raises:
        RuntimeError: If no free id could be allocated
    """
    token_id = await store.allocate_and_save(user.id, generate_confirmation_token())
    record = await store.find_by_id(token_id) if token_id is not None else None
    if record is None:
        raise RuntimeError(f"Could not store confirmation token for user {user.id}")
    return record


class RegistrationProcess:
    """Create an unverified account and mail its confirmation link."""

    process_type = AccountProcessType.USER_REGISTRATION
    required_stores = ("users", "user_roles", "confirmation_tokens")

    def __init__(
        self,
        registry: StoreRegistry,
        email_service: EmailService,
        encoder: PasswordEncoder,
        default_role_id: int,
    ):
        registry.require(*self.required_stores)
        self.users = registry.users
        self.user_roles = registry.user_roles
        self.confirmation_tokens = registry.confirmation_tokens
        self.email_service = email_service
        self.encoder = encoder
        self.default_role_id = default_role_id

    async def check(self, request: Any) -> AccountResponse:
        if not isinstance(request, RegistrationRequest):
            return _response(AccountResponseType.BAD_REGISTRATION_REQUEST_TYPE)
        if await self.users.is_email_exist(request.email):
            return _response(AccountResponseType.EMAIL_IS_NOT_UNIQUE)
        if await self.users.is_login_exist(request.username):
            return _response(AccountResponseType.LOGIN_IS_NOT_UNIQUE)
        return _response(AccountResponseType.UNIQUE_LOGIN_AND_EMAIL)

    async def save(self, request: Any) -> Optional[User]:
        """Insert the user and grant it the default role."""
        if not isinstance(request, RegistrationRequest):
            return None

        user_id = await self.users.next_id()
        saved = await self.users.save(
            User(
                id=user_id,
                username=request.username,
                email=request.email,
                password=self.encoder.encode(request.password),
                verified=False,
                blocked=False,
            )
        )
        if not saved:
            logger.warning("user_registration_conflict", user_id=user_id)
            return None
        await self.user_roles.save(
            await self.user_roles.next_id(), user_id, self.default_role_id
        )
        logger.info("user_registered", user_id=user_id, username=request.username)
        return await self.users.find_by_id(user_id)

    async def notify(self, user: User) -> AccountResponse:
        token = await issue_confirmation_token(self.confirmation_tokens, user)
        sent = await self.email_service.send_email(
            user.email,
            mail_templates.VERIFICATION_SUBJECT,
            mail_templates.verification_mail_text(user, token),
        )
        if not sent:
            logger.warning("verification_mail_not_sent", user_id=user.id, token_id=token.token_id)
        return _response(AccountResponseType.VERIFICATION_MAIL_FROM_REGISTRATION)


class ConfirmationProcess:
    """Verify an account with a mailed one-time token."""

    process_type = AccountProcessType.CONFIRMATION_TOKEN
    required_stores = ("users", "confirmation_tokens")

    def __init__(self, registry: StoreRegistry):
        registry.require(*self.required_stores)
        self.users = registry.users
        self.confirmation_tokens = registry.confirmation_tokens

    async def check(self, request: Any) -> AccountResponse:
        if not isinstance(request, ConfirmationRequest):
            return _response(AccountResponseType.BAD_CONFIRMATION_REQUEST_TYPE)

        record = await self.confirmation_tokens.find_by_id(request.token_id)
        if record is None:
            return _response(AccountResponseType.TOKEN_NOT_FOUND)
        if not secrets.compare_digest(record.token, request.token):
            return _response(AccountResponseType.INVALID_TOKEN_VALUE)
        if not record.is_valid():
            return _response(AccountResponseType.TOKEN_EXPIRED)
        return _response(AccountResponseType.TOKEN_IS_VALID)

    async def update(self, request: Any) -> AccountResponse:
        """Unlock the owner, then expire the token.

        These are two independent statements. If expiring fails after the
        unlock succeeded, the token stays usable and confirming again only
        repeats the unlock.
        """
        if not isinstance(request, ConfirmationRequest):
            return _response(AccountResponseType.BAD_CONFIRMATION_REQUEST_TYPE)

        record = await self.confirmation_tokens.find_by_id(request.token_id)
        if record is None:
            return _response(AccountResponseType.TOKEN_NOT_FOUND)

        await self.users.unlock(record.user.id)
        await self.confirmation_tokens.set_expired(record.token_id)
        logger.info("account_confirmed", user_id=record.user.id, token_id=record.token_id)
        return _response(AccountResponseType.ACCOUNT_CONFIRMED)


class UnlockProcess:
    """Reset a blocked or unverified account and mail a new confirmation link."""

    process_type = AccountProcessType.UNLOCK_ACCOUNT
    required_stores = ("users", "confirmation_tokens")

    def __init__(self, registry: StoreRegistry, email_service: EmailService):
        registry.require(*self.required_stores)
        self.users = registry.users
        self.confirmation_tokens = registry.confirmation_tokens
        self.email_service = email_service

    async def check(self, request: Any) -> AccountResponse:
        if not isinstance(request, UnlockRequest):
            return _response(AccountResponseType.BAD_UNLOCK_REQUEST_TYPE)

        user = await self.users.find_by_id(request.user_id)
        if user is None or user.id != request.user_id:
            return _response(AccountResponseType.ACCOUNT_NOT_EXIST_UNLOCK_ACCOUNT)
        if user.verified and not user.blocked:
            return _response(AccountResponseType.ACCOUNT_VERIFIED_AND_NOT_BLOCKED)
        return _response(AccountResponseType.ACCOUNT_CAN_BE_UNLOCKED)

    async def save(self, request: Any) -> Optional[User]:
        """Clear the blocked flag; the account stays unverified until confirmed."""
        if not isinstance(request, UnlockRequest):
            return None

        await self.users.update_status(request.user_id, verified=False, blocked=False)
        return await self.users.find_by_id(request.user_id)

    async def notify(self, user: User) -> AccountResponse:
        token = await issue_confirmation_token(self.confirmation_tokens, user)
        sent = await self.email_service.send_email(
            user.email,
            mail_templates.VERIFICATION_SUBJECT,
            mail_templates.verification_mail_text(user, token),
        )
        if not sent:
            logger.warning("verification_mail_not_sent", user_id=user.id, token_id=token.token_id)
        return _response(AccountResponseType.VERIFICATION_MAIL_FROM_UNLOCK)


class GeneratedPassword(NamedTuple):
    """A user whose password was replaced, with the raw generated password."""

    user: User
    password: str


class ResetPasswordProcess:
    """Replace a forgotten password with a generated one and mail it."""

    process_type = AccountProcessType.RESET_PASSWORD
    required_stores = ("users",)

    def __init__(
        self, registry: StoreRegistry, email_service: EmailService, encoder: PasswordEncoder
    ):
        registry.require(*self.required_stores)
        self.users = registry.users
        self.email_service = email_service
        self.encoder = encoder

    async def check(self, request: Any) -> AccountResponse:
        if not isinstance(request, ResetPasswordRequest):
            return _response(AccountResponseType.BAD_RESET_PASSWD_REQUEST_TYPE)

        user = await self.users.find_by_email(request.email)
        if user is None or user.email.lower() != request.email.lower():
            return _response(AccountResponseType.ACCOUNT_NOT_EXIST_RESET_PASSWD)
        if user.blocked:
            return _response(AccountResponseType.ACCOUNT_IS_BLOCKED_RESET_PASSWD)
        if not user.verified:
            return _response(AccountResponseType.ACCOUNT_IS_NOT_VERIFIED)
        return _response(AccountResponseType.PASSWORD_CAN_BE_GENERATED)

    async def save(self, request: Any) -> Optional[GeneratedPassword]:
        if not isinstance(request, ResetPasswordRequest):
            return None

        user = await self.users.find_by_email(request.email)
        if user is None:
            return None

        password = generate_password()
        await self.users.update_password(user.id, self.encoder.encode(password))
        logger.info("password_reset", user_id=user.id)
        updated = await self.users.find_by_id(user.id)
        return GeneratedPassword(user=updated or user, password=password)

    async def notify(self, generated: GeneratedPassword) -> AccountResponse:
        sent = await self.email_service.send_email(
            generated.user.email,
            mail_templates.PASSWORD_SUBJECT,
            mail_templates.new_password_mail_text(generated.user, generated.password),
        )
        if not sent:
            logger.warning("new_password_mail_not_sent", user_id=generated.user.id)
        return _response(AccountResponseType.MAIL_NEW_PASSWD_SENT)


class ChangePasswordProcess:
    """Change a password after verifying the current one."""

    process_type = AccountProcessType.CHANGE_PASSWORD
    required_stores = ("users",)

    def __init__(
        self, registry: StoreRegistry, email_service: EmailService, encoder: PasswordEncoder
    ):
        registry.require(*self.required_stores)
        self.users = registry.users
        self.email_service = email_service
        self.encoder = encoder

    async def check(self, request: Any) -> AccountResponse:
        # Malformed change requests share the reset-password code.
        if not isinstance(request, ChangePasswordRequest):
            return _response(AccountResponseType.BAD_RESET_PASSWD_REQUEST_TYPE)

        user = await self.users.find_by_email(request.email)
        if user is None or user.email.lower() != request.email.lower():
            return _response(AccountResponseType.EMAIL_NOT_EXIST_CHANGE_PASSWD)
        if user.blocked:
            return _response(AccountResponseType.ACCOUNT_IS_BLOCKED_CHANGE_PASSWD)
        if not self.encoder.matches(request.actual_password, user.password):
            return _response(AccountResponseType.BAD_ACTUAL_PASSWORD_CHANGE_PASSWD)
        return _response(AccountResponseType.PASSWORD_CAN_BE_CHANGED)

    async def update(self, request: Any) -> AccountResponse:
        if not isinstance(request, ChangePasswordRequest):
            return _response(AccountResponseType.PASSWORD_NOT_CHANGED)

        user = await self.users.find_by_email(request.email)
        if user is None:
            return _response(AccountResponseType.PASSWORD_NOT_CHANGED)

        await self.users.update_password(user.id, self.encoder.encode(request.new_password))
        logger.info("password_changed", user_id=user.id)
        return _response(AccountResponseType.PASSWORD_CHANGED)

    async def notify(self, email: str) -> AccountResponse:
        sent = await self.email_service.send_email(
            email,
            mail_templates.PASSWORD_SUBJECT,
            mail_templates.password_changed_mail_text(),
        )
        if not sent:
            return _response(AccountResponseType.PASSWORD_CHANGED_BUT_MAIL_NOT_SEND)
        return _response(AccountResponseType.MAIL_NEW_PASSWD_SENT)
