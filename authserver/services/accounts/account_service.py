"""Orchestration of the account lifecycle flows."""

from typing import Iterable, Optional

import structlog

from authserver.config import get_settings
from authserver.models.request import (
    ChangePasswordRequest,
    ConfirmationRequest,
    RegistrationRequest,
    ResetPasswordRequest,
    UnlockRequest,
)
from authserver.models.response import AccountProcessType, AccountResponse, AccountResponseType
from authserver.models.user import UserRoles
from authserver.services.accounts.processes import (
    ChangePasswordProcess,
    ConfirmationProcess,
    RegistrationProcess,
    ResetPasswordProcess,
    UnlockProcess,
)
from authserver.services.accounts.registry import StoreRegistry
from authserver.services.email_service import EmailService
from authserver.services.password_service import PasswordEncoder
from authserver.services.store import Store

logger = structlog.get_logger(__name__)


class AccountService:
    """Run account processes as check, then mutate, then notify.

    A failed check is returned as is and nothing is written. The mutation
    runs only after a successful check, and the notification only after the
    mutation.
    """

    def __init__(
        self,
        stores: Optional[Iterable[Store]] = None,
        email_service: Optional[EmailService] = None,
        encoder: Optional[PasswordEncoder] = None,
    ):
        self.registry = StoreRegistry(stores) if stores is not None else StoreRegistry.default()
        self.email_service = email_service or EmailService()
        self.encoder = encoder or PasswordEncoder()
        self.settings = get_settings()

    def create_process(self, process_type: AccountProcessType):
        """Build the process for ``process_type`` over this service's stores.

        Raises:
            MissingCapabilityError: If a store the process needs is absent
        """
        if process_type == AccountProcessType.USER_REGISTRATION:
            return RegistrationProcess(
                self.registry, self.email_service, self.encoder, self.settings.default_role_id
            )
        if process_type == AccountProcessType.CONFIRMATION_TOKEN:
            return ConfirmationProcess(self.registry)
        if process_type == AccountProcessType.UNLOCK_ACCOUNT:
            return UnlockProcess(self.registry, self.email_service)
        if process_type == AccountProcessType.RESET_PASSWORD:
            return ResetPasswordProcess(self.registry, self.email_service, self.encoder)
        if process_type == AccountProcessType.CHANGE_PASSWORD:
            return ChangePasswordProcess(self.registry, self.email_service, self.encoder)
        raise ValueError(f"Unknown account process: {process_type}")

    async def register(self, request: RegistrationRequest) -> AccountResponse:
        process = self.create_process(AccountProcessType.USER_REGISTRATION)

        result = await process.check(request)
        if not result.success:
            logger.info("registration_rejected", outcome=result.type.value)
            return result

        user = await process.save(request)
        if user is None:
            return AccountResponse(type=AccountResponseType.BAD_REGISTRATION_PROCESS_INSTANCE)
        return await process.notify(user)

    async def confirm(self, request: ConfirmationRequest) -> AccountResponse:
        process = self.create_process(AccountProcessType.CONFIRMATION_TOKEN)

        result = await process.check(request)
        if not result.success:
            logger.info("confirmation_rejected", outcome=result.type.value, token_id=request.token_id)
            return result

        return await process.update(request)

    async def unlock(self, request: UnlockRequest) -> AccountResponse:
        process = self.create_process(AccountProcessType.UNLOCK_ACCOUNT)

        result = await process.check(request)
        if not result.success:
            logger.info("unlock_rejected", outcome=result.type.value, user_id=request.user_id)
            return result

        user = await process.save(request)
        if user is None:
            return AccountResponse(type=AccountResponseType.BAD_UNLOCK_PROCESS_INSTANCE)
        return await process.notify(user)

    async def reset_password(self, request: ResetPasswordRequest) -> AccountResponse:
        process = self.create_process(AccountProcessType.RESET_PASSWORD)

        result = await process.check(request)
        if not result.success:
            logger.info("reset_password_rejected", outcome=result.type.value)
            return result

        generated = await process.save(request)
        if generated is None:
            return AccountResponse(type=AccountResponseType.BAD_USER_ENTITY_INSTANCE)
        return await process.notify(generated)

    async def change_password(self, request: ChangePasswordRequest) -> AccountResponse:
        """Change a password, then send an information mail.

        Returns:
            PASSWORD_CHANGED when the mail went out,
            PASSWORD_CHANGED_BUT_MAIL_NOT_SEND when it did not, or the
            rejecting outcome
        """
        process = self.create_process(AccountProcessType.CHANGE_PASSWORD)

        result = await process.check(request)
        if not result.success:
            logger.info("change_password_rejected", outcome=result.type.value)
            return result

        result = await process.update(request)
        if not result.success:
            return result

        mail = await process.notify(request.email)
        if not mail.success:
            logger.warning("password_changed_mail_not_sent", outcome=mail.type.value)
            return mail
        return result

    async def get_user_roles(self, username: str, email: str) -> Optional[UserRoles]:
        self.registry.require("user_roles")
        return await self.registry.user_roles.get_user_roles(username, email)
