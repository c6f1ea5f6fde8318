"""Account lifecycle: registration, confirmation, unlock and password flows."""

from authserver.services.accounts.account_service import AccountService
from authserver.services.accounts.processes import (
    ChangePasswordProcess,
    ConfirmationProcess,
    GeneratedPassword,
    RegistrationProcess,
    ResetPasswordProcess,
    UnlockProcess,
    issue_confirmation_token,
)
from authserver.services.accounts.registry import StoreRegistry

__all__ = [
    "AccountService",
    "ChangePasswordProcess",
    "ConfirmationProcess",
    "GeneratedPassword",
    "RegistrationProcess",
    "ResetPasswordProcess",
    "StoreRegistry",
    "UnlockProcess",
    "issue_confirmation_token",
]
