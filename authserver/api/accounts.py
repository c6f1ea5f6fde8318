"""Account lifecycle API endpoints."""

from fastapi import APIRouter, Depends, Path, Response, status
import structlog

from authserver.api.dependencies import get_account_service
from authserver.models.request import (
    ChangePasswordRequest,
    ConfirmationRequest,
    RegistrationRequest,
    ResetPasswordRequest,
    UnlockRequest,
)
from authserver.models.response import AccountResponse, AccountResponseType
from authserver.services.accounts import AccountService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/accounts", tags=["Accounts"])

_R = AccountResponseType

NOT_FOUND_OUTCOMES = frozenset(
    {
        _R.TOKEN_NOT_FOUND,
        _R.ACCOUNT_NOT_EXIST_UNLOCK_ACCOUNT,
        _R.ACCOUNT_NOT_EXIST_RESET_PASSWD,
        _R.EMAIL_NOT_EXIST_CHANGE_PASSWD,
    }
)
CONFLICT_OUTCOMES = frozenset({_R.EMAIL_IS_NOT_UNIQUE, _R.LOGIN_IS_NOT_UNIQUE})
SERVER_ERROR_OUTCOMES = frozenset(
    {
        _R.BAD_REGISTRATION_PROCESS_INSTANCE,
        _R.BAD_UNLOCK_PROCESS_INSTANCE,
        _R.BAD_RESET_PASSWD_PROCESS_INSTANCE,
        _R.BAD_USER_ENTITY_INSTANCE,
    }
)


def status_for(response_type: AccountResponseType) -> int:
    """HTTP status reported for an account outcome.

    The password is already changed when only the information mail failed,
    so that outcome is reported as 200 with ``success: false``.
    """
    if response_type.success or response_type == _R.PASSWORD_CHANGED_BUT_MAIL_NOT_SEND:
        return status.HTTP_200_OK
    if response_type in NOT_FOUND_OUTCOMES:
        return status.HTTP_404_NOT_FOUND
    if response_type in CONFLICT_OUTCOMES:
        return status.HTTP_409_CONFLICT
    if response_type in SERVER_ERROR_OUTCOMES:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


def _respond(result: AccountResponse, response: Response) -> AccountResponse:
    response.status_code = status_for(result.type)
    return result


@router.post("/register")
async def register(
    request: RegistrationRequest,
    response: Response,
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    """Register a new, unverified account and mail its confirmation link.

    Returns:
        VERIFICATION_MAIL_FROM_REGISTRATION on success; 409 if the email or
        login is taken
    """
    result = await service.register(request)
    logger.info("registration_handled", outcome=result.type.value)
    return _respond(result, response)


@router.get("/confirm/{token_id}/{token}")
async def confirm(
    response: Response,
    token_id: int = Path(..., ge=1),
    token: str = Path(..., min_length=1),
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    """Confirm an account with the link from the verification mail."""
    result = await service.confirm(ConfirmationRequest(token_id=token_id, token=token))
    return _respond(result, response)


@router.post("/unlock/{user_id}")
async def unlock(
    response: Response,
    user_id: int = Path(..., ge=1),
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    """Reset a blocked or unverified account and mail a new confirmation link."""
    result = await service.unlock(UnlockRequest(user_id=user_id))
    return _respond(result, response)


@router.post("/reset-password")
async def reset_password(
    request: ResetPasswordRequest,
    response: Response,
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    result = await service.reset_password(request)
    return _respond(result, response)


@router.post("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    response: Response,
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    result = await service.change_password(request)
    return _respond(result, response)
