"""Account process outcomes.

Every outcome code determines its success flag. ``AccountResponse`` never
takes ``success`` as input; it is derived from ``type`` through
``OUTCOMES``, which covers every member of ``AccountResponseType``.
"""

from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, computed_field


class AccountProcessType(str, Enum):
    """The account lifecycle flows."""

    USER_REGISTRATION = "USER_REGISTRATION"
    CONFIRMATION_TOKEN = "CONFIRMATION_TOKEN"
    UNLOCK_ACCOUNT = "UNLOCK_ACCOUNT"
    RESET_PASSWORD = "RESET_PASSWORD"
    CHANGE_PASSWORD = "CHANGE_PASSWORD"


class AccountResponseType(str, Enum):
    """Outcome codes of every account process step."""

    # Registration
    BAD_REGISTRATION_PROCESS_INSTANCE = "BAD_REGISTRATION_PROCESS_INSTANCE"
    EMAIL_IS_NOT_UNIQUE = "EMAIL_IS_NOT_UNIQUE"
    LOGIN_IS_NOT_UNIQUE = "LOGIN_IS_NOT_UNIQUE"
    UNIQUE_LOGIN_AND_EMAIL = "UNIQUE_LOGIN_AND_EMAIL"
    BAD_REGISTRATION_REQUEST_TYPE = "BAD_REGISTRATION_REQUEST_TYPE"
    VERIFICATION_MAIL_FROM_REGISTRATION = "VERIFICATION_MAIL_FROM_REGISTRATION"

    # Confirmation
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"
    INVALID_TOKEN_VALUE = "INVALID_TOKEN_VALUE"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_IS_VALID = "TOKEN_IS_VALID"
    BAD_CONFIRMATION_REQUEST_TYPE = "BAD_CONFIRMATION_REQUEST_TYPE"
    ACCOUNT_CONFIRMED = "ACCOUNT_CONFIRMED"

    # Unlock
    BAD_UNLOCK_PROCESS_INSTANCE = "BAD_UNLOCK_PROCESS_INSTANCE"
    VERIFICATION_MAIL_FROM_UNLOCK = "VERIFICATION_MAIL_FROM_UNLOCK"
    ACCOUNT_NOT_EXIST_UNLOCK_ACCOUNT = "ACCOUNT_NOT_EXIST_UNLOCK_ACCOUNT"
    ACCOUNT_VERIFIED_AND_NOT_BLOCKED = "ACCOUNT_VERIFIED_AND_NOT_BLOCKED"
    ACCOUNT_CAN_BE_UNLOCKED = "ACCOUNT_CAN_BE_UNLOCKED"
    BAD_UNLOCK_REQUEST_TYPE = "BAD_UNLOCK_REQUEST_TYPE"

    # Reset password
    BAD_RESET_PASSWD_PROCESS_INSTANCE = "BAD_RESET_PASSWD_PROCESS_INSTANCE"
    BAD_USER_ENTITY_INSTANCE = "BAD_USER_ENTITY_INSTANCE"
    BAD_RESET_PASSWD_REQUEST_TYPE = "BAD_RESET_PASSWD_REQUEST_TYPE"
    MAIL_NEW_PASSWD_SENT = "MAIL_NEW_PASSWD_SENT"
    ACCOUNT_NOT_EXIST_RESET_PASSWD = "ACCOUNT_NOT_EXIST_RESET_PASSWD"
    ACCOUNT_IS_BLOCKED_RESET_PASSWD = "ACCOUNT_IS_BLOCKED_RESET_PASSWD"
    ACCOUNT_IS_NOT_VERIFIED = "ACCOUNT_IS_NOT_VERIFIED"
    PASSWORD_CAN_BE_GENERATED = "PASSWORD_CAN_BE_GENERATED"

    # Change password
    BAD_CHANGE_PASSWD_REQUEST_TYPE = "BAD_CHANGE_PASSWD_REQUEST_TYPE"
    EMAIL_NOT_EXIST_CHANGE_PASSWD = "EMAIL_NOT_EXIST_CHANGE_PASSWD"
    ACCOUNT_IS_BLOCKED_CHANGE_PASSWD = "ACCOUNT_IS_BLOCKED_CHANGE_PASSWD"
    BAD_ACTUAL_PASSWORD_CHANGE_PASSWD = "BAD_ACTUAL_PASSWORD_CHANGE_PASSWD"
    PASSWORD_CAN_BE_CHANGED = "PASSWORD_CAN_BE_CHANGED"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    PASSWORD_NOT_CHANGED = "PASSWORD_NOT_CHANGED"
    PASSWORD_CHANGED_BUT_MAIL_NOT_SEND = "PASSWORD_CHANGED_BUT_MAIL_NOT_SEND"

    @property
    def success(self) -> bool:
        return OUTCOMES[self].success

    @property
    def code(self) -> int:
        return OUTCOMES[self].code

    @property
    def process(self) -> AccountProcessType:
        return OUTCOMES[self].process

    @property
    def message(self) -> str:
        return OUTCOMES[self].message


class Outcome(NamedTuple):
    code: int
    process: AccountProcessType
    success: bool
    message: str


_R = AccountResponseType
_P = AccountProcessType

OUTCOMES: dict[AccountResponseType, Outcome] = {
    _R.BAD_REGISTRATION_PROCESS_INSTANCE: Outcome(
        101, _P.USER_REGISTRATION, False, "Internal Server Error, bad AccountProcess instance."
    ),
    _R.EMAIL_IS_NOT_UNIQUE: Outcome(
        102, _P.USER_REGISTRATION, False, "This email address is already in use."
    ),
    _R.LOGIN_IS_NOT_UNIQUE: Outcome(
        103, _P.USER_REGISTRATION, False, "This login is already in use."
    ),
    _R.UNIQUE_LOGIN_AND_EMAIL: Outcome(
        104, _P.USER_REGISTRATION, True, "Login and email address are unique."
    ),
    _R.BAD_REGISTRATION_REQUEST_TYPE: Outcome(
        105, _P.USER_REGISTRATION, False, "Bad request type."
    ),
    _R.VERIFICATION_MAIL_FROM_REGISTRATION: Outcome(
        106, _P.USER_REGISTRATION, True, "Verification mail was sent."
    ),
    _R.TOKEN_NOT_FOUND: Outcome(201, _P.CONFIRMATION_TOKEN, False, "Token not found."),
    _R.INVALID_TOKEN_VALUE: Outcome(202, _P.CONFIRMATION_TOKEN, False, "Invalid token value."),
    _R.TOKEN_EXPIRED: Outcome(203, _P.CONFIRMATION_TOKEN, False, "Token expired."),
    _R.TOKEN_IS_VALID: Outcome(204, _P.CONFIRMATION_TOKEN, True, "Token is valid."),
    _R.BAD_CONFIRMATION_REQUEST_TYPE: Outcome(
        205, _P.CONFIRMATION_TOKEN, False, "Bad request type."
    ),
    _R.ACCOUNT_CONFIRMED: Outcome(206, _P.CONFIRMATION_TOKEN, True, "Account confirmed."),
    _R.BAD_UNLOCK_PROCESS_INSTANCE: Outcome(
        301, _P.UNLOCK_ACCOUNT, False, "Internal Server Error, bad AccountProcess instance."
    ),
    _R.VERIFICATION_MAIL_FROM_UNLOCK: Outcome(
        302, _P.UNLOCK_ACCOUNT, True, "Verification mail was sent."
    ),
    _R.ACCOUNT_NOT_EXIST_UNLOCK_ACCOUNT: Outcome(
        303, _P.UNLOCK_ACCOUNT, False, "Account not exist."
    ),
    _R.ACCOUNT_VERIFIED_AND_NOT_BLOCKED: Outcome(
        304, _P.UNLOCK_ACCOUNT, False, "Account is verified and not blocked."
    ),
    _R.ACCOUNT_CAN_BE_UNLOCKED: Outcome(
        305, _P.UNLOCK_ACCOUNT, True, "Account can be unlocked."
    ),
    _R.BAD_UNLOCK_REQUEST_TYPE: Outcome(306, _P.UNLOCK_ACCOUNT, False, "Bad request type."),
    _R.BAD_RESET_PASSWD_PROCESS_INSTANCE: Outcome(
        401, _P.RESET_PASSWORD, False, "Internal Server Error, bad AccountProcess instance."
    ),
    _R.BAD_USER_ENTITY_INSTANCE: Outcome(
        402, _P.RESET_PASSWORD, False, "Password was not sent, no generated password."
    ),
    _R.BAD_RESET_PASSWD_REQUEST_TYPE: Outcome(
        403, _P.RESET_PASSWORD, False, "Bad request type."
    ),
    _R.MAIL_NEW_PASSWD_SENT: Outcome(404, _P.RESET_PASSWORD, True, "New password mail was sent."),
    _R.ACCOUNT_NOT_EXIST_RESET_PASSWD: Outcome(405, _P.RESET_PASSWORD, False, "Account not exist."),
    _R.ACCOUNT_IS_BLOCKED_RESET_PASSWD: Outcome(
        406, _P.RESET_PASSWORD, False, "Account is blocked, unlock it first."
    ),
    _R.ACCOUNT_IS_NOT_VERIFIED: Outcome(
        407, _P.RESET_PASSWORD, False, "Account is not verified, verify account first."
    ),
    _R.PASSWORD_CAN_BE_GENERATED: Outcome(
        408, _P.RESET_PASSWORD, True, "Password can be generated."
    ),
    _R.BAD_CHANGE_PASSWD_REQUEST_TYPE: Outcome(
        501, _P.CHANGE_PASSWORD, False, "Bad request type."
    ),
    _R.EMAIL_NOT_EXIST_CHANGE_PASSWD: Outcome(
        502, _P.CHANGE_PASSWORD, False, "Bad email address."
    ),
    _R.ACCOUNT_IS_BLOCKED_CHANGE_PASSWD: Outcome(
        503, _P.CHANGE_PASSWORD, False, "Account is blocked, unlock it first."
    ),
    _R.BAD_ACTUAL_PASSWORD_CHANGE_PASSWD: Outcome(
        504, _P.CHANGE_PASSWORD, False, "Bad actual password."
    ),
    _R.PASSWORD_CAN_BE_CHANGED: Outcome(505, _P.CHANGE_PASSWORD, True, "Password can be changed."),
    _R.PASSWORD_CHANGED: Outcome(506, _P.CHANGE_PASSWORD, True, "Password changed."),
    _R.PASSWORD_NOT_CHANGED: Outcome(507, _P.CHANGE_PASSWORD, False, "Password not changed."),
    _R.PASSWORD_CHANGED_BUT_MAIL_NOT_SEND: Outcome(
        508,
        _P.CHANGE_PASSWORD,
        False,
        "Password was changed but probably information mail wasn't sent.",
    ),
}


class AccountResponse(BaseModel):
    """Result of an account process step.

    Attributes:
        type: Outcome code
        success: Derived from ``type``
    """

    type: AccountResponseType

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return self.type.success

    @computed_field  # type: ignore[prop-decorator]
    @property
    def message(self) -> str:
        return self.type.message
