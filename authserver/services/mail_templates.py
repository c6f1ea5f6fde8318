"""Texts of the mails sent by account flows."""

from authserver.config import get_settings
from authserver.models.token import TokenRecord
from authserver.models.user import User

VERIFICATION_SUBJECT = "Confirmation message"
PASSWORD_SUBJECT = "New password message"


def verification_link(token: TokenRecord) -> str:
    return f"{get_settings().confirmation_mail_url}{token.token_id}/{token.token}"


def verification_mail_text(user: User, token: TokenRecord) -> str:
    return (
        f"Dear {user.username},\n"
        f"to complete please enter to link:\n"
        f"{verification_link(token)}"
    )


def new_password_mail_text(user: User, password: str) -> str:
    return (
        f"Dear {user.username},\n"
        f"your new password is:\n"
        f"{password}\n"
        f"Please change your password after login, as soon as possible."
    )


def password_changed_mail_text() -> str:
    return (
        "Hello,\n"
        "this is information mail only,\n"
        "password was changed if it wasn't you, please restore your password immediately."
    )
