"""Password hashing and random credential generation."""

import secrets
import string

import bcrypt

UPPERCASE_CHARACTERS = string.ascii_uppercase
LOWERCASE_CHARACTERS = string.ascii_lowercase
DIGITS = string.digits
SPECIAL_CHARACTERS = "!@#$%^&*()-_=+"
ALPHANUMERIC = string.ascii_letters + string.digits

DEFAULT_PASSWORD_LENGTH = 12
DEFAULT_CONFIRMATION_TOKEN_LENGTH = 100


class PasswordEncoder:
    """Encode and verify passwords with bcrypt."""

    def encode(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string

        Raises:
            ValueError: If the password is longer than 72 bytes as UTF-8
        """
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
        return hashed.decode("utf-8")

    def matches(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        Returns False for a hash bcrypt cannot parse.
        """
        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                password_hash.encode("utf-8"),
            )
        except ValueError:
            return False


def generate_password(length: int = DEFAULT_PASSWORD_LENGTH) -> str:
    """Generate a random password with every character class present.

    The result holds at least one upper-case letter, one lower-case letter,
    one digit and one special character.
    """
    if length < 4:
        raise ValueError("Password length must be at least 4")

    all_characters = UPPERCASE_CHARACTERS + LOWERCASE_CHARACTERS + DIGITS + SPECIAL_CHARACTERS
    chars = [
        secrets.choice(UPPERCASE_CHARACTERS),
        secrets.choice(LOWERCASE_CHARACTERS),
        secrets.choice(DIGITS),
        secrets.choice(SPECIAL_CHARACTERS),
    ]
    chars.extend(secrets.choice(all_characters) for _ in range(length - 4))
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def generate_confirmation_token(length: int = DEFAULT_CONFIRMATION_TOKEN_LENGTH) -> str:
    """Generate the random alphanumeric value mailed in confirmation links."""
    if length < 1:
        raise ValueError("Token length must be greater than 0")
    return "".join(secrets.choice(ALPHANUMERIC) for _ in range(length))
