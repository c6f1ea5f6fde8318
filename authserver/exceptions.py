"""Application exceptions."""


class InvalidSortParameterError(ValueError):
    """Raised when a sort column or direction is outside its allow-list."""


class InvalidTokenError(ValueError):
    """Raised when claims are read from a token that does not validate."""


class MissingCapabilityError(RuntimeError):
    """Raised when a process is built without a store it depends on."""


class AuthenticationError(Exception):
    """Raised when login or token refresh is refused."""


class ConflictError(ValueError):
    """Raised when a write would duplicate a unique username, email or role."""
