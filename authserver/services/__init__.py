"""Services package exports."""

from authserver.services.accounts import AccountService, StoreRegistry
from authserver.services.auth_service import AuthService
from authserver.services.jwt_service import TokenIssuer
from authserver.services.logging_service import configure_logging
from authserver.services.token_service import TokenService

__all__ = [
    "AccountService",
    "AuthService",
    "StoreRegistry",
    "TokenIssuer",
    "TokenService",
    "configure_logging",
]
