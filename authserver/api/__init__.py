"""API package exports."""

from authserver.api.accounts import router as accounts_router
from authserver.api.auth import router as auth_router
from authserver.api.middleware import CorrelationIdMiddleware
from authserver.api.roles import router as roles_router
from authserver.api.tokens import router as tokens_router
from authserver.api.user_roles import router as user_roles_router
from authserver.api.users import router as users_router

__all__ = [
    "CorrelationIdMiddleware",
    "accounts_router",
    "auth_router",
    "roles_router",
    "tokens_router",
    "user_roles_router",
    "users_router",
]
