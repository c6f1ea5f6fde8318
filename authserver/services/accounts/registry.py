"""Typed lookup of stores for account processes."""

from typing import Iterable, Optional

from authserver.exceptions import MissingCapabilityError
from authserver.services.role_service import RoleService
from authserver.services.store import Store
from authserver.services.token_store import (
    AccessTokenStore,
    ConfirmationTokenStore,
    RefreshTokenStore,
)
from authserver.services.user_role_service import UserRoleService
from authserver.services.user_service import UserService

STORE_TYPES: dict[str, type[Store]] = {
    "users": UserService,
    "roles": RoleService,
    "user_roles": UserRoleService,
    "access_tokens": AccessTokenStore,
    "refresh_tokens": RefreshTokenStore,
    "confirmation_tokens": ConfirmationTokenStore,
}


class StoreRegistry:
    """Resolve a flat collection of stores into named, typed attributes.

    Each store is matched by concrete type. Processes ask for the ones they
    need with ``require`` when they are built, so a missing store fails at
    construction rather than halfway through a flow.
    """

    def __init__(self, stores: Iterable[Store]):
        self.users: Optional[UserService] = None
        self.roles: Optional[RoleService] = None
        self.user_roles: Optional[UserRoleService] = None
        self.access_tokens: Optional[AccessTokenStore] = None
        self.refresh_tokens: Optional[RefreshTokenStore] = None
        self.confirmation_tokens: Optional[ConfirmationTokenStore] = None

        for store in stores:
            if not isinstance(store, Store):
                raise TypeError(f"Not a store: {store!r}")
            for name, store_type in STORE_TYPES.items():
                if isinstance(store, store_type):
                    setattr(self, name, store)

    @classmethod
    def default(cls) -> "StoreRegistry":
        """Registry holding one asyncpg-backed instance of every store."""
        return cls(store_type() for store_type in STORE_TYPES.values())

    def require(self, *names: str) -> None:
        """Check that every named store was supplied.

        Raises:
            MissingCapabilityError: Naming the first absent store
        """
        for name in names:
            if name not in STORE_TYPES:
                raise KeyError(f"Unknown store: {name}")
            if getattr(self, name) is None:
                raise MissingCapabilityError(
                    f"Required store '{name}' ({STORE_TYPES[name].__name__}) was not supplied"
                )
