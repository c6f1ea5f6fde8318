"""Shared pieces of the asyncpg-backed stores."""

from typing import Any, Mapping

from authserver.models.user import Role, User

USER_COLUMNS = (
    "u.user_id, u.username, u.email, u.password, u.verified, u.blocked, "
    "u.created_at, u.updated_at"
)


class Store:
    """Marker base class for every persistence capability.

    Account processes receive a flat collection of stores and pick the ones
    they need by concrete type.
    """


def user_from_row(row: Mapping[str, Any]) -> User:
    """Build a User from a row selected with ``USER_COLUMNS``."""
    return User(
        id=row["user_id"],
        username=row["username"],
        email=row["email"],
        password=row["password"],
        verified=row["verified"],
        blocked=row["blocked"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def role_from_row(row: Mapping[str, Any]) -> Role:
    return Role(id=row["role_id"], name=row["role_name"])


def rows_affected(status: str) -> int:
    """Parse the row count from an asyncpg command status like ``UPDATE 1``."""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0
