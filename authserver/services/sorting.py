"""Sort and filter parameter validation for listing queries.

Column names and sort directions cannot be bound as query parameters, so
they are interpolated into SQL. They must pass through
``validate_sort_parameters`` against a fixed allow-list first.
"""

from typing import Iterable, Optional

from authserver.exceptions import InvalidSortParameterError

ALLOWED_SORT_ORDERS = frozenset({"ASC", "DESC"})

USER_SORT_COLUMNS = frozenset({"user_id", "username", "email", "created_at"})
ROLE_SORT_COLUMNS = frozenset({"role_id", "role_name"})
USER_ROLE_SORT_COLUMNS = frozenset(
    {"u.user_id", "u.username", "u.email", "r.role_id", "r.role_name"}
)
TOKEN_SORT_COLUMNS = frozenset(
    {"u.user_id", "u.username", "u.email", "t.expiration_date", "t.token_id"}
)


def validate_sort_parameters(
    sort_by: str,
    sort_order: str,
    allowed_columns: Iterable[str],
    allowed_orders: Iterable[str] = ALLOWED_SORT_ORDERS,
) -> tuple[str, str]:
    """Check a sort column and direction against their allow-lists.

    Args:
        sort_by: Column to order by, matched exactly
        sort_order: Direction, matched case-insensitively
        allowed_columns: Columns the caller may sort by
        allowed_orders: Accepted directions (upper case)

    Returns:
        Tuple of (column, upper-cased direction) safe to interpolate

    Raises:
        InvalidSortParameterError: If either value is not allowed
    """
    if not isinstance(sort_order, str) or sort_order.upper() not in set(allowed_orders):
        raise InvalidSortParameterError(f"Invalid sortOrder parameter: {sort_order}")

    if not isinstance(sort_by, str) or sort_by not in set(allowed_columns):
        raise InvalidSortParameterError(f"Invalid sortBy parameter: {sort_by}")

    return sort_by, sort_order.upper()


def like_param(value: Optional[str]) -> str:
    """Wrap a filter value for a substring ``LIKE`` match.

    ``None`` matches everything. LIKE wildcards inside the value are escaped
    so they match literally.
    """
    if not value:
        return "%%"
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
