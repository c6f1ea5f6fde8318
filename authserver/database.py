"""Connection pool for the identity and token tables.

Every store fetches the shared pool through :func:`get_pool` per call, so the
pool must be opened by :func:`init_database` during application startup.
:func:`run_migrations` creates the schema and seeds the built-in roles;
:func:`health_check` reports whether the server could register an account
right now (database reachable, default role present).
"""

from pathlib import Path
from typing import List, Optional

import asyncpg
import structlog

from authserver.config import get_settings

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"

_pool: Optional[asyncpg.Pool] = None


async def get_pool() -> asyncpg.Pool:
    """Return the shared pool.

    Raises:
        RuntimeError: If init_database() has not run yet
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_database() first.")
    return _pool


async def init_database() -> asyncpg.Pool:
    """Open the pool sized and timed from settings. Idempotent."""
    global _pool

    if _pool is not None:
        return _pool

    settings = get_settings()
    try:
        _pool = await asyncpg.create_pool(
            settings.postgres_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            command_timeout=settings.pool_command_timeout,
        )
    except (OSError, asyncpg.PostgresError) as e:
        logger.error("database_pool_creation_failed", error=str(e))
        raise

    logger.info(
        "database_pool_created",
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        command_timeout=settings.pool_command_timeout,
    )
    return _pool


async def close_database() -> None:
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("database_pool_closed")


async def run_migrations(migrations_dir: Optional[Path] = None) -> List[str]:
    """Apply every ``*.sql`` file in filename order.

    Each file runs in its own transaction, so a failing file leaves no
    half-created tables behind. The scripts use ``IF NOT EXISTS`` and
    ``ON CONFLICT DO NOTHING`` and are safe to re-apply on every start.

    Args:
        migrations_dir: Directory to read, defaults to the bundled ``migrations/``

    Returns:
        Names of the files applied
    """
    directory = migrations_dir or MIGRATIONS_DIR
    if not directory.is_dir():
        logger.warning("migrations_directory_not_found", path=str(directory))
        return []

    migration_files = sorted(directory.glob("*.sql"))
    if not migration_files:
        logger.info("no_migrations_found", path=str(directory))
        return []

    pool = await get_pool()
    applied: List[str] = []
    async with pool.acquire() as conn:
        for migration_file in migration_files:
            try:
                async with conn.transaction():
                    await conn.execute(migration_file.read_text())
            except asyncpg.PostgresError as e:
                logger.error("migration_failed", file=migration_file.name, error=str(e))
                raise
            applied.append(migration_file.name)
            logger.info("migration_applied", file=migration_file.name)

    return applied


async def health_check() -> bool:
    """True when the pool answers and the default role for new accounts exists."""
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            seeded = await conn.fetchval(
                "SELECT EXISTS (SELECT 1 FROM roles WHERE role_id = $1)",
                get_settings().default_role_id,
            )
    except (RuntimeError, OSError, asyncpg.PostgresError) as e:
        logger.error("database_health_check_failed", error=str(e))
        return False

    if not seeded:
        logger.warning("default_role_missing", role_id=get_settings().default_role_id)
    return bool(seeded)
