"""Async Postgres connection pool using asyncpg."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import asyncpg

from ..settings import settings

SCHEMA_PATH = Path(__file__).with_name("schema.sql")

_pool: Optional[asyncpg.Pool] = None


async def get_pool() -> asyncpg.Pool:
    """Return (and lazily create) the asyncpg connection pool."""
    global _pool
    if _pool is None:
        if not settings.database_url:
            raise RuntimeError(
                "DATABASE_URL is not set. "
                "Postgres is required."
            )
        _pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=settings.db_pool_min,
            max_size=settings.db_pool_max,
        )
    return _pool


async def close_pool() -> None:
    """Shut down the connection pool (call on app shutdown)."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


async def apply_schema(dsn: str | None = None) -> None:
    """Create the tables the cart/checkout services read and write."""
    conn = await asyncpg.connect(dsn=dsn or settings.database_url)
    try:
        await conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
    finally:
        await conn.close()
