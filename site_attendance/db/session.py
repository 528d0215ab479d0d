"""
Async SQLAlchemy engine & session factory for the work-session store.

PostgreSQL (asyncpg) in production; SQLite (aiosqlite) only in tests,
where the pool options do not apply.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from site_attendance.core.config import Settings, settings


def build_engine_args(config: Settings) -> dict[str, Any]:
    engine_args: dict[str, Any] = {
        "echo": config.DB_ECHO,
        "pool_pre_ping": True,
    }
    if not config.DATABASE_URL.startswith("sqlite"):
        engine_args.update(
            {
                "pool_size": config.DB_POOL_SIZE,
                "max_overflow": config.DB_MAX_OVERFLOW,
                "pool_recycle": config.DB_POOL_RECYCLE_SECONDS,
            }
        )
    return engine_args


engine = create_async_engine(settings.DATABASE_URL, **build_engine_args(settings))

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
