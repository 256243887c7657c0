"""Database engine and session management for the table reservation service."""

import os
import time
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.pool import NullPool

from .base import Base


class DatabaseConfig:
    """Database configuration settings."""

    # Connection pool settings
    POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "5"))
    MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    POOL_TIMEOUT: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
    POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "3600"))
    POOL_PRE_PING: bool = os.getenv("DB_POOL_PRE_PING", "true").lower() == "true"

    # Query settings
    ECHO: bool = os.getenv("DB_ECHO", "false").lower() == "true"

    # asyncpg connection settings
    POSTGRES_CONNECT_ARGS: dict = {
        "server_settings": {
            "application_name": "table_reservations",
        },
        "command_timeout": 60,
        "timeout": 10,
    }


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def create_engine(url: str, echo: bool = DatabaseConfig.ECHO) -> AsyncEngine:
    """
    Create async SQLAlchemy engine.

    SQLite gets the driver defaults; PostgreSQL gets a sized queue pool.

    Args:
        url: Database URL
        echo: Whether to log all SQL statements

    Returns:
        Async SQLAlchemy engine
    """
    if is_sqlite(url):
        return create_async_engine(url, echo=echo)

    kwargs: Dict[str, Any] = {
        "echo": echo,
        "pool_size": DatabaseConfig.POOL_SIZE,
        "max_overflow": DatabaseConfig.MAX_OVERFLOW,
        "pool_timeout": DatabaseConfig.POOL_TIMEOUT,
        "pool_recycle": DatabaseConfig.POOL_RECYCLE,
        "pool_pre_ping": DatabaseConfig.POOL_PRE_PING,
    }
    if url.startswith("postgresql+asyncpg"):
        kwargs["connect_args"] = DatabaseConfig.POSTGRES_CONNECT_ARGS
    return create_async_engine(url, **kwargs)


def create_test_engine(url: str) -> AsyncEngine:
    """
    Create async engine for testing with NullPool.

    Args:
        url: Database URL

    Returns:
        Async SQLAlchemy engine with NullPool
    """
    return create_async_engine(url, echo=False, poolclass=NullPool)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Async session factory bound to the given engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Initialize database by creating all tables."""
    # Import models so they register on the metadata
    from . import models_sqlalchemy  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(engine: AsyncEngine) -> None:
    """Drop all database tables. Use with caution!"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def close_db(engine: AsyncEngine) -> None:
    """Close database engine and all connections."""
    await engine.dispose()


async def ping_db(engine: AsyncEngine) -> float:
    """
    Run a trivial query against the database.

    Returns:
        Round-trip latency in milliseconds

    Raises:
        SQLAlchemyError: If the database cannot be reached
    """
    started = time.perf_counter()
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return (time.perf_counter() - started) * 1000
