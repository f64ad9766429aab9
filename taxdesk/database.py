"""
TaxDesk NG - Database Configuration

Async engine and session factory. PostgreSQL (asyncpg) in deployment,
SQLite (aiosqlite) for local runs and tests.
"""

from typing import AsyncGenerator

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from taxdesk.config import settings


# Constraint names must be stable for alembic autogenerate
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}


class Base(DeclarativeBase):
    """Declarative base for tax engine tables."""
    metadata = MetaData(naming_convention=convention)


def _engine_options() -> dict:
    options = {"echo": settings.database_echo}
    if settings.is_sqlite:
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(pool_pre_ping=True, pool_size=5, max_overflow=10)
    return options


engine = create_async_engine(settings.database_url_async, **_engine_options())

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session for FastAPI's Depends().

    Services commit their own writes; anything left uncommitted when the
    request fails is rolled back.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """
    Create all tables on the configured engine.

    Development only; deployed databases are migrated with alembic.
    """
    import taxdesk.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Dispose of pooled connections."""
    await engine.dispose()
