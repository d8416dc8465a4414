"""
Database base configuration and utilities.

Two engines are configured: the restricted one serves every request, the
elevated one is reserved for trusted server-side aggregates (pocket ledger).
When no separate admin URL is configured both point at the same database.
"""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import MetaData
from mosman.core.config import settings

# Naming convention for constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}

metadata = MetaData(naming_convention=convention)


class Base(DeclarativeBase):
    """Base class for all database models."""
    metadata = metadata


# Create async engines
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG and not settings.is_production,
    future=True
)

admin_engine = (
    engine
    if settings.admin_database_url == settings.DATABASE_URL
    else create_async_engine(settings.admin_database_url, future=True)
)

# Create async session factories
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

admin_session_maker = async_sessionmaker(
    admin_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a database session (restricted credential).

    The whole request is one unit of work. Mutating handlers commit it
    themselves before building their response, so a failed commit reaches
    the error handlers; anything left uncommitted is rolled back on close.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_admin_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a database session (elevated credential)."""
    async with admin_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    """Initialize database tables."""
    # Models must be imported so their tables are registered on the metadata
    import mosman.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
