"""
Test configuration and fixtures for Mosman backend tests.
"""
import os

# Settings are read at import time; point them at SQLite before the app loads.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from mosman.main import app
from mosman.db.base import Base, get_db, get_admin_db
from mosman.models.user_profile import UserProfile, UserRole
from mosman.models.pocket import Pocket
from mosman.models.category import DonationCategory, ExpenseCategory
from tests.helpers import bearer


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a test database engine on a fresh SQLite file."""
    # A file-based database: with :memory: every new aiosqlite connection
    # would see an empty database.
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client; both credential tiers share the test session."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_admin_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def make_profile(
    db_session: AsyncSession,
    email: str,
    full_name: str,
    role: UserRole,
    is_active: bool = True,
) -> UserProfile:
    profile = UserProfile(email=email, full_name=full_name, role=role, is_active=is_active)
    db_session.add(profile)
    await db_session.flush()
    return profile


# ========== Users ==========

@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> UserProfile:
    return await make_profile(db_session, "admin@example.com", "Admin User", UserRole.ADMIN)


@pytest_asyncio.fixture
async def treasurer_user(db_session: AsyncSession) -> UserProfile:
    return await make_profile(db_session, "treasurer@example.com", "Treasurer User", UserRole.TREASURER)


@pytest_asyncio.fixture
async def viewer_user(db_session: AsyncSession) -> UserProfile:
    return await make_profile(db_session, "viewer@example.com", "Viewer User", UserRole.VIEWER)


@pytest_asyncio.fixture
async def inactive_user(db_session: AsyncSession) -> UserProfile:
    """A treasurer whose account has been disabled."""
    return await make_profile(
        db_session, "inactive@example.com", "Inactive User", UserRole.TREASURER, is_active=False
    )


@pytest_asyncio.fixture
async def admin_headers(admin_user: UserProfile) -> dict:
    return bearer(admin_user)


@pytest_asyncio.fixture
async def treasurer_headers(treasurer_user: UserProfile) -> dict:
    return bearer(treasurer_user)


@pytest_asyncio.fixture
async def viewer_headers(viewer_user: UserProfile) -> dict:
    return bearer(viewer_user)


@pytest_asyncio.fixture
async def inactive_headers(inactive_user: UserProfile) -> dict:
    return bearer(inactive_user)


# ========== Pockets and categories ==========

@pytest_asyncio.fixture
async def test_pocket(db_session: AsyncSession) -> Pocket:
    pocket = Pocket(name="Kas Umum", description="General fund", is_active=True)
    db_session.add(pocket)
    await db_session.flush()
    return pocket


@pytest_asyncio.fixture
async def other_pocket(db_session: AsyncSession) -> Pocket:
    pocket = Pocket(name="Kas Pembangunan", description="Building fund", is_active=True)
    db_session.add(pocket)
    await db_session.flush()
    return pocket


@pytest_asyncio.fixture
async def inactive_pocket(db_session: AsyncSession) -> Pocket:
    pocket = Pocket(name="Kas Lama", description="Closed fund", is_active=False)
    db_session.add(pocket)
    await db_session.flush()
    return pocket


@pytest_asyncio.fixture
async def zakat_category(db_session: AsyncSession) -> DonationCategory:
    category = DonationCategory(name="Zakat", is_active=True)
    db_session.add(category)
    await db_session.flush()
    return category


@pytest_asyncio.fixture
async def infaq_category(db_session: AsyncSession) -> DonationCategory:
    category = DonationCategory(name="Infaq Umum", is_active=True)
    db_session.add(category)
    await db_session.flush()
    return category


@pytest_asyncio.fixture
async def inactive_donation_category(db_session: AsyncSession) -> DonationCategory:
    category = DonationCategory(name="Wakaf", is_active=False)
    db_session.add(category)
    await db_session.flush()
    return category


@pytest_asyncio.fixture
async def utilities_category(db_session: AsyncSession) -> ExpenseCategory:
    category = ExpenseCategory(name="Utilitas", is_active=True)
    db_session.add(category)
    await db_session.flush()
    return category


@pytest_asyncio.fixture
async def maintenance_category(db_session: AsyncSession) -> ExpenseCategory:
    category = ExpenseCategory(name="Pemeliharaan Gedung", is_active=True)
    db_session.add(category)
    await db_session.flush()
    return category
