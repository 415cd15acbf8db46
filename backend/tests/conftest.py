"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("N8N_REPLY_WEBHOOK_URL", "")
os.environ.setdefault("AI_WEBHOOK_SECRET", "")

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from estatedesk.api.deps import create_access_token
from estatedesk.db.base import Base
from estatedesk.db.models import Contact, User, UserRole
from estatedesk.db.session import get_db
from estatedesk.main import app


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite shared by the app and the test through one connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


async def _create_user(
    session_factory: async_sessionmaker[AsyncSession], name: str, role: UserRole = UserRole.USER
) -> User:
    async with session_factory() as session:
        user = User(name=name, email=f"{name.lower()}@example.com", role=role)
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
async def user(session_factory) -> User:
    return await _create_user(session_factory, "Alice")


@pytest.fixture
async def other_user(session_factory) -> User:
    return await _create_user(session_factory, "Bob")


@pytest.fixture
async def admin(session_factory) -> User:
    return await _create_user(session_factory, "Root", UserRole.ADMIN)


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def make_contact(session_factory) -> Callable[..., Awaitable[Contact]]:
    """Insert a contact owned by the given user."""

    async def _make(owner: User, name: str = "Jane Buyer", phone_number: str = "555-0100", **fields) -> Contact:
        async with session_factory() as session:
            contact = Contact(name=name, phone_number=phone_number, created_by=owner.id, **fields)
            session.add(contact)
            await session.commit()
            return contact

    return _make


async def count_rows(session_factory, model, **filters) -> int:
    stmt = select(func.count()).select_from(model)
    for field, value in filters.items():
        stmt = stmt.where(getattr(model, field) == value)
    async with session_factory() as session:
        return await session.scalar(stmt)
