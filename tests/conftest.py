"""
Pytest Configuration and Fixtures

Provides reusable async fixtures for testing the Course Marketplace Backend.
Every test gets its own in-memory SQLite database.
"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")

from typing import AsyncGenerator, Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.deps import get_payment_gateway
from app.core.config import settings
from app.core.database import Base, generate_id, get_db
from app.core.security import create_access_token
from app.main import app
from app.models import Category, Course, InstructorProfile, Lesson, User
from app.services.payment_service import XenditGateway


WEBHOOK_TOKEN = "test-callback-token"


# ==================== Database Fixtures ====================

@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine shared by every session of one test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


# ==================== Data Factories ====================

@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable:
    """
    Factory fixture to create users.

    Usage:
        user = await make_user("student-1")
    """
    async def _make_user(user_id: str, email: Optional[str] = None, name: str = "Test User", bio: Optional[str] = None) -> User:
        user = User(id=user_id, email=email or f"{user_id}@example.com", name=name)
        db_session.add(user)
        if bio is not None:
            db_session.add(InstructorProfile(user_id=user_id, bio=bio, expertise=["python"]))
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_course(db_session: AsyncSession) -> Callable:
    async def _make_course(
        instructor: User,
        course_id: Optional[str] = None,
        title: str = "Python for Data Science",
        price: int = 0,
        category: Optional[Category] = None,
        is_published: bool = True,
    ) -> Course:
        kwargs = {"id": course_id} if course_id else {}
        course = Course(
            title=title,
            slug=f"{title.lower().replace(' ', '-')}-{generate_id()[:8]}",
            description=f"About {title}",
            price=price,
            category_id=category.id if category else None,
            instructor_id=instructor.id,
            is_published=is_published,
            **kwargs,
        )
        db_session.add(course)
        await db_session.commit()
        await db_session.refresh(course)
        return course
    return _make_course


@pytest.fixture
def make_lesson(db_session: AsyncSession) -> Callable:
    async def _make_lesson(course: Course, order_index: int, is_free: bool = False) -> Lesson:
        lesson = Lesson(
            course_id=course.id,
            title=f"Lesson {order_index}",
            order_index=order_index,
            is_free=is_free,
        )
        db_session.add(lesson)
        await db_session.commit()
        await db_session.refresh(lesson)
        return lesson
    return _make_lesson


# ==================== Payment Fixtures ====================

@pytest.fixture
def gateway_settings():
    """Settings with a configured Xendit account."""
    return settings.model_copy(
        update={
            "XENDIT_SECRET_KEY": "xnd_development_secret",
            "XENDIT_WEBHOOK_TOKEN": WEBHOOK_TOKEN,
            "APP_URL": "https://shop.example.com",
        }
    )


@pytest.fixture
def gateway(gateway_settings) -> XenditGateway:
    return XenditGateway(gateway_settings)


@pytest.fixture
def mock_httpx_response():
    """
    Factory fixture to create mock httpx responses.

    Usage:
        response = mock_httpx_response(status_code=200, json_data={"key": "value"})
    """
    def _create_response(status_code: int = 200, json_data: dict = None, text: str = ""):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = json_data or {}
        response.text = text
        return response
    return _create_response


@pytest.fixture
def mock_httpx_client(mock_httpx_response):
    """
    Create a mock httpx.AsyncClient.

    Returns:
        AsyncMock configured for HTTP operations.
    """
    client = AsyncMock()
    client.request = AsyncMock(return_value=mock_httpx_response())
    return client


# ==================== API Fixtures ====================

@pytest.fixture
def auth_headers() -> Callable:
    """
    Factory fixture for Authorization headers carrying identity-provider claims.

    Usage:
        headers = auth_headers("student-1")
    """
    def _auth_headers(user_id: str, email: Optional[str] = None, name: str = "Test User") -> dict:
        token = create_access_token(user_id, email=email or f"{user_id}@example.com", name=name)
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


@pytest_asyncio.fixture
async def client(session_maker, gateway) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client bound to the app, backed by the test database."""

    async def _get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
