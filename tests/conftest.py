"""Shared test fixtures.

Each test gets a fresh SQLite database (aiosqlite) in a temp directory.
Tokens are HS256 with a test secret; emails go to an in-memory provider.
"""

from __future__ import annotations

import os

os.environ["LEARNHUB_JWT_ALGORITHM"] = "HS256"
os.environ["LEARNHUB_JWT_SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["LEARNHUB_EMAIL_PROVIDER"] = "stub"
os.environ["LEARNHUB_LOG_FORMAT"] = "console"

from collections.abc import AsyncGenerator, Awaitable, Callable, Generator  # noqa: E402
from decimal import Decimal  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from learnhub import background  # noqa: E402
from learnhub.auth.jwt import create_access_token, reset_keys  # noqa: E402
from learnhub.config import get_settings  # noqa: E402
from learnhub.database import close_db, get_engine, get_session, init_db  # noqa: E402
from learnhub.db.base import Base  # noqa: E402
from learnhub.db.models import Course, Lesson, Module, User  # noqa: E402
from learnhub.email.service import BaseEmailProvider, EmailService, set_email_service  # noqa: E402
from learnhub.main import create_app  # noqa: E402

get_settings.cache_clear()
reset_keys()


@pytest_asyncio.fixture(autouse=True)
async def database(tmp_path) -> AsyncGenerator[None, None]:
    """Fresh schema per test."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'learnhub-test.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await background.drain(timeout=5)
    await close_db()


@pytest.fixture(autouse=True)
def email_provider() -> Generator[MagicMock, None, None]:
    """Capture outgoing email instead of sending it."""
    provider = MagicMock(spec=BaseEmailProvider)
    provider.send = AsyncMock(return_value=True)
    set_email_service(EmailService(provider=provider))
    yield provider
    set_email_service(None)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for setup and assertions."""
    async for session in get_session():
        yield session


@pytest.fixture
def settle(db_session: AsyncSession) -> Callable[[], Awaitable[None]]:
    """Wait for background work, then end the session's read snapshot."""

    async def _settle() -> None:
        await background.drain(timeout=5)
        await db_session.commit()

    return _settle


async def _drain_after_response(_response) -> None:  # type: ignore[no-untyped-def]
    await background.drain(timeout=5)


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """HTTP client over the ASGI app; background work is drained after every response."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        event_hooks={"response": [_drain_after_response]},
    ) as ac:
        yield ac


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    counter = {"n": 0}

    async def _make(name: str = "Ada Learner", role: str = "STUDENT", email: str | None = None) -> User:
        counter["n"] += 1
        user = User(email=email or f"user{counter['n']}@example.com", name=name, role=role)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_course(db_session: AsyncSession) -> Callable[..., Awaitable[tuple[Course, list[Lesson]]]]:
    """Course with one published module of ``lessons`` published lessons.

    ``unpublished_lessons`` adds hidden lessons to the same module.
    """
    counter = {"n": 0}

    async def _make(
        lessons: int = 10,
        *,
        title: str = "Python Fundamentals",
        published: bool = True,
        price: Decimal = Decimal("0"),
        instructor: User | None = None,
        unpublished_lessons: int = 0,
    ) -> tuple[Course, list[Lesson]]:
        counter["n"] += 1
        course = Course(
            slug=f"course-{counter['n']}",
            title=title,
            price=price,
            is_published=published,
            instructor_id=instructor.id if instructor else None,
        )
        db_session.add(course)
        await db_session.flush()
        module = Module(course_id=course.id, title="Module 1", position=1, is_published=True)
        db_session.add(module)
        await db_session.flush()

        created = [
            Lesson(module_id=module.id, title=f"Lesson {i + 1}", position=i + 1, is_published=True)
            for i in range(lessons)
        ]
        hidden = [
            Lesson(module_id=module.id, title=f"Draft {i + 1}", position=100 + i, is_published=False)
            for i in range(unpublished_lessons)
        ]
        db_session.add_all(created + hidden)
        await db_session.commit()
        return course, created

    return _make


@pytest.fixture
def auth() -> Callable[[User], dict[str, str]]:
    """Bearer headers for a user."""
    return auth_headers
