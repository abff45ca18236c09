"""
Test configuration and shared fixtures.
Uses an in-memory SQLite database per test, a recording notification sink
and a temporary upload directory.
"""
from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from collections.abc import AsyncGenerator  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker  # noqa: E402

from taskhub.core.dependencies import get_document_storage, get_notification_sink  # noqa: E402
from taskhub.core.security import create_access_token, hash_password  # noqa: E402
from taskhub.crud.user import crud_user  # noqa: E402
from taskhub.db.base import Base  # noqa: E402
from taskhub.db.session import build_engine, get_db  # noqa: E402
from taskhub.main import app  # noqa: E402
from taskhub.models.user import User  # noqa: E402
from taskhub.services.notification_service import NotificationEvent  # noqa: E402
from taskhub.services.storage_service import DocumentStorage  # noqa: E402
from taskhub.services.task_service import TaskService  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "secret123"

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << >>\n%%EOF\n"


class RecordingSink:
    """Notification sink that keeps every published event for assertions."""

    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    async def publish(self, event: NotificationEvent) -> None:
        self.events.append(event)

    def for_user(self, user: User) -> list[str]:
        return [e.event for e in self.events if e.recipient_id == user.id]


# ── Database ──────────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    test_engine = build_engine(TEST_DATABASE_URL)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


# ── Collaborators ─────────────────────────────────────────────────────────────

@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def storage(tmp_path) -> DocumentStorage:
    return DocumentStorage(str(tmp_path / "uploads"))


@pytest.fixture
def task_service(sink: RecordingSink, storage: DocumentStorage) -> TaskService:
    return TaskService(notifier=sink, storage=storage)


@pytest_asyncio.fixture
async def client(
    db: AsyncSession, sink: RecordingSink, storage: DocumentStorage
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP test client with the test DB and fakes injected."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_sink] = lambda: sink
    app.dependency_overrides[get_document_storage] = lambda: storage

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Users ─────────────────────────────────────────────────────────────────────

async def _make_user(db: AsyncSession, name: str, email: str, role: str = "user") -> User:
    user = await crud_user.create_user(
        db,
        name=name,
        email=email,
        hashed_password=hash_password(TEST_PASSWORD),
        role=role,
    )
    await db.commit()
    return user


@pytest_asyncio.fixture
async def user_a(db: AsyncSession) -> User:
    return await _make_user(db, "Alice Creator", "alice@example.com")


@pytest_asyncio.fixture
async def user_b(db: AsyncSession) -> User:
    return await _make_user(db, "Bob Assignee", "bob@example.com")


@pytest_asyncio.fixture
async def user_c(db: AsyncSession) -> User:
    return await _make_user(db, "Carol Outsider", "carol@example.com")


@pytest_asyncio.fixture
async def admin(db: AsyncSession) -> User:
    return await _make_user(db, "Admin User", "admin@example.com", role="admin")


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(str(user.id), user.role)
    return {"Authorization": f"Bearer {token}"}


# ── Task helpers ──────────────────────────────────────────────────────────────

def pdf_file(name: str = "report.pdf", content: bytes = PDF_BYTES) -> tuple[str, tuple[str, bytes, str]]:
    return ("documents", (name, content, "application/pdf"))


async def create_task(
    client: AsyncClient,
    user: User,
    *,
    files: list[Any] | None = None,
    **fields: Any,
) -> dict[str, Any]:
    data = {"title": "Test Task", **{k: str(v) for k, v in fields.items()}}
    response = await client.post(
        "/api/v1/tasks",
        data=data,
        files=files or None,
        headers=auth_headers(user),
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]
