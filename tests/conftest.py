"""
Pytest fixtures for backend tests.
"""

import os
from datetime import date, datetime, timezone
from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from fastapi import Depends
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment before importing app
os.environ.setdefault("AUTH_DISABLED", "true")
os.environ.setdefault("GCS_BUCKET_VISIT_DOCUMENTS", "test-visit-documents")

from trialops.main import app
from trialops.contracts.user import CurrentUser
from trialops.core.errors import NotFoundError
from trialops.dependencies.auth import get_current_user
from trialops.dependencies.db import get_db
from trialops.dependencies.providers import (
    get_lifecycle_service,
    get_scheduling_service,
    get_vision_client,
)
from trialops.dependencies.storage import get_storage_service
from trialops.models import Base, Participant, Visit
from trialops.services.scheduling.scheduling_service import VisitSchedulingService
from trialops.services.vision.interfaces.vision_client import IVisionClient
from trialops.services.visits.lifecycle_service import VisitLifecycleService

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# --- Test doubles ---

class FrozenClock:
    """Callable clock that tests can move by assigning ``current``."""

    def __init__(self, current: datetime) -> None:
        self.current = current

    def __call__(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()


class FakeStorage:
    """In-memory stand-in for GCSStorageService."""

    def __init__(self) -> None:
        self.objects: Dict[str, Tuple[bytes, str]] = {}
        self.deleted: List[str] = []

    def upload_file(self, object_key: str, file_data: bytes, content_type: str = "application/octet-stream") -> str:
        self.objects[object_key] = (file_data, content_type)
        return object_key

    def download_file(self, object_key: str) -> Tuple[bytes, str]:
        if object_key not in self.objects:
            raise NotFoundError(f"File {object_key} not found")
        return self.objects[object_key]

    def get_signed_url(self, object_key: str, ttl_seconds: Optional[int] = None) -> str:
        return f"https://storage.test/{object_key}?method=GET"

    def get_upload_signed_url(
        self, object_key: str, content_type: Optional[str] = None, ttl_seconds: Optional[int] = None
    ) -> str:
        return f"https://storage.test/{object_key}?method=PUT"

    def delete_file(self, object_key: str) -> None:
        self.objects.pop(object_key, None)
        self.deleted.append(object_key)


class FakeVisionClient(IVisionClient):
    """Returns a canned JSON object (or raises) and records every call."""

    def __init__(self, response: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None) -> None:
        self.response = response or {}
        self.error = error
        self.calls: List[Tuple[bytes, str, str]] = []

    async def extract(self, document: bytes, mime_type: str, prompt: str) -> Dict[str, Any]:
        self.calls.append((document, mime_type, prompt))
        if self.error is not None:
            raise self.error
        return dict(self.response)


ADMIN = CurrentUser(id="auth0|admin", email="admin@trialops.test", role="admin", username="admin")
STAFF = CurrentUser(id="auth0|staff", email="staff@trialops.test", role="staff", username="staff")


# --- Fixtures ---

@pytest.fixture
def clock() -> FrozenClock:
    # 2024-01-02 is a Tuesday
    return FrozenClock(datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def admin_user() -> CurrentUser:
    return ADMIN


@pytest.fixture
def staff_user() -> CurrentUser:
    return STAFF


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def fake_vision() -> FakeVisionClient:
    return FakeVisionClient()


@pytest_asyncio.fixture(scope="function")
async def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def lifecycle(db_session, clock) -> VisitLifecycleService:
    return VisitLifecycleService(db_session, now=clock)


@pytest.fixture
def scheduling(db_session, clock) -> VisitSchedulingService:
    return VisitSchedulingService(db_session, today=clock.today)


@pytest_asyncio.fixture
async def participant(db_session) -> Participant:
    participant = Participant(screening_id="S1", first_name="Asha", last_name="Rao")
    db_session.add(participant)
    await db_session.commit()
    await db_session.refresh(participant)
    return participant


@pytest.fixture
def add_visit(db_session):
    """Insert a visit row directly, bypassing the lifecycle rules."""

    async def _add(participant_id, visit_number: int, **fields) -> Visit:
        visit = Visit(participant_id=participant_id, visit_number=visit_number, **fields)
        db_session.add(visit)
        await db_session.commit()
        await db_session.refresh(visit)
        return visit

    return _add


@pytest_asyncio.fixture(scope="function")
async def async_client(
    session_factory, clock, fake_storage, fake_vision
) -> AsyncGenerator[AsyncClient, None]:
    """
    Async test client for FastAPI backed by the in-memory database.

    The caller is an admin unless a test overrides ``get_current_user``.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    def override_lifecycle(db: AsyncSession = Depends(get_db)):
        return VisitLifecycleService(db, now=clock)

    def override_scheduling(db: AsyncSession = Depends(get_db)):
        return VisitSchedulingService(db, today=clock.today)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: ADMIN
    app.dependency_overrides[get_storage_service] = lambda: fake_storage
    app.dependency_overrides[get_vision_client] = lambda: fake_vision
    app.dependency_overrides[get_lifecycle_service] = override_lifecycle
    app.dependency_overrides[get_scheduling_service] = override_scheduling

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
