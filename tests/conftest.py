"""Shared test fixtures for pytest"""
import os
import tempfile

# Settings are read at import time; configure the environment first
_TEST_ROOT = tempfile.mkdtemp(prefix="certportal-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/default.db"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["CERTIFICATE_SIGNING_KEY"] = "test-signing-key"
os.environ["ENVIRONMENT"] = "test"
os.environ["REDIS_ENABLED"] = "false"
os.environ["TELEMETRY_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["NOTIFICATION_BACKEND"] = "log"
os.environ["WORKFLOW_VARIANT"] = "two_stage"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = f"{_TEST_ROOT}/storage"
os.environ["ALLOWED_MIME_TYPES"] = "application/pdf,image/jpeg,image/png"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from certportal.application.services.notification_service import NotificationDispatcher  # noqa: E402
from certportal.domain.enums import Role  # noqa: E402
from certportal.infrastructure.external.storage.local_storage import LocalStorageService  # noqa: E402
from certportal.infrastructure.persistence.database import Base, get_db, get_db_transactional, transaction  # noqa: E402
from certportal.infrastructure.persistence.models.user_role import UserRole  # noqa: E402
from certportal.infrastructure.security.jwt import create_access_token  # noqa: E402
from certportal.main import app  # noqa: E402
from certportal.presentation.api.dependencies import get_notifier, get_storage_service  # noqa: E402
from fakes import RecordingSink  # noqa: E402


@pytest.fixture
async def test_engine(tmp_path):
    """Create a fresh SQLite database per test"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


@pytest.fixture
async def test_db(session_factory):
    """Create test database session"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage_service(tmp_path):
    return LocalStorageService(storage_root=str(tmp_path / "storage"))


@pytest.fixture
def notification_sink():
    return RecordingSink()


@pytest.fixture
def notifier(notification_sink):
    return NotificationDispatcher(notification_sink)


@pytest.fixture
async def client(session_factory, storage_service, notifier):
    """HTTP client for API testing"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_db_transactional():
        async with transaction(session_factory) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_db_transactional] = override_get_db_transactional
    app.dependency_overrides[get_storage_service] = lambda: storage_service
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await notifier.drain()
    app.dependency_overrides.clear()


@pytest.fixture
def grant_roles(session_factory):
    """Store role assignments for a user"""

    async def grant(user_id: str, *roles: Role) -> None:
        async with session_factory() as session:
            async with session.begin():
                for role in roles:
                    session.add(UserRole(user_id=user_id, role=role.value, assigned_by="test"))

    return grant


def auth_headers_for(user_id: str, email: str | None = None) -> dict[str, str]:
    """Generate auth headers with JWT token"""
    token = create_access_token(user_id, email=email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Factory for bearer headers of arbitrary users"""
    return auth_headers_for


@pytest.fixture
def citizen_headers():
    return auth_headers_for("citizen-1", "asha@example.com")


@pytest.fixture
def applicant_payload():
    return {
        "certificate_type": "income",
        "full_name": "Asha Verma",
        "father_name": "Ramesh Verma",
        "date_of_birth": "1990-05-17",
        "address": "12 Station Road, Lucknow",
        "phone_number": "9876543210",
        "email": "Asha@Example.com",
        "purpose": "Scholarship application",
    }
