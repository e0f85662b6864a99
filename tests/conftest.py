import asyncio
import os

import pytest
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DB_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-secret")
os.environ.setdefault("CSRF_SECRET", "test-csrf-secret")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("APP_ENV", "test")

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_USER = {
    "id": "7d7b3c1e-9a51-4c39-8f0e-3f3d2c1b0a99",
    "email": "admin@sdba.example",
    "app_metadata": {"roles": ["admin"]},
    "user_metadata": {},
}

async_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
AsyncSessionLocal = sessionmaker(
    async_engine, class_=AsyncSession, expire_on_commit=False
)


async def override_get_session():
    async with AsyncSessionLocal() as session:
        yield session


async def _create_tables():
    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def _drop_tables():
    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


async def _clear_tables():
    async with async_engine.begin() as conn:
        for table in reversed(SQLModel.metadata.sorted_tables):
            await conn.execute(table.delete())


@pytest.fixture(scope="module", autouse=True)
def setup_database():
    from sdba.main import app
    from sdba.db.database import get_session

    app.dependency_overrides[get_session] = override_get_session
    asyncio.run(_create_tables())
    yield
    asyncio.run(_drop_tables())
    app.dependency_overrides.pop(get_session, None)


@pytest.fixture(autouse=True)
def clean_tables(setup_database):
    asyncio.run(_clear_tables())
    yield


@pytest.fixture
def admin_client():
    """A client whose requests pass the admin and CSRF checks."""
    from fastapi.testclient import TestClient

    from sdba.auth.csrf import verify_csrf
    from sdba.auth.dependencies import require_admin
    from sdba.main import app

    async def override_require_admin():
        return ADMIN_USER

    async def skip_csrf():
        return None

    app.dependency_overrides[require_admin] = override_require_admin
    app.dependency_overrides[verify_csrf] = skip_csrf

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.pop(require_admin, None)
    app.dependency_overrides.pop(verify_csrf, None)


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from sdba.main import app

    with TestClient(app) as test_client:
        yield test_client


def make_registration_payload(**overrides):
    payload = {
        "race_category": "men_open",
        "num_teams": 2,
        "num_teams_opt1": 1,
        "num_teams_opt2": 1,
        "season": 2025,
        "org_name": "Harbour Dragons",
        "org_address": "1 Pier Road, Stanley",
        "team_names": ["Harbour Dragons A", "Harbour Dragons B"],
        "team_options": ["Option 1", "Option 2"],
        "managers": {
            "manager1_name": "Alice Chan",
            "manager1_mobile": "91234567",
            "manager1_email": "alice@example.com",
            "manager2_name": "Bob Lee",
        },
    }
    payload.update(overrides)
    return payload


def make_event_payload(**overrides):
    payload = {
        "season": 2025,
        "org_name": "Warm Up Club",
        "managers": {
            "manager1_name": "Carmen Ho",
            "manager1_email": "carmen@example.com",
            "manager2_name": "Dickson Yip",
        },
        "teams": [
            {"name": "Warmers", "category": "Mixed", "boat_type": "Standard", "division": "A"},
            {"name": "Sprinters", "category": "Mixed", "boat_type": "Small", "division": "A", "team_size": 12},
        ],
    }
    payload.update(overrides)
    return payload
