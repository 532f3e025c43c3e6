"""
Pytest configuration and shared fixtures for the vehicle inspection test suite.

This module provides:
- Local key-value store and cloud ORM fixtures (in-memory SQLite for fast tests)
- Registry bundles for both storage modes
- A small checklist definition and record factories
- FastAPI async client fixture with dependency overrides
"""

import os

os.environ.setdefault("STORAGE_MODE", "local")
os.environ.setdefault("JWT_SECRET", "test-secret-key-with-at-least-32-bytes")
os.environ.setdefault("JWT_ALGORITHM", "HS256")

import base64
import io
import time
from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
import jwt
from httpx import ASGITransport, AsyncClient
from PIL import Image, ImageDraw
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from auth.auth_handler import UserContext
from core.db import Base
import models  # noqa: F401
from schemas.checklist import ChecklistDefinition, ChecklistItemState, ChecklistStatus
from schemas.inspection import InspectionRecord, InspectionType, VehicleSnapshot
from services.checklist import build_initial, get_active_definition
from storage.factory import cloud_registries, get_registries, local_registries
from storage.kv import KeyValueStore


# Test Database Configuration
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_USER = UserContext(user_id="user-1", display_name="Casey Inspector")
OTHER_USER = UserContext(user_id="user-2", display_name="Robin Other")


def _memory_engine():
    return create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )


@pytest_asyncio.fixture
async def kv_store() -> AsyncGenerator[KeyValueStore, None]:
    """Local key-value store backed by in-memory SQLite."""
    store = KeyValueStore(_memory_engine())
    await store.init()
    yield store
    await store.dispose()


@pytest_asyncio.fixture
async def async_engine():
    """Create async engine with the cloud tables for testing."""
    engine = _memory_engine()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def async_db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for testing."""
    async_session = async_sessionmaker(async_engine, expire_on_commit=False)

    async with async_session() as session:
        yield session


@pytest.fixture
def local_regs(kv_store):
    return local_registries(kv_store)


@pytest.fixture
def cloud_regs(async_db_session):
    return cloud_registries(async_db_session, TEST_USER)


@pytest.fixture(params=["local", "cloud"])
def registries(request, kv_store, async_db_session):
    """Runs a test once against each storage mode."""
    if request.param == "cloud":
        return cloud_registries(async_db_session, TEST_USER)
    return local_registries(kv_store)


# Test Data Factories
@pytest.fixture
def small_definition() -> ChecklistDefinition:
    """Two categories with four items in total, plus the free-text comments category."""
    return ChecklistDefinition.model_validate({
        "categories": [
            {
                "id": "lights",
                "label": "Lights",
                "items": [
                    {"id": "headlights", "label": "Headlights"},
                    {"id": "indicators", "label": "Indicators"},
                ],
            },
            {
                "id": "tyres",
                "label": "Tyres",
                "items": [
                    {"id": "tread_depth", "label": "Tread depth"},
                    {"id": "pressure", "label": "Pressure"},
                ],
            },
            {"id": "comments", "label": "General Comments", "items": []},
        ],
        "inspectionTypes": ["Initial", "Second", "Final"],
    })


@pytest.fixture
def make_record(small_definition):
    """Factory for InspectionRecord instances with sensible defaults."""
    def _make(**overrides) -> InspectionRecord:
        data = dict(
            id="rec-1",
            created_at=datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc),
            inspection_type=InspectionType.INITIAL,
            vehicle=VehicleSnapshot(registration="ABC123", make="Toyota", model="Corolla", mileage=50000),
            checklist=build_initial(small_definition),
            synced=False,
        )
        data.update(overrides)
        return InspectionRecord(**data)
    return _make


def make_large_checklist(categories: int = 4, items_per_category: int = 25):
    return {
        f"category_{c}": {
            f"item_{c}_{i}": ChecklistItemState(
                status=ChecklistStatus.PASS if i % 3 else ChecklistStatus.FAIL,
                comment="checked" if i % 5 == 0 else "",
            )
            for i in range(items_per_category)
        }
        for c in range(categories)
    }


def sign_jwt(user_id: str, display_name=None, expires_in: int = 3600) -> str:
    """Issue a token the way the identity provider does."""
    payload = {"sub": user_id, "name": display_name, "exp": int(time.time()) + expires_in}
    return jwt.encode(payload, os.environ["JWT_SECRET"], algorithm=os.environ["JWT_ALGORITHM"])


def png_data_url(width: int = 300, height: int = 120) -> str:
    """A transparent PNG with a scribble, like a signature pad produces."""
    image = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    draw.line([(10, 90), (80, 20), (150, 100), (280, 30)], fill=(0, 0, 0, 255), width=4)
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


@pytest_asyncio.fixture
async def test_async_client(kv_store, small_definition) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app, wired to the in-memory local store."""
    from main import app

    async def override_get_registries():
        yield local_registries(kv_store)

    app.dependency_overrides[get_registries] = override_get_registries
    app.dependency_overrides[get_active_definition] = lambda: small_definition

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
