# This project was developed with assistance from AI tools.
"""Shared fixtures for API tests.

The app is used without its lifespan (no database, no scheduler start);
``get_engine`` and ``get_db`` are overridden per test and cleared afterwards.
"""

from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest
from db import get_db
from fastapi.testclient import TestClient

from src.core.config import settings
from src.core.engine import get_engine
from src.main import app as real_app
from src.schemas.auth import UserContext
from src.middleware.auth import get_current_user


@pytest.fixture(autouse=True)
def _auth_disabled(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", True)


@pytest.fixture(autouse=True)
def _clean_overrides():
    yield
    real_app.dependency_overrides.clear()


@pytest.fixture
def mock_session():
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_engine():
    engine = MagicMock()
    engine.tz = ZoneInfo("America/Guatemala")
    engine.pipeline.run = AsyncMock()
    engine.scheduler.run_manually = AsyncMock()
    engine.emitter.create_notification = AsyncMock()
    return engine


@pytest.fixture
def client(mock_engine, mock_session):
    """TestClient with the engine and DB session replaced by mocks."""

    async def _db():
        yield mock_session

    real_app.dependency_overrides[get_engine] = lambda: mock_engine
    real_app.dependency_overrides[get_db] = _db
    return TestClient(real_app)


@pytest.fixture
def as_user():
    """Switch the caller identity: ``as_user("emp-1", UserRole.EMPLOYEE)``."""

    def _set(user_id, role):
        user = UserContext(user_id=user_id, role=role, email=f"{user_id}@example.com", name=user_id)
        real_app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _set
