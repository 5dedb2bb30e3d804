# This project was developed with assistance from AI tools.
"""Integration test fixtures -- real PostgreSQL, no mocks.

A session-scoped container provides PostgreSQL with the Alembic schema
applied. The store and emitter open and commit their own sessions, so each
test gets a fresh session factory and every table is truncated afterwards.
"""

import os

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer

pytestmark = pytest.mark.integration

_DB_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "..", "db")


# ---------------------------------------------------------------------------
# Session-scoped: container + migrations + engine
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def pg_container():
    """Start postgres:16-alpine via testcontainers."""
    with PostgresContainer(
        image="postgres:16-alpine",
        username="test",
        password="test",
        dbname="test",
    ) as pg:
        yield pg


@pytest.fixture(scope="session")
def db_url(pg_container):
    """Async DB URL for asyncpg."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql+asyncpg://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def sync_db_url(pg_container):
    """Sync DB URL for Alembic (psycopg2)."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def _run_migrations(sync_db_url):
    """alembic upgrade head against the container."""
    from alembic import command
    from alembic.config import Config

    os.environ["DATABASE_URL"] = sync_db_url
    alembic_cfg = Config(os.path.join(_DB_DIR, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(_DB_DIR, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", sync_db_url)
    command.upgrade(alembic_cfg, "head")


@pytest.fixture(scope="session")
def async_engine(db_url, _run_migrations):
    engine = create_async_engine(db_url, echo=False, poolclass=NullPool)
    yield engine


# ---------------------------------------------------------------------------
# Function-scoped: session factory + cleanup
# ---------------------------------------------------------------------------


@pytest.fixture
def session_factory(async_engine):
    """Factory shaped like db.SessionLocal, bound to the test container."""
    return async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(autouse=True)
async def truncate_all(async_engine):
    """Yield-based: truncates all tables after the test completes."""
    yield
    async with async_engine.begin() as conn:
        await conn.execute(
            text(
                "TRUNCATE TABLE notifications, document_reminders, document_requirements, "
                "documents, document_types, user_profiles RESTART IDENTITY CASCADE"
            )
        )


# ---------------------------------------------------------------------------
# Seed data helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def seed(session_factory):
    """Insert ORM rows in one committed transaction; returns them refreshed."""

    async def _seed(*rows):
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()
            for row in rows:
                await session.refresh(row)
        return rows

    return _seed


@pytest_asyncio.fixture
async def people(seed):
    """One employee and one active admin."""
    from db.enums import UserRole
    from db.models import UserProfile

    employee = UserProfile(
        id="emp-1",
        first_name="Ana",
        last_name="López",
        email="ana@example.com",
        department="Ventas",
        role=UserRole.EMPLOYEE,
    )
    admin = UserProfile(
        id="admin-1",
        first_name="Luis",
        last_name="Pérez",
        email="luis@example.com",
        role=UserRole.ADMIN,
    )
    await seed(employee, admin)
    return employee, admin


@pytest_asyncio.fixture
async def license_policy(seed, people):
    """Policy with reminder_before_days=30 and urgent_reminder_days=7."""
    from db.models import DocumentType

    (policy,) = await seed(
        DocumentType(
            name="Licencia de conducir",
            validity_period_months=12,
            reminder_before_days=30,
            urgent_reminder_days=7,
        )
    )
    return policy
