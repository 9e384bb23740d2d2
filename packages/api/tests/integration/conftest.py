# This project was developed with assistance from AI tools.
"""Integration test fixtures -- real PostgreSQL, no mocks.

A session-scoped container (started once per test run) provides a real
PostgreSQL instance migrated with alembic. Function-scoped fixtures give
each test an isolated DB session with savepoint rollback so tests don't
leak state. Tests that need real commits from several connections use
``committed_sessions`` and truncate afterwards.
"""

import os

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer

# ---------------------------------------------------------------------------
# Mark all tests in this directory as integration
# ---------------------------------------------------------------------------
pytestmark = pytest.mark.integration

_DB_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "..", "db")


# ---------------------------------------------------------------------------
# Session-scoped: container + engine + migrations
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def pg_container():
    """Start postgres:16 via testcontainers."""
    with PostgresContainer(
        image="postgres:16",
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
def alembic_config(sync_db_url):
    from alembic.config import Config

    cfg = Config(os.path.join(_DB_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(_DB_DIR, "alembic"))
    cfg.set_main_option("sqlalchemy.url", sync_db_url)
    return cfg


@pytest.fixture(scope="session", autouse=True)
def _run_migrations(sync_db_url, alembic_config):
    """Run alembic upgrade head against the test container."""
    from alembic import command

    os.environ["DATABASE_URL"] = sync_db_url
    command.upgrade(alembic_config, "head")


@pytest.fixture(scope="session")
def async_engine(db_url, _run_migrations):
    """Create an async engine pointing at the test container."""
    engine = create_async_engine(db_url, echo=False, poolclass=NullPool)
    yield engine


@pytest.fixture(scope="session", autouse=True)
def _patch_db_module(async_engine):
    """Point db.database globals at the test database.

    ``src.main`` is imported during collection, before any fixture runs, so
    the health endpoint's DatabaseService singleton is replaced here.
    """
    import db.database as db_mod

    test_session_factory = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    db_mod.engine = async_engine
    db_mod.SessionLocal = test_session_factory
    db_mod._db_service = db_mod.DatabaseService(session_factory=test_session_factory)


# ---------------------------------------------------------------------------
# Function-scoped: per-test session with savepoint rollback
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_session(async_engine):
    """Per-test DB session with savepoint rollback.

    Service ``commit()`` calls release a savepoint; the outer transaction is
    rolled back at teardown.
    """
    conn = await async_engine.connect()
    txn = await conn.begin()
    session = AsyncSession(
        bind=conn,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
        autoflush=False,
    )
    yield session
    await session.close()
    await txn.rollback()
    await conn.close()


@pytest_asyncio.fixture
async def committed_sessions(async_engine):
    """Factory for independent sessions that really commit.

    Each call opens a session on its own connection. Tables are truncated at
    teardown; TRUNCATE bypasses the activity log's row-level triggers.
    """
    factory = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    opened = []

    def _open() -> AsyncSession:
        session = factory()
        opened.append(session)
        return session

    yield _open

    for session in opened:
        await session.close()
    async with async_engine.begin() as conn:
        await conn.execute(text("TRUNCATE applications, activity_log RESTART IDENTITY CASCADE"))


@pytest.fixture
def make_ready_application():
    """Create an application through the service layer and fill it to submittable."""
    return _make_ready_application


@pytest.fixture
def client_factory(db_session):
    """Factory returning an async httpx client with dependency overrides."""
    import db.database as db_mod
    from db.database import get_db, get_db_service

    from src.main import app
    from src.middleware.auth import get_current_user

    async def _make(user):
        async def _get_db():
            yield db_session

        async def _get_current_user(request=None):
            return user

        async def _get_db_service():
            return db_mod.get_db_service()

        app.dependency_overrides[get_db] = _get_db
        app.dependency_overrides[get_current_user] = _get_current_user
        app.dependency_overrides[get_db_service] = _get_db_service
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        return httpx.AsyncClient(transport=transport, base_url="http://test")

    yield _make

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Application helpers
# ---------------------------------------------------------------------------


async def _make_ready_application(session, user, transaction_type):
    from db.enums import DocumentCategory

    from src.services import application as app_service

    snapshot = await app_service.create_application(session, user, transaction_type)
    for section in snapshot.sections:
        if section.is_required:
            await app_service.update_section(session, user, snapshot.id, section.section_key, True)
    for disclosure in snapshot.disclosures:
        await app_service.acknowledge_disclosure(session, user, snapshot.id, disclosure.disclosure_type)
    return await app_service.add_document(
        session, user, snapshot.id, DocumentCategory.GOVERNMENT_ID, "passport.pdf",
    )
