"""Shared test fixtures."""

from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cirrus.db.base import Base
# Import all models to register with Base.metadata
import cirrus.db.models  # noqa: F401
from cirrus.db.models.org import (
    OrganizationRow,
    QuotaDefinitionRow,
    SpaceDeveloperRow,
    SpaceRow,
    StackRow,
)
from cirrus.models.actor import Actor


@pytest.fixture
async def db_engine(tmp_path):
    """Create a file-backed SQLite async engine so sessions use separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cirrus_test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def platform(db_session):
    """Seed an org with a generous quota, two spaces, two stacks and a developer."""
    db_session.add_all([
        QuotaDefinitionRow(guid="quota-default", name="default", memory_limit=10240),
        StackRow(guid="stack-fs3", name="cflinuxfs3"),
        StackRow(guid="stack-fs4", name="cflinuxfs4"),
    ])
    await db_session.flush()
    db_session.add(OrganizationRow(guid="org-1", name="acme", quota_definition_guid="quota-default"))
    await db_session.flush()
    db_session.add_all([
        SpaceRow(guid="space-1", name="dev", organization_guid="org-1", allow_ssh=True, default_stack_name="cflinuxfs3"),
        SpaceRow(guid="space-2", name="prod", organization_guid="org-1", allow_ssh=False),
    ])
    await db_session.flush()
    db_session.add(SpaceDeveloperRow(space_guid="space-1", user_id="dev-user"))
    await db_session.commit()

    return SimpleNamespace(
        org_guid="org-1",
        space_guid="space-1",
        other_space_guid="space-2",
        developer=Actor(user_id="dev-user", email="dev@example.com"),
        admin=Actor(user_id="admin-user", email="admin@example.com", roles=frozenset({"admin"})),
        outsider=Actor(user_id="someone-else"),
    )


@pytest.fixture
def fetch(db_session):
    """Fetch rows straight from the store, bypassing stale identity-map state."""

    async def _fetch(model, **criteria):
        stmt = select(model).filter_by(**criteria).execution_options(populate_existing=True)
        result = await db_session.execute(stmt)
        return list(result.scalars().all())

    return _fetch


@pytest.fixture
def app(db_engine):
    """Create a test application instance backed by the test database."""
    from cirrus.main import create_app

    _app = create_app()
    _app.state.db_engine = db_engine
    _app.state.db_session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    _app.state.redis = None
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
