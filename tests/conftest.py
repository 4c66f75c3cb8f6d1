from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlalchemy.pool import StaticPool

import progress_engine.models  # noqa: F401 - register with Base
from progress_engine.config import Settings
from progress_engine.database import Base, get_async_engine, get_async_session_factory, get_db
from progress_engine.dependencies import get_settings
from progress_engine.repository import SqlAlchemyRepository
from tests.factories import INTERNAL_TOKEN
from tests.fakes import Clock, InMemoryRepository

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def fake_repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    # One shared in-memory connection so every session sees the same tables
    engine = get_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = get_async_session_factory(engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
def sql_repo(db_session: AsyncSession) -> SqlAlchemyRepository:
    return SqlAlchemyRepository(db_session)


@pytest_asyncio.fixture
async def async_client(engine: AsyncEngine) -> AsyncGenerator[AsyncClient, None]:
    from progress_engine.main import create_app

    factory = get_async_session_factory(engine)

    async def _get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: Settings(
        database_url=TEST_DATABASE_URL, internal_api_token=INTERNAL_TOKEN
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
