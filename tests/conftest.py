import os

os.environ.setdefault("HP_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("HP_ENVIRONMENT", "test")
os.environ.setdefault("HP_ANTHROPIC_API_KEY", "test-key")

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from hirepipe.core.config import Settings
from hirepipe.db.session import build_sessionmaker, create_schema
from hirepipe.models import Assessment, Candidate
from tests.factories import FakeQueue, ScriptedLLM, make_assessment, make_candidate


@pytest.fixture()
def settings() -> Settings:
    return Settings(database_url="sqlite+aiosqlite:///:memory:", environment="test")


@pytest.fixture()
async def async_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
def sessionmaker(async_engine):
    return build_sessionmaker(async_engine)


@pytest.fixture()
async def db_session(sessionmaker):
    async with sessionmaker() as session:
        yield session
        await session.rollback()


@pytest.fixture()
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture()
def queue() -> FakeQueue:
    return FakeQueue()


@pytest.fixture()
async def assessment(db_session) -> Assessment:
    return await make_assessment(db_session)


@pytest.fixture()
async def candidate(db_session, assessment) -> Candidate:
    return await make_candidate(db_session, assessment)
