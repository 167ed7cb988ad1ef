"""pytest fixtures for mockjson backend tests.

Provides:
- utc_timezone: Autouse fixture enforcing UTC timezone
- session_factory: Function-scoped SQLite database (aiosqlite) with tables created
- session: Function-scoped database session
- uow_factory: Function-scoped UnitOfWork factory
- settings: Test settings (no retry delay, default limits)
- user / pro_user: Seeded users
- ScriptedProvider / orchestrator: Generation providers with canned outcomes
- test_client: AsyncClient driving the FastAPI app with app.state injected
"""

import os

# App module builds Settings at import time
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from typing import Any, AsyncGenerator, Optional, Union  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import mockjson.models  # noqa: E402, F401
from mockjson.core.config import Settings  # noqa: E402
from mockjson.core.database import setup_db_session  # noqa: E402
from mockjson.models.user import User  # noqa: E402
from mockjson.services.generation.orchestrator import FallbackOrchestrator  # noqa: E402
from mockjson.services.generation.providers import GenerationProvider  # noqa: E402
from mockjson.services.rate_limiter import SlidingWindowRateLimiter  # noqa: E402
from mockjson.uow import create_uow_factory  # noqa: E402

FRUITS_JSON = '[{"id":1,"name":"Apple"},{"id":2,"name":"Banana"},{"id":3,"name":"Cherry"}]'


class ScriptedProvider(GenerationProvider):
    """Provider returning a fixed text or raising a fixed error, counting calls."""

    def __init__(self, name: str, outcome: Union[str, Exception]):
        self.name = name
        self.outcome = outcome
        self.calls = 0
        self.last_prompt: Optional[str] = None
        self.last_metadata: Optional[dict[str, Any]] = None

    async def generate(self, prompt, objects_count, metadata=None) -> str:
        self.calls += 1
        self.last_prompt = prompt
        self.last_metadata = metadata
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture(scope="session", autouse=True)
def utc_timezone():
    """Enforce UTC timezone for all tests."""
    os.environ["TZ"] = "UTC"
    yield


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'mockjson_test.db'}"


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_url):
    """Fresh database file per test with all tables created from SQLModel metadata."""
    factory = setup_db_session(db_url)
    engine = factory.kw["bind"]
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield factory

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide function-scoped database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def uow_factory(session_factory):
    """Provide function-scoped UnitOfWork factory over the test database."""
    return create_uow_factory(session_factory)


@pytest.fixture
def settings(db_url) -> Settings:
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        DATABASE_URL=db_url,
        APP_ENV="test",
        GEMINI_API_KEY="test-key",
        PROVIDER_RETRY_BASE_DELAY=0,
    )


@pytest_asyncio.fixture
async def user(session) -> User:
    """Free-tier user with the default balance."""
    user = User(email="free@example.com", credits=1000)
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def pro_user(session) -> User:
    user = User(email="pro@example.com", is_pro=True, credits=10000)
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
def orchestrator() -> FallbackOrchestrator:
    """Single provider answering with three fruits."""
    return FallbackOrchestrator([ScriptedProvider("fake-model", FRUITS_JSON)])


@pytest_asyncio.fixture
async def test_client(session_factory, uow_factory, settings, orchestrator):
    """Provide AsyncClient for testing API endpoints with database access."""
    from mockjson.app import app

    # Lifespan does not run under ASGITransport; inject what it would set up
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.uow_factory = uow_factory
    app.state.orchestrator = orchestrator
    app.state.rate_limiter = SlidingWindowRateLimiter(
        limit=settings.live_burst_limit,
        window_seconds=settings.live_burst_window_seconds,
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
