# tests/conftest.py
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from serilovers import database
from serilovers.database import Base, enable_sqlite_foreign_keys, get_session
from serilovers.main import app
from serilovers.models import Episode, EpisodeProgress, Season, Series
from serilovers.progress import progress
from serilovers.services import backfill as backfill_service


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    """
    Test-scoped SQLite database in a temp file.
    Every test starts with freshly created tables.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'serilovers-test.db'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine, monkeypatch) -> async_sessionmaker[AsyncSession]:
    """Point every module-level session factory at the test database."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(database, "async_session", factory)
    monkeypatch.setattr(backfill_service, "async_session", factory)
    return factory


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncIterator[AsyncClient]:
    """HTTP client for the app, using the test database."""
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_progress():
    progress.finish()
    yield
    progress.finish()


@pytest.fixture
def make_series(session):
    """Create a series whose seasons hold the given number of episodes."""
    async def _make(title: str = "Test Series", seasons: tuple[int, ...] = (10,)):
        series = Series(title=title)
        session.add(series)
        await session.flush()

        episodes = []
        for season_number, episode_count in enumerate(seasons, start=1):
            season = Season(series_id=series.id, season_number=season_number, title=f"Season {season_number}")
            session.add(season)
            await session.flush()
            for episode_number in range(1, episode_count + 1):
                episode = Episode(
                    season_id=season.id,
                    episode_number=episode_number,
                    title=f"Episode {episode_number}"
                )
                session.add(episode)
                episodes.append(episode)

        await session.commit()
        return series, episodes

    return _make


@pytest.fixture
def mark_watched(session):
    """Add completion facts for a user."""
    async def _mark(user_id: int, episodes, is_completed: bool = True):
        for episode in episodes:
            session.add(EpisodeProgress(user_id=user_id, episode_id=episode.id, is_completed=is_completed))
        await session.commit()

    return _mark
