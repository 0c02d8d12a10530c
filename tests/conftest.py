import asyncio
import datetime as dt

import pytest

from config import Settings
from database import init_db, make_engine, make_sessionmaker
from models import Slot
from store import SlotStore


@pytest.fixture
def settings(tmp_path):
    # Each test gets its own database file; nothing is written to the repo root
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'schedule.db'}",
        seed_on_startup=False,
    )


@pytest.fixture
async def db_engine(settings):
    engine = make_engine(settings.database_url)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def open_store(db_engine):
    """Factory for stores on separate sessions.

    Stores share one write lock unless given their own, which stands in for
    a second worker process.
    """
    async_session = make_sessionmaker(db_engine)
    write_lock = asyncio.Lock()
    sessions = []

    def _open(store_class=SlotStore, lock=None):
        session = async_session()
        sessions.append(session)
        return store_class(session, lock or write_lock)

    yield _open

    for session in sessions:
        await session.close()


@pytest.fixture
async def store(open_store):
    return open_store()


@pytest.fixture
async def catalog(store):
    """Three slots: A and C free, B held by code 7781."""
    day = dt.date(2026, 3, 3)
    a = Slot(date=day, time="10:00", group_name="Группа 1")
    b = Slot(date=day, time="10:15", group_name="Группа 1", user_name="Petrov", secret_code="7781")
    c = Slot(date=day, time="10:30", group_name="Группа 1")
    await store.add_all([a, b, c])
    return {"A": a.id, "B": b.id, "C": c.id}
