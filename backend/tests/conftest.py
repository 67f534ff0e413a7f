import os

# the app module builds its engine at import time; keep it off PostgreSQL
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./.pytest-backoffice.db")
os.environ.setdefault("LOG_JSON", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker

from backoffice.db import Base, make_engine, get_session, get_session_factory
from backoffice.deps import get_domain_store
from backoffice.main import app
from backoffice.services.balance import ensure_balance, get_balance
from backoffice.services.settings_store import FlatFileStore
import backoffice.models.balance  # noqa: F401  register tables
import backoffice.models.ledger  # noqa: F401
import backoffice.models.voucher  # noqa: F401
import backoffice.models.withdrawal  # noqa: F401


@pytest_asyncio.fixture
async def sessions(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'backoffice.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def domain_store(tmp_path):
    return FlatFileStore(tmp_path / "settings" / "domain.json")


@pytest_asyncio.fixture
async def client(sessions, domain_store):
    async def _session():
        async with sessions() as s:
            yield s

    app.dependency_overrides[get_session_factory] = lambda: sessions
    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_domain_store] = lambda: domain_store
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def seed_balance(sessions, user_id: int, available: int = 0, frozen: int = 0):
    async with sessions() as s:
        async with s.begin():
            await ensure_balance(s, user_id, available=available, frozen=frozen)


async def read_balance(sessions, user_id: int) -> tuple[int, int]:
    async with sessions() as s:
        bal = await get_balance(s, user_id)
        return bal.available, bal.frozen
