from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from typing import AsyncGenerator
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from backoffice.config import settings

class Base(DeclarativeBase):
    pass

def make_engine(url: str, *, statement_timeout_ms: int = 0) -> AsyncEngine:
    if url.startswith("sqlite"):
        return create_async_engine(url, future=True, echo=False, connect_args={"check_same_thread": False})

    eng = create_async_engine(url, future=True, echo=False, pool_pre_ping=True)
    if statement_timeout_ms > 0:
        # bound worst-case latency; a timed-out statement surfaces as DBAPIError
        @event.listens_for(eng.sync_engine, "connect")
        def _set_timeout(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute(f"SET statement_timeout = {int(statement_timeout_ms)}")
            cur.close()
    return eng

engine = make_engine(settings.database_url, statement_timeout_ms=settings.db_statement_timeout_ms)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session

def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return SessionLocal

def utcnow() -> datetime:
    return datetime.now(dt_tz.utc)
