from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from swiss_travel.core.config import settings
from swiss_travel.core.errors import StoreError


# ── Base ───────────────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    pass


# ── Engine ─────────────────────────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    echo=settings.APP_ENV == "development",
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
)

# ── Session factory ────────────────────────────────────────────────────────────
async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Repository sessions ────────────────────────────────────────────────────────
@asynccontextmanager
async def store_session(
    session_maker: async_sessionmaker[AsyncSession],
    table: str,
) -> AsyncIterator[AsyncSession]:
    """One session per store operation; driver and connection errors become StoreError."""
    try:
        async with session_maker() as db:
            yield db
    except (SQLAlchemyError, OSError) as exc:
        raise StoreError(f"{table}: {exc}") from exc
