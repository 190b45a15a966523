from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import event, Result, CursorResult
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine

import config
from models.base import Base

"""
Imports of these models are needed to correctly create tables in the database.
For more information see https://stackoverflow.com/questions/7478403/sqlalchemy-classes-across-files
"""
from models.order import Order
from models.distribution_request import DistributionRequest
from models.distributor import Distributor

# SQLAlchemy logging configuration
# HARD DISABLE SQL echo - the storefront logs at the repository level instead
sql_echo = False

url = config.DB_URL
engine = create_async_engine(url, echo=sql_echo)
session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Note: SQLAlchemy/aiosqlite logger configuration lives in utils/logging_config.py

if url.startswith("sqlite+aiosqlite:///data/"):
    data_folder = Path("data")
    if data_folder.exists() is False:
        data_folder.mkdir()


@asynccontextmanager
async def get_db_session() -> AsyncSession:
    session = None
    try:
        async with session_maker() as async_session:
            session = async_session
            yield session
    finally:
        if session is not None:
            await session.close()


async def session_execute(stmt, session: AsyncSession) -> Result[Any] | CursorResult[Any]:
    query_result = await session.execute(stmt)
    return query_result


async def session_flush(session: AsyncSession) -> None:
    await session.flush()


async def session_commit(session: AsyncSession) -> None:
    await session.commit()


async def session_refresh(session: AsyncSession, instance) -> None:
    await session.refresh(instance)


def enable_sqlite_foreign_keys(async_engine: AsyncEngine) -> None:
    """SQLite ships with foreign keys off; turn them on for every new connection. Other backends are left alone."""
    if async_engine.dialect.name != "sqlite":
        return

    @event.listens_for(async_engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


enable_sqlite_foreign_keys(engine)


async def create_db_and_tables(drop_existing: bool = False):
    """
    Create all tables.

    Existing tables are left untouched unless drop_existing is set
    (used by the admin init-database endpoint).
    """
    async with engine.begin() as conn:
        if drop_existing:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
