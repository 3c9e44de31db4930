"""Shared fixtures: a throwaway SQLite database per test."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from motor_telemetry.database import create_tables


@pytest_asyncio.fixture
async def engine(tmp_path):
    db_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'telemetry.db'}")
    await create_tables(bind=db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def count_rows(session_factory):
    """count_rows(Model) -> number of rows currently committed in that table."""
    async def _count(model):
        async with session_factory() as db:
            return (await db.execute(select(func.count()).select_from(model))).scalar_one()
    return _count

