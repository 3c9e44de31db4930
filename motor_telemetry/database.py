# motor_telemetry/database.py
"""
Database connection, session management, and table creation.
Uses the SQLAlchemy asyncio extension (asyncpg on PostgreSQL). All models are
auto-imported here so create_tables() creates every table in one call.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from motor_telemetry.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,          # Auto-reconnect if DB connection drops
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    echo=settings.DB_ECHO,
)

AsyncSessionLocal = async_sessionmaker(engine, autoflush=False, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    """FastAPI dependency — yields a DB session and closes it after request."""
    async with AsyncSessionLocal() as db:
        yield db


async def check_connection(bind: AsyncEngine = engine):
    """Round-trip a trivial query. Raises if the database is unreachable."""
    async with bind.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def create_tables(bind: AsyncEngine = engine):
    """
    Creates all DB tables. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from motor_telemetry.models.device import Device                        # noqa
    from motor_telemetry.models.telemetry_sample import TelemetrySample     # noqa
    from motor_telemetry.models.raw_event import RawEvent                   # noqa
    from motor_telemetry.models.anomaly_event import AnomalyEvent           # noqa

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
