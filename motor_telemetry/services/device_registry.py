# motor_telemetry/services/device_registry.py
"""
Device registry: resolves a device name to its numeric device_id.

Lookups go cache → devices table → insert. The cache is owned by the
registry instance and is only a shortcut; the unique constraint on
devices.name is what guarantees one row per name. A per-name asyncio.Lock
coalesces concurrent first sightings inside this process, and an
IntegrityError on insert (another process won the race) falls back to
re-reading the winner's row.
"""

import asyncio
from datetime import datetime
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from motor_telemetry.models.device import Device
from motor_telemetry.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_DESCRIPTION = "Telemetry device"


class DeviceResolutionError(RuntimeError):
    """Device id could not be looked up or created."""


class DeviceRegistry:
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory
        self._cache: dict[str, int] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def cached(self, name: str) -> Optional[int]:
        return self._cache.get(name)

    async def resolve(self, name: str) -> int:
        """Return the device_id for name, creating the device on first sight."""
        device_id = self._cache.get(name)
        if device_id is not None:
            return device_id

        lock = self._locks.setdefault(name, asyncio.Lock())
        try:
            async with lock:
                device_id = self._cache.get(name)
                if device_id is not None:
                    return device_id
                try:
                    device_id = await self._lookup_or_create(name)
                except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
                    # asyncpg connect failures surface as raw OSError, not DBAPIError
                    raise DeviceResolutionError(f"Could not resolve device '{name}': {e}") from e
                self._cache[name] = device_id
        finally:
            self._locks.pop(name, None)
        return device_id

    async def _lookup_or_create(self, name: str) -> int:
        async with self._session_factory() as db:
            device_id = await self._find(db, name)
            if device_id is not None:
                logger.info(f"Found device '{name}' with id={device_id}")
                return device_id

            device = Device(name=name, description=DEFAULT_DESCRIPTION, created_at=datetime.utcnow())
            db.add(device)
            try:
                await db.flush()
                device_id = device.device_id
                await db.commit()
            except IntegrityError:
                await db.rollback()
                device_id = await self._find(db, name)
                if device_id is None:
                    raise DeviceResolutionError(
                        f"Insert of device '{name}' conflicted but no existing row was found"
                    )
                logger.info(f"Device '{name}' created concurrently elsewhere, using id={device_id}")
                return device_id

            logger.info(f"Created device '{name}' with id={device_id}")
            return device_id

    @staticmethod
    async def _find(db: AsyncSession, name: str) -> Optional[int]:
        result = await db.execute(select(Device.device_id).where(Device.name == name))
        return result.scalar_one_or_none()
