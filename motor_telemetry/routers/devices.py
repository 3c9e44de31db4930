# motor_telemetry/routers/devices.py
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from motor_telemetry.database import get_db
from motor_telemetry.models.device import Device
from motor_telemetry.schemas.device import DeviceOut

router = APIRouter()


@router.get("/devices", response_model=list[DeviceOut], summary="All known devices")
async def list_devices(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Device).order_by(Device.device_id.asc()))
    return result.scalars().all()
