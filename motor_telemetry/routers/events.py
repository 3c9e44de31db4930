# motor_telemetry/routers/events.py
"""
Raw telemetry event log viewer.
GET /devices/{device_id}/events: verbatim packets as received, newest first.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from motor_telemetry.database import get_db
from motor_telemetry.models.raw_event import RawEvent
from motor_telemetry.schemas.raw_event import RawEventOut

router = APIRouter()


@router.get("/devices/{device_id}/events", response_model=list[RawEventOut],
            summary="Raw telemetry packets for a device")
async def list_events(
    device_id: int,
    limit: int = Query(200, ge=1, le=5000),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(RawEvent)
        .where(RawEvent.device_id == device_id)
        .order_by(RawEvent.created_at.desc(), RawEvent.event_id.desc())
        .limit(limit)
    )
    return result.scalars().all()
