# motor_telemetry/routers/metrics.py
"""Per-device telemetry samples: latest reading and history for charts."""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from motor_telemetry.database import get_db
from motor_telemetry.models.telemetry_sample import TelemetrySample
from motor_telemetry.schemas.telemetry_sample import TelemetrySampleOut

router = APIRouter()


@router.get("/devices/{device_id}/metrics/latest", response_model=TelemetrySampleOut,
            summary="Most recent sample for a device")
async def get_latest_metrics(device_id: int, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(TelemetrySample)
        .where(TelemetrySample.device_id == device_id)
        .order_by(TelemetrySample.timestamp.desc(), TelemetrySample.id.desc())
        .limit(1)
    )
    sample = result.scalars().first()
    if not sample:
        raise HTTPException(status_code=404, detail="No metrics for this device")
    return sample


@router.get("/devices/{device_id}/metrics", response_model=list[TelemetrySampleOut],
            summary="Sample history, oldest first")
async def get_metrics(
    device_id: int,
    limit: int = Query(200, ge=1, le=10000),
    since: Optional[datetime] = None,
    db: AsyncSession = Depends(get_db),
):
    """
    With `since`: the first `limit` samples at or after it.
    Without: the newest `limit` samples. Both are returned in ascending time order.
    """
    q = select(TelemetrySample).where(TelemetrySample.device_id == device_id)
    if since is not None:
        q = (q.where(TelemetrySample.timestamp >= since)
             .order_by(TelemetrySample.timestamp.asc(), TelemetrySample.id.asc())
             .limit(limit))
        return (await db.execute(q)).scalars().all()

    q = q.order_by(TelemetrySample.timestamp.desc(), TelemetrySample.id.desc()).limit(limit)
    samples = (await db.execute(q)).scalars().all()
    return list(reversed(samples))
