# motor_telemetry/routers/anomalies.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from motor_telemetry.database import get_db
from motor_telemetry.models.anomaly_event import AnomalyEvent
from motor_telemetry.schemas.anomaly_event import AnomalyEventOut

router = APIRouter()


@router.get("/devices/{device_id}/anomalies", response_model=list[AnomalyEventOut],
            summary="Anomaly events for a device, newest first")
async def get_anomalies(
    device_id: int,
    limit: int = Query(100, ge=1, le=5000),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(AnomalyEvent)
        .where(AnomalyEvent.device_id == device_id)
        .order_by(AnomalyEvent.timestamp.desc(), AnomalyEvent.anomaly_id.desc())
        .limit(limit)
    )
    return result.scalars().all()
