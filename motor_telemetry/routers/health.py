# motor_telemetry/routers/health.py
"""
System health check endpoint.
Returns backend status and the database server time.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from motor_telemetry.database import get_db
from motor_telemetry.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", summary="System health check")
async def health_check(db: AsyncSession = Depends(get_db)):
    try:
        db_time = (await db.execute(select(func.now()))).scalar_one()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=500, content={"status": "error", "error": "DB unreachable"})
    return {"status": "ok", "db_time": str(db_time)}
