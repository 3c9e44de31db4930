# motor_telemetry/main.py
"""
FastAPI application entry point for the read-only telemetry query API.
Includes CORS for the dashboard, request timing, a global error handler,
and all routers. Ingestion runs separately (motor_telemetry.ingester).
"""

import time
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from motor_telemetry.routers import health, devices, metrics, anomalies, events
from motor_telemetry.database import create_tables, engine
from motor_telemetry.config import settings
from motor_telemetry.utils.logger import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="Motor Telemetry API",
    description="Query API over ingested motor-driver telemetry, anomalies and raw packets.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (allow the dashboard to poll the API) ───────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(health.router,    tags=["💚 Health"])
app.include_router(devices.router,   tags=["🔧 Devices"])
app.include_router(metrics.router,   tags=["📈 Metrics"])
app.include_router(anomalies.router, tags=["🚨 Anomalies"])
app.include_router(events.router,    tags=["📡 Raw Events"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Motor Telemetry API starting up...")
    await create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"🌐 Listening on http://{settings.API_HOST}:{settings.API_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Motor Telemetry API shutting down...")
    await engine.dispose()
