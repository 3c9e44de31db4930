# motor_telemetry/ingester.py
"""
Ingester process entry point.
Subscribes to the MQTT telemetry topic and stores every packet until stopped
with SIGINT/SIGTERM.

Usage: python -m motor_telemetry.ingester   (or: motor-telemetry-ingester)
"""

import asyncio
import signal
import sys
from motor_telemetry.config import settings
from motor_telemetry.database import AsyncSessionLocal, check_connection, create_tables, engine
from motor_telemetry.services.device_registry import DeviceRegistry
from motor_telemetry.services.ingestion_pipeline import IngestionPipeline
from motor_telemetry.services.mqtt_subscriber import MqttSubscriber
from motor_telemetry.services.persistence_writer import PersistenceWriter
from motor_telemetry.utils.logger import get_logger

logger = get_logger(__name__)


async def run_ingester():
    logger.info("🚀 Motor telemetry ingester starting up...")
    await check_connection()
    await create_tables()
    logger.info("✅ Database tables ready")

    pipeline = IngestionPipeline(
        registry=DeviceRegistry(AsyncSessionLocal),
        writer=PersistenceWriter(AsyncSessionLocal),
        default_device_name=settings.DEVICE_NAME,
        workers=settings.INGEST_WORKERS,
        queue_size=settings.INGEST_QUEUE_SIZE,
        stats_every=settings.INGEST_STATS_EVERY,
    )
    await pipeline.start()

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:  # Windows
            pass

    subscriber = MqttSubscriber(pipeline, loop)
    try:
        subscriber.start()
        logger.info(f"📡 Listening on {settings.MQTT_TOPIC} (default device '{settings.DEVICE_NAME}')")
        await stop_event.wait()
        logger.info("🛑 Motor telemetry ingester shutting down...")
    finally:
        await subscriber.shutdown()
        await pipeline.stop()
        await engine.dispose()


def main():
    try:
        asyncio.run(run_ingester())
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.critical(f"Startup error, quitting: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
