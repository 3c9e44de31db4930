# motor_telemetry/services/ingestion_pipeline.py
"""
Ingestion pipeline: routes every inbound telemetry message through
decode → device resolution → classification → persistence.

Messages are queued and handled by a small pool of asyncio workers. Every
failure is contained to the message that caused it: the message is dropped,
logged, counted, and the next one is processed normally.
"""

import asyncio
from enum import Enum
from typing import Union
from motor_telemetry.services.anomaly_classifier import classify
from motor_telemetry.services.device_registry import DeviceRegistry, DeviceResolutionError
from motor_telemetry.services.persistence_writer import PersistenceWriter
from motor_telemetry.services.telemetry_decoder import TelemetryDecodeError, decode_payload
from motor_telemetry.utils.logger import get_logger

logger = get_logger(__name__)


class MessageOutcome(str, Enum):
    PERSISTED = "persisted"
    DROPPED_DECODE = "dropped_decode"
    DROPPED_RESOLUTION = "dropped_resolution"
    DROPPED_WRITE = "dropped_write"
    DROPPED_ERROR = "dropped_error"


class IngestionPipeline:
    def __init__(
        self,
        registry: DeviceRegistry,
        writer: PersistenceWriter,
        default_device_name: str,
        workers: int = 4,
        queue_size: int = 1000,
        stats_every: int = 100,
    ):
        self.registry = registry
        self.writer = writer
        self.default_device_name = default_device_name
        self.worker_count = max(1, workers)
        self.stats_every = stats_every

        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.worker_tasks: list[asyncio.Task] = []
        self.running = False
        self.stats = {
            "received": 0,
            "persisted": 0,
            "dropped_decode": 0,
            "dropped_resolution": 0,
            "dropped_write": 0,
            "dropped_error": 0,
            "anomalies": 0,
        }

    # ── Per-message handling ──────────────────────────────────────────────

    async def handle_message(self, payload: Union[bytes, str]) -> MessageOutcome:
        """Process one message end to end. Never raises."""
        self.stats["received"] += 1
        try:
            outcome = await self._process(payload)
        except Exception as e:
            logger.error(f"Unexpected error while handling telemetry: {e}", exc_info=True)
            outcome = MessageOutcome.DROPPED_ERROR

        self.stats[outcome.value] += 1
        if self.stats_every and self.stats["received"] % self.stats_every == 0:
            logger.info(
                "Ingestion counters: " + ", ".join(f"{k}={v}" for k, v in self.stats.items())
            )
        return outcome

    async def _process(self, payload: Union[bytes, str]) -> MessageOutcome:
        try:
            reading = decode_payload(payload, self.default_device_name)
        except TelemetryDecodeError as e:
            logger.warning(f"Failed to parse telemetry payload: {e}")
            return MessageOutcome.DROPPED_DECODE

        try:
            device_id = await self.registry.resolve(reading.device_name)
        except DeviceResolutionError as e:
            logger.error(f"Failed to resolve device_id for device_name='{reading.device_name}': {e}")
            return MessageOutcome.DROPPED_RESOLUTION

        result = classify(reading)

        if not await self.writer.write(device_id, reading, reading.raw, result.flags):
            logger.error(f"[{reading.device_name}] Telemetry dropped after write failure")
            return MessageOutcome.DROPPED_WRITE

        logger.info(
            f"[{reading.device_name}] Stored telemetry: rpm={reading.rpm}, "
            f"target={reading.target_rpm}, pwm={reading.pwm}, status={result.status}"
        )
        active = result.active_flags()
        if active:
            self.stats["anomalies"] += len(active)
            logger.warning(f"[{reading.device_name}] Anomalies recorded: {', '.join(active)}")
        return MessageOutcome.PERSISTED

    # ── Worker pool ───────────────────────────────────────────────────────

    async def start(self):
        """Launch the worker tasks consuming the message queue."""
        if self.running:
            logger.warning("Ingestion pipeline already running")
            return
        self.running = True
        self.worker_tasks = [
            asyncio.create_task(self._run_worker(i + 1), name=f"ingest-worker-{i + 1}")
            for i in range(self.worker_count)
        ]
        logger.info(f"Ingestion pipeline started with {self.worker_count} workers")

    async def submit(self, payload: Union[bytes, str]):
        """Queue a message for the workers. Waits while the queue is full."""
        await self.queue.put(payload)

    async def join(self):
        """Wait until every queued message has been handled."""
        await self.queue.join()

    async def stop(self, drain: bool = True):
        """Stop the workers, by default after the queue is drained."""
        if not self.running:
            return
        if drain:
            await self.queue.join()
        self.running = False
        for task in self.worker_tasks:
            task.cancel()
        await asyncio.gather(*self.worker_tasks, return_exceptions=True)
        self.worker_tasks.clear()
        logger.info(
            "Ingestion pipeline stopped: " + ", ".join(f"{k}={v}" for k, v in self.stats.items())
        )

    async def _run_worker(self, worker_no: int):
        while True:
            payload = await self.queue.get()
            try:
                await self.handle_message(payload)
            except Exception as e:
                logger.error(f"Ingest worker {worker_no} failed on a message: {e}", exc_info=True)
            finally:
                self.queue.task_done()
