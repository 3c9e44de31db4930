# motor_telemetry/services/mqtt_subscriber.py
"""
MQTT subscriber. Receives telemetry packets from the broker and hands them
to the ingestion pipeline.

paho-mqtt runs its network loop in its own thread; on_message only moves the
payload onto the pipeline queue on the asyncio loop. If the queue stays full
for INGEST_ENQUEUE_TIMEOUT seconds the message is dropped so the network
thread can keep the connection alive.

Reconnection is paho's job (reconnect_delay_set). Subscriptions are made in
on_connect so they come back after every reconnect. Messages published while
disconnected are not replayed.
"""

import asyncio
import concurrent.futures
from typing import Optional
import paho.mqtt.client as mqtt
from motor_telemetry.config import settings
from motor_telemetry.services.ingestion_pipeline import IngestionPipeline
from motor_telemetry.utils.logger import get_logger

logger = get_logger(__name__)


class MqttSubscriber:
    def __init__(
        self,
        pipeline: IngestionPipeline,
        loop: asyncio.AbstractEventLoop,
        topic: Optional[str] = None,
        enqueue_timeout: Optional[float] = None,
    ):
        self.pipeline = pipeline
        self.loop = loop
        self.topic = topic or settings.MQTT_TOPIC
        self.enqueue_timeout = settings.INGEST_ENQUEUE_TIMEOUT if enqueue_timeout is None else enqueue_timeout
        self.client: Optional[mqtt.Client] = None
        self.stats = {"rx_total": 0, "rx_dropped": 0}

    def start(self) -> mqtt.Client:
        """Connect and start the network thread. Raises if the broker is unreachable."""
        client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=settings.MQTT_CLIENT_ID,
            clean_session=True,
        )
        client.enable_logger(logger)

        if settings.MQTT_USERNAME:
            client.username_pw_set(settings.MQTT_USERNAME, settings.MQTT_PASSWORD)
        if settings.MQTT_TLS:
            client.tls_set()

        client.reconnect_delay_set(min_delay=1, max_delay=30)
        client.on_connect = self._on_connect
        client.on_subscribe = self._on_subscribe
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message

        logger.info(
            f"Connecting to MQTT broker host={settings.MQTT_HOST} port={settings.MQTT_PORT} "
            f"user={'<set>' if settings.MQTT_USERNAME else '<none>'} topic={self.topic}"
        )
        client.connect(settings.MQTT_HOST, settings.MQTT_PORT, keepalive=settings.MQTT_KEEPALIVE)
        client.loop_start()
        self.client = client
        return client

    def stop(self):
        if self.client is None:
            return
        self.client.disconnect()
        self.client.loop_stop()
        self.client = None
        logger.info(
            f"MQTT subscriber stopped: received={self.stats['rx_total']} dropped={self.stats['rx_dropped']}"
        )

    async def shutdown(self):
        """
        Stop from the event loop thread.
        loop_stop() joins the network thread, which may be waiting in
        on_message for this loop to accept a payload, so the join must run
        off the loop.
        """
        await asyncio.to_thread(self.stop)

    # ── paho callbacks (network thread) ───────────────────────────────────

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            logger.error(f"MQTT connect failed: {reason_code}. Retrying…")
            return
        result, mid = client.subscribe(self.topic, qos=0)
        logger.info(f"MQTT connected. Subscribed to {self.topic} (result={result} mid={mid})")

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties):
        for rc in reason_code_list:
            if rc.is_failure:
                logger.warning(f"Subscription to {self.topic} rejected by broker: {rc}")

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        logger.warning(f"MQTT disconnected ({reason_code}). Reconnecting…")

    def _on_message(self, client, userdata, msg):
        self.stats["rx_total"] += 1
        logger.debug(f"Incoming MQTT message on {msg.topic} ({len(msg.payload)} bytes)")
        future = asyncio.run_coroutine_threadsafe(self.pipeline.submit(msg.payload), self.loop)
        try:
            future.result(timeout=self.enqueue_timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            self.stats["rx_dropped"] += 1
            logger.warning(
                f"Ingestion queue full for {self.enqueue_timeout}s, dropped message on {msg.topic}"
            )
        except Exception as e:
            self.stats["rx_dropped"] += 1
            logger.error(f"Could not enqueue message on {msg.topic}: {e}", exc_info=True)
