"""
Event sink implementations.

HttpEventPublisher relays events to the notification service:
- Bounded in-process queue, so publishing never waits on the network
- Background worker posting JSON with an HMAC-SHA256 signature
- Failures are logged and dropped; the core never retries
"""
import asyncio
import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from delivery_service.core.config import settings
from delivery_service.core.metrics import EVENT_QUEUE_DEPTH, record_event

logger = logging.getLogger(__name__)


@dataclass
class OutboundEvent:
    """Event waiting to be relayed."""

    topic: str
    key: str
    payload: dict[str, Any]


class HttpEventPublisher:
    """
    Relays events to the notification service over HTTP.

    Headers mirror a broker record: X-Event-Topic and X-Event-Key carry
    the topic and partition key; X-Event-Signature is
    sha256=<hmac(secret, "<timestamp>.<body>")>.
    """

    def __init__(
        self,
        url: str,
        secret: str = "",
        timeout: float = 5.0,
        maxsize: int = 1000,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.secret = secret
        self.timeout = timeout
        self._queue: asyncio.Queue[OutboundEvent] = asyncio.Queue(maxsize=maxsize)
        self._client = client
        self._owns_client = client is None
        self._worker: Optional[asyncio.Task] = None

    @staticmethod
    def generate_signature(secret: str, body: str, timestamp: int) -> str:
        """HMAC-SHA256 over "<timestamp>.<body>", hex encoded."""
        message = f"{timestamp}.{body}"
        return hmac.new(
            secret.encode("utf-8"),
            message.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    async def start(self) -> None:
        """Start the background relay worker."""
        if self._worker is not None:
            return
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        self._worker = asyncio.create_task(self._run(), name="event-publisher")
        logger.info(f"Event publisher started: url={self.url}")

    async def stop(self) -> None:
        """Flush queued events, then stop the worker."""
        if self._worker is not None:
            await self._queue.join()
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
        logger.info("Event publisher stopped")

    async def publish(self, topic: str, key: str, payload: dict[str, Any]) -> None:
        """Queue an event. Drops (and logs) it when the queue is full."""
        try:
            self._queue.put_nowait(OutboundEvent(topic=topic, key=key, payload=payload))
        except asyncio.QueueFull:
            record_event(topic, "dropped")
            logger.error(
                f"Event queue full, dropping event: topic={topic}, key={key}, "
                f"type={payload.get('eventType')}"
            )
            return

        record_event(topic, "queued")
        EVENT_QUEUE_DEPTH.set(self._queue.qsize())

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._send(event)
            except Exception:
                record_event(event.topic, "failed")
                logger.exception(
                    f"Error publishing event to topic {event.topic} with key {event.key}"
                )
            finally:
                self._queue.task_done()
                EVENT_QUEUE_DEPTH.set(self._queue.qsize())

    async def _send(self, event: OutboundEvent) -> None:
        body = json.dumps(event.payload, default=str)
        timestamp = int(time.time())

        headers = {
            "Content-Type": "application/json",
            "X-Event-Topic": event.topic,
            "X-Event-Key": event.key,
            "X-Event-Timestamp": str(timestamp),
            "User-Agent": f"{settings.APP_NAME}/{settings.APP_VERSION}",
        }
        if self.secret:
            signature = self.generate_signature(self.secret, body, timestamp)
            headers["X-Event-Signature"] = f"sha256={signature}"

        response = await self._client.post(self.url, content=body, headers=headers)

        if response.status_code >= 400:
            record_event(event.topic, "failed")
            logger.error(
                f"Event sink rejected event: topic={event.topic}, key={event.key}, "
                f"status={response.status_code}"
            )
            return

        record_event(event.topic, "sent")
        logger.debug(f"Event published to topic {event.topic} with key {event.key}")


class LoggingEventPublisher:
    """Used when EVENTS_ENABLED is off: events are only logged."""

    async def publish(self, topic: str, key: str, payload: dict[str, Any]) -> None:
        record_event(topic, "logged")
        logger.info(f"Event (not relayed): topic={topic}, key={key}, payload={payload}")


class InMemoryEventPublisher:
    """Keeps published events in a list, in order."""

    def __init__(self):
        self.published: list[OutboundEvent] = []

    async def publish(self, topic: str, key: str, payload: dict[str, Any]) -> None:
        self.published.append(OutboundEvent(topic=topic, key=key, payload=payload))

    def event_types(self, topic: Optional[str] = None) -> list[str]:
        return [
            e.payload["eventType"]
            for e in self.published
            if topic is None or e.topic == topic
        ]

    def clear(self) -> None:
        self.published.clear()


def build_event_publisher():
    """Create the publisher configured by settings."""
    if not settings.EVENTS_ENABLED:
        return LoggingEventPublisher()
    return HttpEventPublisher(
        url=settings.EVENT_SINK_URL,
        secret=settings.EVENT_SIGNING_SECRET,
        timeout=settings.EVENT_TIMEOUT_SECONDS,
        maxsize=settings.EVENT_QUEUE_MAXSIZE,
    )
