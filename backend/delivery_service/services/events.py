"""
Delivery events and the emitter that hands them to the event sink.

Each event kind is a frozen dataclass with a fixed field set. The
emitter is the single point where the core touches the sink: it runs
after the unit of work has committed and never lets a sink failure
reach the caller.
"""
import logging
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, ClassVar, Optional, Protocol
from uuid import UUID

from delivery_service.core.config import settings
from delivery_service.core.metrics import record_event

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _wire(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class DomainEvent:
    """Base event. Subclasses declare `event_type` and `topics`."""

    event_type: ClassVar[str] = ""
    topics: ClassVar[tuple[str, ...]] = ()

    @property
    def partition_key(self) -> str:
        raise NotImplementedError

    def to_payload(self) -> dict[str, Any]:
        """camelCase wire representation consumed by the notification service."""
        payload: dict[str, Any] = {"eventType": self.event_type}
        for f in fields(self):
            payload[_camel(f.name)] = _wire(getattr(self, f.name))
        return payload


@dataclass(frozen=True)
class DeliveryEvent(DomainEvent):
    delivery_id: UUID
    order_id: int
    customer_id: int

    @property
    def partition_key(self) -> str:
        return str(self.delivery_id)


@dataclass(frozen=True)
class DeliveryCreated(DeliveryEvent):
    event_type: ClassVar[str] = "DELIVERY_CREATED"
    topics: ClassVar[tuple[str, ...]] = (settings.DELIVERY_EVENTS_TOPIC,)

    restaurant_id: int = 0
    pickup_address: str = ""
    delivery_address: str = ""
    estimated_delivery_time: Optional[float] = None
    status: str = "PENDING"
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class DeliveryAssigned(DeliveryEvent):
    event_type: ClassVar[str] = "DELIVERY_ASSIGNED"
    topics: ClassVar[tuple[str, ...]] = (
        settings.DELIVERY_EVENTS_TOPIC,
        settings.DELIVERY_STATUS_TOPIC,
    )

    agent_id: Optional[UUID] = None
    agent_name: str = ""
    agent_phone: str = ""
    status: str = "ASSIGNED"
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class DeliveryStatusUpdated(DeliveryEvent):
    event_type: ClassVar[str] = "DELIVERY_STATUS_UPDATED"
    topics: ClassVar[tuple[str, ...]] = (settings.DELIVERY_STATUS_TOPIC,)

    status: str = ""
    agent_name: Optional[str] = None
    agent_phone: Optional[str] = None
    estimated_delivery_time: Optional[float] = None
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class DeliveryCompleted(DeliveryEvent):
    event_type: ClassVar[str] = "DELIVERY_COMPLETED"
    topics: ClassVar[tuple[str, ...]] = (
        settings.DELIVERY_EVENTS_TOPIC,
        settings.DELIVERY_STATUS_TOPIC,
    )

    agent_name: str = ""
    status: str = "DELIVERED"
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class DeliveryCancelled(DeliveryEvent):
    event_type: ClassVar[str] = "DELIVERY_CANCELLED"
    topics: ClassVar[tuple[str, ...]] = (
        settings.DELIVERY_EVENTS_TOPIC,
        settings.DELIVERY_STATUS_TOPIC,
    )

    reason: Optional[str] = None
    status: str = "CANCELLED"
    timestamp: datetime = field(default_factory=_now)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["metadata"] = {"reason": payload.pop("reason")}
        return payload


@dataclass(frozen=True)
class AgentNotification(DomainEvent):
    """Agent-facing notification request routed through notification-events."""

    topics: ClassVar[tuple[str, ...]] = (settings.NOTIFICATION_EVENTS_TOPIC,)

    agent_id: UUID
    agent_name: str
    agent_email: str
    phone: str
    vehicle_type: str

    @property
    def partition_key(self) -> str:
        return str(self.agent_id)


@dataclass(frozen=True)
class AgentRegistered(AgentNotification):
    """Registration acknowledgment; the application is under review."""

    event_type: ClassVar[str] = "DELIVERY_AGENT_REGISTRATION"

    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class AgentInvited(AgentNotification):
    """Admin-created account; carries the invite token for the email link."""

    event_type: ClassVar[str] = "DELIVERY_AGENT_CREATION"

    invite_token: str = ""
    invite_expires_at: Optional[datetime] = None
    timestamp: datetime = field(default_factory=_now)


class EventPublisher(Protocol):
    """Event sink contract: fire-and-forget, no result observed by the core."""

    async def publish(self, topic: str, key: str, payload: dict[str, Any]) -> None:
        ...


class DeliveryEventEmitter:
    """
    Routes events to their topics on the configured publisher.

    Publisher errors are logged and counted here and never propagate.
    """

    def __init__(self, publisher: EventPublisher):
        self.publisher = publisher

    async def emit(self, event: DomainEvent) -> None:
        payload = event.to_payload()
        key = event.partition_key

        for topic in event.topics:
            try:
                await self.publisher.publish(topic, key, payload)
            except Exception:
                record_event(topic, "failed")
                logger.exception(
                    f"Error publishing {event.event_type} to topic {topic} with key {key}"
                )
            else:
                logger.debug(f"Published {event.event_type} to topic {topic} with key {key}")
