"""
Tests for event payloads and the emitter.
"""
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from delivery_service.core.config import settings
from delivery_service.models.delivery import DeliveryStatus
from delivery_service.services.delivery_ledger import DeliveryLedger
from delivery_service.services.events import (
    AgentInvited,
    DeliveryAssigned,
    DeliveryCancelled,
    DeliveryCreated,
    DeliveryEventEmitter,
)


class FailingPublisher:
    """Sink that is always down."""

    def __init__(self):
        self.calls = 0

    async def publish(self, topic, key, payload):
        self.calls += 1
        raise ConnectionError("sink unavailable")


class TestPayloads:
    """Wire format of events."""

    def test_created_payload_is_camel_case(self):
        delivery_id = uuid4()
        event = DeliveryCreated(
            delivery_id=delivery_id,
            order_id=1,
            customer_id=2,
            restaurant_id=3,
            pickup_address="A",
            delivery_address="B",
            estimated_delivery_time=30.0,
        )

        payload = event.to_payload()

        assert payload["eventType"] == "DELIVERY_CREATED"
        assert payload["deliveryId"] == str(delivery_id)
        assert payload["restaurantId"] == 3
        assert payload["pickupAddress"] == "A"
        assert payload["estimatedDeliveryTime"] == 30.0
        assert isinstance(payload["timestamp"], str)
        assert event.partition_key == str(delivery_id)

    def test_assigned_routes_to_both_topics(self):
        assert DeliveryAssigned.topics == (
            settings.DELIVERY_EVENTS_TOPIC,
            settings.DELIVERY_STATUS_TOPIC,
        )

    def test_cancelled_reason_in_metadata(self):
        payload = DeliveryCancelled(
            delivery_id=uuid4(), order_id=1, customer_id=2, reason="Out of stock"
        ).to_payload()

        assert "reason" not in payload
        assert payload["metadata"] == {"reason": "Out of stock"}

    def test_agent_notification_keyed_by_agent(self):
        agent_id = uuid4()
        expires = datetime(2030, 1, 1, tzinfo=timezone.utc)
        event = AgentInvited(
            agent_id=agent_id,
            agent_name="John",
            agent_email="john@example.com",
            phone="1",
            vehicle_type="Bike",
            invite_token="tok",
            invite_expires_at=expires,
        )

        payload = event.to_payload()

        assert event.topics == (settings.NOTIFICATION_EVENTS_TOPIC,)
        assert event.partition_key == str(agent_id)
        assert payload["eventType"] == "DELIVERY_AGENT_CREATION"
        assert payload["inviteExpiresAt"] == expires.isoformat()


class TestEmitter:
    """Sink failures never reach the caller."""

    @pytest.mark.asyncio
    async def test_emit_swallows_publisher_errors(self):
        publisher = FailingPublisher()
        emitter = DeliveryEventEmitter(publisher)

        await emitter.emit(DeliveryAssigned(delivery_id=uuid4(), order_id=1, customer_id=2))

        # Each topic is attempted independently
        assert publisher.calls == 2

    @pytest.mark.asyncio
    async def test_core_operation_succeeds_with_sink_down(self, db_session, sample_delivery_data):
        ledger = DeliveryLedger(db_session, DeliveryEventEmitter(FailingPublisher()))

        delivery = await ledger.create_delivery(**sample_delivery_data)

        assert delivery.status == DeliveryStatus.PENDING
        assert (await ledger.get_delivery(delivery.id)) is delivery
