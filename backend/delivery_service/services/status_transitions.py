"""
Status transition handler for deliveries.

Any non-terminal delivery may move to any status, including skipping
ahead (PENDING -> DELIVERED). DELIVERED and CANCELLED are terminal.

Milestone timestamps follow the status that has been reached:

    assigned_at   set once the delivery reaches ASSIGNED or later
    picked_up_at  set once it reaches PICKED_UP or later
    delivered_at  set when it reaches DELIVERED

Entering a milestone status always stamps it with the current time;
skipped earlier milestones are backfilled. Moving back along the
progression clears milestones the new status has not reached.
CANCELLED leaves every milestone as it was.
"""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from delivery_service.core.exceptions import InvalidStatusException, TerminalStatusException
from delivery_service.core.metrics import record_status_transition
from delivery_service.models.base import utcnow
from delivery_service.models.delivery import Delivery, DeliveryStatus
from delivery_service.services.delivery_ledger import DeliveryLedger
from delivery_service.services.events import (
    DeliveryCancelled,
    DeliveryCompleted,
    DeliveryEventEmitter,
    DeliveryStatusUpdated,
)

logger = logging.getLogger(__name__)

# Lifecycle order used for milestone backfill; CANCELLED sits outside it
_PROGRESSION = (
    DeliveryStatus.PENDING,
    DeliveryStatus.ASSIGNED,
    DeliveryStatus.PICKED_UP,
    DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.DELIVERED,
)

_MILESTONES = (
    (DeliveryStatus.ASSIGNED, "assigned_at"),
    (DeliveryStatus.PICKED_UP, "picked_up_at"),
    (DeliveryStatus.DELIVERED, "delivered_at"),
)


def parse_delivery_status(value: str) -> DeliveryStatus:
    """Parse a status string (case-insensitive) or raise InvalidStatusException."""
    try:
        return DeliveryStatus(value.strip().upper())
    except ValueError:
        raise InvalidStatusException(value, [s.value for s in DeliveryStatus]) from None


def _reached(target: DeliveryStatus, milestone: DeliveryStatus) -> bool:
    return _PROGRESSION.index(target) >= _PROGRESSION.index(milestone)


class StatusTransitionHandler:
    """Applies a new status to a delivery with its side effects."""

    def __init__(
        self,
        db: AsyncSession,
        ledger: DeliveryLedger,
        events: DeliveryEventEmitter,
    ):
        self.db = db
        self.ledger = ledger
        self.events = events

    async def update_status(
        self,
        delivery_id: UUID,
        status: DeliveryStatus,
        reason: Optional[str] = None,
    ) -> Delivery:
        delivery = await self.ledger.get_delivery(delivery_id)

        if delivery.is_terminal:
            raise TerminalStatusException(
                str(delivery.id), delivery.status.value, status.value
            )

        previous = delivery.status
        now = utcnow()

        delivery.status = status
        self._stamp_milestones(delivery, status, now)

        agent = delivery.agent
        if status == DeliveryStatus.DELIVERED and agent is not None:
            # Agent becomes available again; the delivery keeps its reference
            agent.release()

        await self.db.commit()
        record_status_transition(status.value)

        logger.info(f"Delivery {delivery.id} status {previous.value} -> {status.value}")

        await self._emit(delivery, reason)
        return delivery

    @staticmethod
    def _stamp_milestones(delivery: Delivery, status: DeliveryStatus, now) -> None:
        if status not in _PROGRESSION:
            return
        for milestone, attr in _MILESTONES:
            if not _reached(status, milestone):
                setattr(delivery, attr, None)
            elif milestone == status or getattr(delivery, attr) is None:
                setattr(delivery, attr, now)

    async def _emit(self, delivery: Delivery, reason: Optional[str]) -> None:
        agent = delivery.agent
        agent_name = agent.name if agent is not None else None
        agent_phone = agent.phone if agent is not None else None

        await self.events.emit(DeliveryStatusUpdated(
            delivery_id=delivery.id,
            order_id=delivery.order_id,
            customer_id=delivery.customer_id,
            status=delivery.status.value,
            agent_name=agent_name,
            agent_phone=agent_phone,
            estimated_delivery_time=delivery.estimated_delivery_time,
        ))

        if delivery.status == DeliveryStatus.DELIVERED and agent_name is not None:
            await self.events.emit(DeliveryCompleted(
                delivery_id=delivery.id,
                order_id=delivery.order_id,
                customer_id=delivery.customer_id,
                agent_name=agent_name,
            ))
        elif delivery.status == DeliveryStatus.CANCELLED:
            await self.events.emit(DeliveryCancelled(
                delivery_id=delivery.id,
                order_id=delivery.order_id,
                customer_id=delivery.customer_id,
                reason=reason,
            ))
