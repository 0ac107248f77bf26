"""
Delivery ledger: creation, field edits and read-side queries.
"""
import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_service.core.exceptions import DeliveryNotFoundException
from delivery_service.models.base import utcnow
from delivery_service.models.delivery import ACTIVE_STATUSES, Delivery, DeliveryStatus
from delivery_service.services.eta import EtaEstimator, default_estimator
from delivery_service.services.events import DeliveryCreated, DeliveryEventEmitter

logger = logging.getLogger(__name__)

# Fields update_fields may rewrite; status only moves through the transition handler
EDITABLE_FIELDS = (
    "order_id",
    "restaurant_id",
    "customer_id",
    "pickup_address",
    "delivery_address",
    "notes",
)


class DeliveryLedger:
    """Owns Delivery rows. Agents are referenced by id only."""

    def __init__(
        self,
        db: AsyncSession,
        events: DeliveryEventEmitter,
        estimator: EtaEstimator = default_estimator,
    ):
        self.db = db
        self.events = events
        self.estimator = estimator

    async def create_delivery(
        self,
        order_id: int,
        restaurant_id: int,
        customer_id: int,
        pickup_address: str,
        delivery_address: str,
    ) -> Delivery:
        delivery = Delivery(
            order_id=order_id,
            restaurant_id=restaurant_id,
            customer_id=customer_id,
            pickup_address=pickup_address,
            delivery_address=delivery_address,
            status=DeliveryStatus.PENDING,
            created_at=utcnow(),
            estimated_delivery_time=self.estimator.estimate(pickup_address, delivery_address),
            agent=None,
        )
        self.db.add(delivery)
        await self.db.commit()

        logger.info(f"Delivery created: {delivery.id} for order {order_id}")

        await self.events.emit(DeliveryCreated(
            delivery_id=delivery.id,
            order_id=delivery.order_id,
            customer_id=delivery.customer_id,
            restaurant_id=delivery.restaurant_id,
            pickup_address=delivery.pickup_address,
            delivery_address=delivery.delivery_address,
            estimated_delivery_time=delivery.estimated_delivery_time,
        ))
        return delivery

    async def update_fields(self, delivery_id: UUID, changes: dict[str, Any]) -> Delivery:
        """Rewrite identifying fields and addresses; None values are ignored."""
        delivery = await self.get_delivery(delivery_id)

        for name, value in changes.items():
            if name in EDITABLE_FIELDS and value is not None:
                setattr(delivery, name, value)

        await self.db.commit()
        logger.info(f"Delivery {delivery.id} updated: {sorted(changes)}")
        return delivery

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_delivery(self, delivery_id: UUID) -> Delivery:
        delivery = await self.db.get(Delivery, delivery_id)
        if delivery is None:
            raise DeliveryNotFoundException(str(delivery_id))
        return delivery

    async def list_deliveries(self) -> list[Delivery]:
        return await self._list(select(Delivery).order_by(Delivery.created_at))

    async def get_by_order_id(self, order_id: int) -> Optional[Delivery]:
        result = await self.db.execute(
            select(Delivery)
            .where(Delivery.order_id == order_id)
            .order_by(Delivery.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_by_customer(self, customer_id: int) -> list[Delivery]:
        return await self._list(
            select(Delivery)
            .where(Delivery.customer_id == customer_id)
            .order_by(Delivery.created_at)
        )

    async def list_by_agent(self, agent_id: UUID) -> list[Delivery]:
        return await self._list(
            select(Delivery)
            .where(Delivery.agent_id == agent_id)
            .order_by(Delivery.created_at)
        )

    async def list_active_by_agent(self, agent_id: UUID) -> list[Delivery]:
        return await self._list(
            select(Delivery)
            .where(
                Delivery.agent_id == agent_id,
                Delivery.status.in_(ACTIVE_STATUSES),
            )
            .order_by(Delivery.created_at)
        )

    async def list_pending(self) -> list[Delivery]:
        """Unassigned work queue, oldest first."""
        return await self._list(
            select(Delivery)
            .where(Delivery.status == DeliveryStatus.PENDING)
            .order_by(Delivery.created_at)
        )

    async def _list(self, query) -> list[Delivery]:
        result = await self.db.execute(query)
        return list(result.scalars().all())
