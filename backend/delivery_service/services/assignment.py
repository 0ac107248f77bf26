"""
Assignment policy: binds deliveries to agents.

There is no per-agent capacity limit and no locking. Two concurrent
assign calls for the same delivery race in the database and the last
commit wins.
"""
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from delivery_service.core.exceptions import (
    AgentInactiveException,
    NoAvailableAgentsException,
    TerminalStatusException,
)
from delivery_service.core.metrics import record_assignment
from delivery_service.models.base import utcnow
from delivery_service.models.delivery import Delivery, DeliveryStatus
from delivery_service.services.agent_directory import AgentDirectory
from delivery_service.services.delivery_ledger import DeliveryLedger
from delivery_service.services.events import DeliveryAssigned, DeliveryEventEmitter

logger = logging.getLogger(__name__)


class AssignmentPolicy:
    """Manual assignment plus first-available auto-assignment."""

    def __init__(
        self,
        db: AsyncSession,
        agents: AgentDirectory,
        ledger: DeliveryLedger,
        events: DeliveryEventEmitter,
    ):
        self.db = db
        self.agents = agents
        self.ledger = ledger
        self.events = events

    async def assign(
        self,
        delivery_id: UUID,
        agent_id: UUID,
        mode: str = "manual",
    ) -> Delivery:
        """
        Bind an agent to a delivery and mark it ASSIGNED.

        Finished deliveries are refused. All lookups and checks run before
        any attribute is touched, so a failure leaves both rows unchanged.
        The new agent's status is not changed: agents are not locked while
        delivering.
        """
        delivery = await self.ledger.get_delivery(delivery_id)
        agent = await self.agents.get_agent(agent_id)

        if delivery.is_terminal:
            raise TerminalStatusException(
                str(delivery.id), delivery.status.value, DeliveryStatus.ASSIGNED.value
            )
        if agent.is_inactive:
            raise AgentInactiveException(str(agent.id))

        previous = delivery.agent
        if previous is not None:
            # Reassignment frees the previous agent immediately
            previous.release()

        now = utcnow()
        delivery.agent = agent
        delivery.agent_id = agent.id
        delivery.status = DeliveryStatus.ASSIGNED
        delivery.assigned_at = now
        # Back to ASSIGNED: later milestones no longer hold
        delivery.picked_up_at = None
        delivery.delivered_at = None
        agent.last_active_at = now

        await self.db.commit()
        record_assignment(mode)

        if previous is not None and previous.id != agent.id:
            logger.info(f"Delivery {delivery.id} reassigned from agent {previous.id} to {agent.id}")
        else:
            logger.info(f"Delivery {delivery.id} assigned to agent {agent.id}")

        await self.events.emit(DeliveryAssigned(
            delivery_id=delivery.id,
            order_id=delivery.order_id,
            customer_id=delivery.customer_id,
            agent_id=agent.id,
            agent_name=agent.name,
            agent_phone=agent.phone,
            status=delivery.status.value,
        ))
        return delivery

    async def auto_assign(self, delivery_id: UUID) -> Delivery:
        """Assign the first agent of the availability listing."""
        available = await self.agents.list_available()
        if not available:
            logger.warning(f"Auto-assign for delivery {delivery_id}: no available agents")
            raise NoAvailableAgentsException()

        return await self.assign(delivery_id, available[0].id, mode="auto")
