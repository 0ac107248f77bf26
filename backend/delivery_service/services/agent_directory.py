"""
Agent directory: CRUD and availability queries over delivery agents.
"""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_service.core.exceptions import (
    AgentNotFoundException,
    DuplicateEmailException,
    HasActiveDeliveriesException,
    InvalidInviteTokenException,
    InvalidStatusException,
)
from delivery_service.core.security import (
    create_invite_token,
    decode_invite_token,
    get_password_hash,
)
from delivery_service.models.agent import (
    DISPATCHABLE_STATUSES,
    RELEASED_STATUS,
    AgentStatus,
    DeliveryAgent,
)
from delivery_service.models.base import utcnow
from delivery_service.models.delivery import ACTIVE_STATUSES, Delivery
from delivery_service.services.events import (
    AgentInvited,
    AgentRegistered,
    DeliveryEventEmitter,
)

logger = logging.getLogger(__name__)


def parse_agent_status(value: str) -> AgentStatus:
    """Parse an agent status string (case-insensitive) or raise InvalidStatusException."""
    try:
        return AgentStatus(value.strip().upper())
    except ValueError:
        raise InvalidStatusException(value, [s.value for s in AgentStatus]) from None


class AgentDirectory:
    """
    Owns DeliveryAgent rows.

    Status fields touched per operation:
    - create_agent writes PENDING_APPROVAL
    - create_agent_by_admin, approve_agent write ACTIVE
    - update_status writes any status
    - list_available reads ACTIVE/AVAILABLE
    """

    def __init__(self, db: AsyncSession, events: DeliveryEventEmitter):
        self.db = db
        self.events = events

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_agent(self, agent_id: UUID) -> DeliveryAgent:
        agent = await self.db.get(DeliveryAgent, agent_id)
        if agent is None:
            raise AgentNotFoundException(str(agent_id))
        return agent

    async def get_by_email(self, email: str) -> Optional[DeliveryAgent]:
        result = await self.db.execute(
            select(DeliveryAgent).where(DeliveryAgent.email == email)
        )
        return result.scalar_one_or_none()

    async def list_agents(self) -> list[DeliveryAgent]:
        result = await self.db.execute(
            select(DeliveryAgent).order_by(DeliveryAgent.created_at)
        )
        return list(result.scalars().all())

    async def list_available(self) -> list[DeliveryAgent]:
        """Dispatchable agents, most recently active first."""
        result = await self.db.execute(
            select(DeliveryAgent)
            .where(DeliveryAgent.status.in_(DISPATCHABLE_STATUSES))
            .order_by(DeliveryAgent.last_active_at.desc(), DeliveryAgent.id)
        )
        return list(result.scalars().all())

    async def list_pending(self) -> list[DeliveryAgent]:
        """Approval queue, oldest application first."""
        result = await self.db.execute(
            select(DeliveryAgent)
            .where(DeliveryAgent.status == AgentStatus.PENDING_APPROVAL)
            .order_by(DeliveryAgent.created_at)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_agent(
        self,
        name: str,
        email: str,
        phone: str,
        vehicle_type: str,
        license_number: str,
        password: str,
    ) -> DeliveryAgent:
        """Self-service registration. The agent waits for approval."""
        await self._ensure_email_free(email)

        now = utcnow()
        agent = DeliveryAgent(
            name=name,
            email=email,
            phone=phone,
            vehicle_type=vehicle_type,
            license_number=license_number,
            password_hash=get_password_hash(password),
            status=AgentStatus.PENDING_APPROVAL,
            created_at=now,
            last_active_at=now,
        )
        self.db.add(agent)
        await self.db.commit()

        logger.info(f"Agent registered, pending approval: {agent.id}")

        await self.events.emit(AgentRegistered(
            agent_id=agent.id,
            agent_name=agent.name,
            agent_email=agent.email,
            phone=agent.phone,
            vehicle_type=agent.vehicle_type,
        ))
        return agent

    async def create_agent_by_admin(
        self,
        name: str,
        email: str,
        phone: str,
        vehicle_type: str,
        license_number: str,
    ) -> DeliveryAgent:
        """
        Admin creation. The agent is immediately dispatchable and gets an
        expiring invite token (delivered by the notification service) to
        set a password.
        """
        await self._ensure_email_free(email)

        now = utcnow()
        agent = DeliveryAgent(
            name=name,
            email=email,
            phone=phone,
            vehicle_type=vehicle_type,
            license_number=license_number,
            password_hash=None,
            status=RELEASED_STATUS,
            created_at=now,
            last_active_at=now,
        )
        self.db.add(agent)
        await self.db.flush()

        token, expires_at = create_invite_token(agent.id)
        agent.invite_expires_at = expires_at
        await self.db.commit()

        logger.info(f"Agent created by admin: {agent.id}, invite expires {expires_at.isoformat()}")

        await self.events.emit(AgentInvited(
            agent_id=agent.id,
            agent_name=agent.name,
            agent_email=agent.email,
            phone=agent.phone,
            vehicle_type=agent.vehicle_type,
            invite_token=token,
            invite_expires_at=expires_at,
        ))
        return agent

    async def accept_invite(self, token: str, password: str) -> DeliveryAgent:
        """Set the password of an invited agent. Each invite works once."""
        agent_id = decode_invite_token(token)
        if agent_id is None:
            raise InvalidInviteTokenException()

        agent = await self.db.get(DeliveryAgent, agent_id)
        if agent is None or not agent.has_pending_invite:
            raise InvalidInviteTokenException()

        agent.password_hash = get_password_hash(password)
        agent.invite_expires_at = None
        agent.touch()
        await self.db.commit()

        logger.info(f"Agent accepted invite: {agent.id}")
        return agent

    async def approve_agent(self, agent_id: UUID) -> DeliveryAgent:
        agent = await self.get_agent(agent_id)

        agent.status = RELEASED_STATUS
        agent.touch()
        await self.db.commit()

        logger.info(f"Agent approved: {agent.id}")
        return agent

    async def update_status(self, agent_id: UUID, status: AgentStatus) -> DeliveryAgent:
        """Unconditional overwrite; also refreshes last-active."""
        agent = await self.get_agent(agent_id)

        previous = agent.status
        agent.status = status
        agent.touch()
        await self.db.commit()

        logger.info(f"Agent {agent.id} status {previous.value} -> {status.value}")
        return agent

    async def delete_agent(self, agent_id: UUID) -> None:
        """
        Delete an agent with no in-flight deliveries.

        Historical deliveries keep their rows; their agent reference is
        cleared before the agent is removed.
        """
        agent = await self.get_agent(agent_id)

        result = await self.db.execute(
            select(Delivery).where(Delivery.agent_id == agent.id)
        )
        deliveries = list(result.scalars().all())

        active = [d for d in deliveries if d.status in ACTIVE_STATUSES]
        if active:
            raise HasActiveDeliveriesException(str(agent.id), len(active))

        for delivery in deliveries:
            delivery.agent = None
            delivery.agent_id = None

        await self.db.delete(agent)
        await self.db.commit()

        logger.info(
            f"Agent deleted: {agent_id}, detached from {len(deliveries)} historical deliveries"
        )

    async def _ensure_email_free(self, email: str) -> None:
        if await self.get_by_email(email) is not None:
            raise DuplicateEmailException(email)
