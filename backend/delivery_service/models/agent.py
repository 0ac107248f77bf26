"""
Delivery agent (courier) model.
"""
import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from delivery_service.core.database import Base
from delivery_service.models.base import CreatedAtMixin, UTCDateTime, UUIDMixin, utcnow


class AgentStatus(str, enum.Enum):
    """
    Agent status.

    Booking availability (AVAILABLE/BUSY/OFFLINE) and administrative
    state (ACTIVE/INACTIVE/PENDING_APPROVAL) share one column. Which
    values each operation reads or writes is fixed by the sets below.
    """

    AVAILABLE = "AVAILABLE"
    BUSY = "BUSY"
    OFFLINE = "OFFLINE"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    PENDING_APPROVAL = "PENDING_APPROVAL"


# Listed by the availability query and eligible for auto-assign
DISPATCHABLE_STATUSES = (AgentStatus.ACTIVE, AgentStatus.AVAILABLE)

# Written when an agent is approved or released from a delivery
RELEASED_STATUS = AgentStatus.ACTIVE


class DeliveryAgent(Base, UUIDMixin, CreatedAtMixin):
    """
    Courier that can be bound to any number of concurrent deliveries.
    """

    __tablename__ = "delivery_agents"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    vehicle_type: Mapped[str] = mapped_column(String(50), nullable=False)
    license_number: Mapped[str] = mapped_column(String(100), nullable=False)

    # Null until an invited agent sets a password
    password_hash: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    invite_expires_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    status: Mapped[AgentStatus] = mapped_column(
        Enum(AgentStatus, native_enum=False, length=32),
        default=AgentStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    last_active_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<DeliveryAgent {self.name} ({self.status.value})>"

    @property
    def is_dispatchable(self) -> bool:
        return self.status in DISPATCHABLE_STATUSES

    @property
    def is_inactive(self) -> bool:
        return self.status == AgentStatus.INACTIVE

    @property
    def has_pending_invite(self) -> bool:
        return self.password_hash is None and self.invite_expires_at is not None

    def touch(self) -> None:
        """Refresh the last-active timestamp."""
        self.last_active_at = utcnow()

    def release(self) -> None:
        """Return the agent to the generic available state."""
        self.status = RELEASED_STATUS
        self.touch()
