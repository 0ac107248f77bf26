"""
Delivery model.
"""
import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Enum, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from delivery_service.core.database import Base
from delivery_service.models.base import CreatedAtMixin, UTCDateTime, UUIDMixin

if TYPE_CHECKING:
    from delivery_service.models.agent import DeliveryAgent


class DeliveryStatus(str, enum.Enum):
    """Delivery lifecycle status."""

    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


# Deliveries an agent is currently carrying
ACTIVE_STATUSES = (
    DeliveryStatus.ASSIGNED,
    DeliveryStatus.PICKED_UP,
    DeliveryStatus.IN_TRANSIT,
)

TERMINAL_STATUSES = (DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED)


class Delivery(Base, UUIDMixin, CreatedAtMixin):
    """
    One courier assignment record, tied 1:1 to an order.
    """

    __tablename__ = "deliveries"

    # References owned by the order, restaurant and user services
    order_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    customer_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    pickup_address: Mapped[str] = mapped_column(String(500), nullable=False)
    delivery_address: Mapped[str] = mapped_column(String(500), nullable=False)

    status: Mapped[DeliveryStatus] = mapped_column(
        Enum(DeliveryStatus, native_enum=False, length=32),
        default=DeliveryStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Minutes, computed at creation time
    estimated_delivery_time: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
    )

    # Milestones
    assigned_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )
    picked_up_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )
    delivered_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("delivery_agents.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    agent: Mapped[Optional["DeliveryAgent"]] = relationship(
        "DeliveryAgent",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Delivery order={self.order_id} ({self.status.value})>"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
