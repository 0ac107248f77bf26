"""
Database models.
"""
from delivery_service.models.base import CreatedAtMixin, UTCDateTime, UUIDMixin, utcnow
from delivery_service.models.agent import (
    DISPATCHABLE_STATUSES,
    RELEASED_STATUS,
    AgentStatus,
    DeliveryAgent,
)
from delivery_service.models.delivery import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Delivery,
    DeliveryStatus,
)

__all__ = [
    "CreatedAtMixin",
    "UTCDateTime",
    "UUIDMixin",
    "utcnow",
    "AgentStatus",
    "DeliveryAgent",
    "DISPATCHABLE_STATUSES",
    "RELEASED_STATUS",
    "Delivery",
    "DeliveryStatus",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
]
