"""
Delivery schemas.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from delivery_service.models.delivery import DeliveryStatus
from delivery_service.schemas.agent import AgentSummary
from delivery_service.schemas.base import CamelModel


class DeliveryCreate(CamelModel):
    """Schema for creating a delivery (called by the order service)."""
    order_id: int = Field(..., json_schema_extra={"example": 1001})
    restaurant_id: int = Field(..., json_schema_extra={"example": 12})
    customer_id: int = Field(..., json_schema_extra={"example": 345})
    pickup_address: str = Field(
        ...,
        min_length=1,
        max_length=500,
        json_schema_extra={"example": "123 Restaurant St"}
    )
    delivery_address: str = Field(
        ...,
        min_length=1,
        max_length=500,
        json_schema_extra={"example": "456 Customer Ave"}
    )


class DeliveryUpdate(CamelModel):
    """Partial rewrite of delivery fields; status is not editable here."""
    order_id: Optional[int] = None
    restaurant_id: Optional[int] = None
    customer_id: Optional[int] = None
    pickup_address: Optional[str] = Field(None, min_length=1, max_length=500)
    delivery_address: Optional[str] = Field(None, min_length=1, max_length=500)
    notes: Optional[str] = None


class DeliveryResponse(CamelModel):
    """Schema for delivery response."""
    id: UUID
    order_id: int
    restaurant_id: int
    customer_id: int
    pickup_address: str
    delivery_address: str
    status: DeliveryStatus
    estimated_delivery_time: Optional[float] = Field(
        None, description="Estimated delivery time in minutes"
    )
    created_at: datetime
    assigned_at: Optional[datetime] = None
    picked_up_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    notes: Optional[str] = None
    agent_id: Optional[UUID] = None
    agent: Optional[AgentSummary] = None
