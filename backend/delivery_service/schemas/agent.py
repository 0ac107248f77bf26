"""
Delivery agent schemas.
"""
from datetime import datetime
from uuid import UUID

from pydantic import Field

from delivery_service.models.agent import AgentStatus
from delivery_service.schemas.base import CamelModel


class AgentBase(CamelModel):
    """Fields shared by both agent creation paths."""
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        json_schema_extra={"example": "John Doe"}
    )
    email: str = Field(
        ...,
        max_length=255,
        pattern=r"^[^@\s]+@[^@\s]+$",
        json_schema_extra={"example": "john@example.com"}
    )
    phone: str = Field(
        ...,
        min_length=1,
        max_length=50,
        json_schema_extra={"example": "123-456-7890"}
    )
    vehicle_type: str = Field(
        ...,
        min_length=1,
        max_length=50,
        json_schema_extra={"example": "Bike"}
    )
    license_number: str = Field(
        ...,
        min_length=1,
        max_length=100,
        json_schema_extra={"example": "LIC123"}
    )


class AgentRegister(AgentBase):
    """Self-service registration; the agent waits for approval."""
    password: str = Field(..., min_length=8, max_length=128)


class AgentAdminCreate(AgentBase):
    """Admin creation; the agent receives an invite to set a password."""
    pass


class InviteAccept(CamelModel):
    """Set a password using an invite token."""
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=128)


class AgentResponse(AgentBase):
    """Agent as returned by the API (never includes credentials)."""
    id: UUID
    status: AgentStatus
    created_at: datetime
    last_active_at: datetime
    invite_pending: bool = False


class AgentSummary(CamelModel):
    """Agent fields embedded in delivery responses."""
    id: UUID
    name: str
    phone: str
    vehicle_type: str
    status: AgentStatus


def agent_response(agent) -> AgentResponse:
    """Build an AgentResponse from a DeliveryAgent row."""
    return AgentResponse(
        id=agent.id,
        name=agent.name,
        email=agent.email,
        phone=agent.phone,
        vehicle_type=agent.vehicle_type,
        license_number=agent.license_number,
        status=agent.status,
        created_at=agent.created_at,
        last_active_at=agent.last_active_at,
        invite_pending=agent.has_pending_invite,
    )
