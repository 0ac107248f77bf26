"""
Pydantic schemas for API request/response validation.
"""
from delivery_service.schemas.agent import (
    AgentAdminCreate,
    AgentRegister,
    AgentResponse,
    AgentSummary,
    InviteAccept,
    agent_response,
)
from delivery_service.schemas.delivery import (
    DeliveryCreate,
    DeliveryResponse,
    DeliveryUpdate,
)

__all__ = [
    "AgentAdminCreate",
    "AgentRegister",
    "AgentResponse",
    "AgentSummary",
    "InviteAccept",
    "agent_response",
    "DeliveryCreate",
    "DeliveryResponse",
    "DeliveryUpdate",
]
