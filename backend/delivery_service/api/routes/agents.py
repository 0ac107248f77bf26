"""
Delivery agent API routes.

Mounted under /deliveries/agents next to the delivery routes.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from delivery_service.schemas.agent import (
    AgentAdminCreate,
    AgentRegister,
    AgentResponse,
    InviteAccept,
    agent_response,
)
from delivery_service.api.deps import get_agent_directory
from delivery_service.services.agent_directory import AgentDirectory, parse_agent_status

router = APIRouter(prefix="/deliveries/agents", tags=["agents"])


@router.post("", response_model=AgentResponse, status_code=201)
async def register_agent(
    data: AgentRegister,
    agents: AgentDirectory = Depends(get_agent_directory),
) -> AgentResponse:
    """Self-service registration. The agent starts in PENDING_APPROVAL."""
    agent = await agents.create_agent(
        name=data.name,
        email=data.email,
        phone=data.phone,
        vehicle_type=data.vehicle_type,
        license_number=data.license_number,
        password=data.password,
    )
    return agent_response(agent)


@router.post("/admin", response_model=AgentResponse, status_code=201)
async def create_agent_by_admin(
    data: AgentAdminCreate,
    agents: AgentDirectory = Depends(get_agent_directory),
) -> AgentResponse:
    """Create an active agent and send them an invite to set a password."""
    agent = await agents.create_agent_by_admin(
        name=data.name,
        email=data.email,
        phone=data.phone,
        vehicle_type=data.vehicle_type,
        license_number=data.license_number,
    )
    return agent_response(agent)


@router.post("/invite/accept", response_model=AgentResponse)
async def accept_invite(
    data: InviteAccept,
    agents: AgentDirectory = Depends(get_agent_directory),
) -> AgentResponse:
    agent = await agents.accept_invite(data.token, data.password)
    return agent_response(agent)


@router.get("", response_model=list[AgentResponse])
async def list_agents(
    agents: AgentDirectory = Depends(get_agent_directory),
) -> list[AgentResponse]:
    return [agent_response(a) for a in await agents.list_agents()]


@router.get("/available", response_model=list[AgentResponse])
async def list_available_agents(
    agents: AgentDirectory = Depends(get_agent_directory),
) -> list[AgentResponse]:
    """Dispatchable agents, most recently active first."""
    return [agent_response(a) for a in await agents.list_available()]


@router.get("/pending", response_model=list[AgentResponse])
async def list_pending_agents(
    agents: AgentDirectory = Depends(get_agent_directory),
) -> list[AgentResponse]:
    """Agents waiting for approval, oldest first."""
    return [agent_response(a) for a in await agents.list_pending()]


@router.get("/{agent_id}", response_model=AgentResponse)
async def get_agent(
    agent_id: UUID,
    agents: AgentDirectory = Depends(get_agent_directory),
) -> AgentResponse:
    return agent_response(await agents.get_agent(agent_id))


@router.put("/{agent_id}/status", response_model=AgentResponse)
async def update_agent_status(
    agent_id: UUID,
    status_value: str = Query(..., alias="status"),
    agents: AgentDirectory = Depends(get_agent_directory),
) -> AgentResponse:
    """Overwrite the agent status (any of the six values)."""
    agent = await agents.update_status(agent_id, parse_agent_status(status_value))
    return agent_response(agent)


@router.put("/{agent_id}/approve", response_model=AgentResponse)
async def approve_agent(
    agent_id: UUID,
    agents: AgentDirectory = Depends(get_agent_directory),
) -> AgentResponse:
    agent = await agents.approve_agent(agent_id)
    return agent_response(agent)


@router.delete("/{agent_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_agent(
    agent_id: UUID,
    agents: AgentDirectory = Depends(get_agent_directory),
) -> Response:
    """Delete an agent. Refused while the agent has active deliveries."""
    await agents.delete_agent(agent_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
