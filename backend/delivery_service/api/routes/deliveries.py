"""
Delivery API routes.
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from delivery_service.api.deps import (
    get_assignment_policy,
    get_delivery_ledger,
    get_status_handler,
)
from delivery_service.core.exceptions import DeliveryForOrderNotFoundException
from delivery_service.schemas.delivery import (
    DeliveryCreate,
    DeliveryResponse,
    DeliveryUpdate,
)
from delivery_service.services.assignment import AssignmentPolicy
from delivery_service.services.delivery_ledger import DeliveryLedger
from delivery_service.services.status_transitions import (
    StatusTransitionHandler,
    parse_delivery_status,
)

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


def _many(deliveries) -> list[DeliveryResponse]:
    return [DeliveryResponse.model_validate(d) for d in deliveries]


@router.post("", response_model=DeliveryResponse, status_code=201)
async def create_delivery(
    data: DeliveryCreate,
    ledger: DeliveryLedger = Depends(get_delivery_ledger),
) -> DeliveryResponse:
    """Create a PENDING delivery for an order."""
    delivery = await ledger.create_delivery(
        order_id=data.order_id,
        restaurant_id=data.restaurant_id,
        customer_id=data.customer_id,
        pickup_address=data.pickup_address,
        delivery_address=data.delivery_address,
    )
    return DeliveryResponse.model_validate(delivery)


@router.get("", response_model=list[DeliveryResponse])
async def list_deliveries(
    ledger: DeliveryLedger = Depends(get_delivery_ledger),
) -> list[DeliveryResponse]:
    return _many(await ledger.list_deliveries())


@router.get("/pending", response_model=list[DeliveryResponse])
async def list_pending_deliveries(
    ledger: DeliveryLedger = Depends(get_delivery_ledger),
) -> list[DeliveryResponse]:
    """Unassigned deliveries, oldest first."""
    return _many(await ledger.list_pending())


@router.get("/customer/{customer_id}", response_model=list[DeliveryResponse])
async def list_customer_deliveries(
    customer_id: int,
    ledger: DeliveryLedger = Depends(get_delivery_ledger),
) -> list[DeliveryResponse]:
    return _many(await ledger.list_by_customer(customer_id))


@router.get("/agent/{agent_id}", response_model=list[DeliveryResponse])
async def list_agent_deliveries(
    agent_id: UUID,
    ledger: DeliveryLedger = Depends(get_delivery_ledger),
) -> list[DeliveryResponse]:
    return _many(await ledger.list_by_agent(agent_id))


@router.get("/agent/{agent_id}/active", response_model=list[DeliveryResponse])
async def list_agent_active_deliveries(
    agent_id: UUID,
    ledger: DeliveryLedger = Depends(get_delivery_ledger),
) -> list[DeliveryResponse]:
    """Deliveries the agent is carrying (ASSIGNED, PICKED_UP, IN_TRANSIT)."""
    return _many(await ledger.list_active_by_agent(agent_id))


@router.get("/order/{order_id}", response_model=DeliveryResponse)
async def get_delivery_by_order(
    order_id: int,
    ledger: DeliveryLedger = Depends(get_delivery_ledger),
) -> DeliveryResponse:
    delivery = await ledger.get_by_order_id(order_id)
    if delivery is None:
        raise DeliveryForOrderNotFoundException(order_id)
    return DeliveryResponse.model_validate(delivery)


@router.get("/{delivery_id}", response_model=DeliveryResponse)
async def get_delivery(
    delivery_id: UUID,
    ledger: DeliveryLedger = Depends(get_delivery_ledger),
) -> DeliveryResponse:
    return DeliveryResponse.model_validate(await ledger.get_delivery(delivery_id))


@router.put("/{delivery_id}", response_model=DeliveryResponse)
async def update_delivery(
    delivery_id: UUID,
    data: DeliveryUpdate,
    ledger: DeliveryLedger = Depends(get_delivery_ledger),
) -> DeliveryResponse:
    """Rewrite delivery fields. Omitted or null fields are left unchanged."""
    delivery = await ledger.update_fields(delivery_id, data.model_dump(exclude_unset=True))
    return DeliveryResponse.model_validate(delivery)


@router.post("/{delivery_id}/assign", response_model=DeliveryResponse)
async def assign_delivery(
    delivery_id: UUID,
    agent_id: UUID = Query(..., alias="agentId"),
    assignment: AssignmentPolicy = Depends(get_assignment_policy),
) -> DeliveryResponse:
    delivery = await assignment.assign(delivery_id, agent_id)
    return DeliveryResponse.model_validate(delivery)


@router.post("/{delivery_id}/auto-assign", response_model=DeliveryResponse)
async def auto_assign_delivery(
    delivery_id: UUID,
    assignment: AssignmentPolicy = Depends(get_assignment_policy),
) -> DeliveryResponse:
    """Assign the most recently active dispatchable agent."""
    delivery = await assignment.auto_assign(delivery_id)
    return DeliveryResponse.model_validate(delivery)


@router.put("/{delivery_id}/status", response_model=DeliveryResponse)
async def update_delivery_status(
    delivery_id: UUID,
    status_value: str = Query(..., alias="status"),
    reason: Optional[str] = Query(None, max_length=500),
    transitions: StatusTransitionHandler = Depends(get_status_handler),
) -> DeliveryResponse:
    """Move a delivery to a new status. Terminal deliveries are rejected."""
    delivery = await transitions.update_status(
        delivery_id,
        parse_delivery_status(status_value),
        reason=reason,
    )
    return DeliveryResponse.model_validate(delivery)
