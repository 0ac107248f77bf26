"""
Dependency injection for the service layer.

Each request gets its own session; the event publisher is shared and
lives on app.state for the lifetime of the application.
"""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_service.core.database import get_db
from delivery_service.services.agent_directory import AgentDirectory
from delivery_service.services.assignment import AssignmentPolicy
from delivery_service.services.delivery_ledger import DeliveryLedger
from delivery_service.services.events import DeliveryEventEmitter, EventPublisher
from delivery_service.services.status_transitions import StatusTransitionHandler


def get_event_publisher(request: Request) -> EventPublisher:
    return request.app.state.event_publisher


def get_emitter(
    publisher: EventPublisher = Depends(get_event_publisher),
) -> DeliveryEventEmitter:
    return DeliveryEventEmitter(publisher)


def get_agent_directory(
    db: AsyncSession = Depends(get_db),
    events: DeliveryEventEmitter = Depends(get_emitter),
) -> AgentDirectory:
    return AgentDirectory(db, events)


def get_delivery_ledger(
    db: AsyncSession = Depends(get_db),
    events: DeliveryEventEmitter = Depends(get_emitter),
) -> DeliveryLedger:
    return DeliveryLedger(db, events)


def get_assignment_policy(
    db: AsyncSession = Depends(get_db),
    agents: AgentDirectory = Depends(get_agent_directory),
    ledger: DeliveryLedger = Depends(get_delivery_ledger),
    events: DeliveryEventEmitter = Depends(get_emitter),
) -> AssignmentPolicy:
    return AssignmentPolicy(db, agents, ledger, events)


def get_status_handler(
    db: AsyncSession = Depends(get_db),
    ledger: DeliveryLedger = Depends(get_delivery_ledger),
    events: DeliveryEventEmitter = Depends(get_emitter),
) -> StatusTransitionHandler:
    return StatusTransitionHandler(db, ledger, events)
