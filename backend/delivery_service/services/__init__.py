"""
Services module.

Business logic for the delivery service:
- Agent directory (registration, approval, invites, availability)
- Delivery ledger (creation, edits, queries)
- Assignment policy (manual and auto-assign)
- Status transitions (lifecycle, milestones, agent release)
- Event emitter and publishers for the notification service
"""
from delivery_service.services.agent_directory import AgentDirectory, parse_agent_status
from delivery_service.services.assignment import AssignmentPolicy
from delivery_service.services.delivery_ledger import DeliveryLedger
from delivery_service.services.eta import EtaEstimator, FixedEtaEstimator, default_estimator
from delivery_service.services.event_publisher import (
    HttpEventPublisher,
    InMemoryEventPublisher,
    LoggingEventPublisher,
    build_event_publisher,
)
from delivery_service.services.events import DeliveryEventEmitter, EventPublisher
from delivery_service.services.status_transitions import (
    StatusTransitionHandler,
    parse_delivery_status,
)

__all__ = [
    "AgentDirectory",
    "parse_agent_status",
    "AssignmentPolicy",
    "DeliveryLedger",
    "EtaEstimator",
    "FixedEtaEstimator",
    "default_estimator",
    "HttpEventPublisher",
    "InMemoryEventPublisher",
    "LoggingEventPublisher",
    "build_event_publisher",
    "DeliveryEventEmitter",
    "EventPublisher",
    "StatusTransitionHandler",
    "parse_delivery_status",
]
