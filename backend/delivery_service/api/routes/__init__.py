"""
API routes module.
"""

from fastapi import APIRouter

from delivery_service.api.routes import (
    agents,
    deliveries,
    health,
)

api_router = APIRouter()

# Health checks
api_router.include_router(health.router)

# Agent routes live under /deliveries/agents and must be matched before
# /deliveries/{delivery_id}
api_router.include_router(agents.router)
api_router.include_router(deliveries.router)
