"""
Seed development data.

Creates, only when the table is empty:
- 6 delivery agents (ACTIVE, password "delivery123")
- 3 deliveries for orders 1001-1003

Of the deliveries, the first is ASSIGNED to the first agent and the
second is PICKED_UP by the second agent. The third stays PENDING.

Rows are written directly, so no events are published.

Run from backend/:
    python -m scripts.seed_data
"""
import asyncio
from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_service.core.database import AsyncSessionLocal, close_db, init_db
from delivery_service.core.security import get_password_hash
from delivery_service.models.agent import AgentStatus, DeliveryAgent
from delivery_service.models.base import utcnow
from delivery_service.models.delivery import Delivery, DeliveryStatus
from delivery_service.services.eta import default_estimator

SEED_PASSWORD = "delivery123"

AGENTS = [
    ("John Smith", "john.delivery@grubstack.com", "+1-555-0101", "Motorcycle", "MC123456"),
    ("Sarah Johnson", "sarah.delivery@grubstack.com", "+1-555-0102", "Bicycle", "BC789012"),
    ("Mike Wilson", "mike.delivery@grubstack.com", "+1-555-0103", "Car", "CA345678"),
    ("Lisa Brown", "lisa.delivery@grubstack.com", "+1-555-0104", "Motorcycle", "MC901234"),
    ("David Lee", "david.delivery@grubstack.com", "+1-555-0105", "Bicycle", "BC567890"),
    # Test account used by the frontend
    ("Mike Delivery", "delivery@grub.local", "+1-555-9999", "Motorcycle", "MC999999"),
]

# (order_id, restaurant_id, customer_id, pickup_address, delivery_address)
DELIVERIES = [
    (1001, 1, 1, "123 Main St, Downtown", "456 Oak Ave, Uptown"),
    (1002, 2, 2, "789 Pine St, Midtown", "321 Elm St, Suburbs"),
    (1003, 1, 3, "555 Broadway, Downtown", "777 Park Ave, Uptown"),
]


async def _count(session: AsyncSession, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


async def create_agents(session: AsyncSession) -> list[DeliveryAgent]:
    """Create the sample agents."""
    password_hash = get_password_hash(SEED_PASSWORD)
    agents = []

    for name, email, phone, vehicle_type, license_number in AGENTS:
        agent = DeliveryAgent(
            name=name,
            email=email,
            phone=phone,
            vehicle_type=vehicle_type,
            license_number=license_number,
            password_hash=password_hash,
            status=AgentStatus.ACTIVE,
        )
        session.add(agent)
        agents.append(agent)

    await session.flush()
    print(f"Created {len(agents)} agents")
    return agents


async def create_deliveries(
    session: AsyncSession,
    agents: list[DeliveryAgent],
) -> list[Delivery]:
    """Create the sample deliveries and put two of them in progress."""
    deliveries = []

    for order_id, restaurant_id, customer_id, pickup, destination in DELIVERIES:
        delivery = Delivery(
            order_id=order_id,
            restaurant_id=restaurant_id,
            customer_id=customer_id,
            pickup_address=pickup,
            delivery_address=destination,
            status=DeliveryStatus.PENDING,
            estimated_delivery_time=default_estimator.estimate(pickup, destination),
        )
        session.add(delivery)
        deliveries.append(delivery)

    now = utcnow()
    first_agent = agents[0]
    second_agent = agents[1] if len(agents) > 1 else first_agent

    assigned = deliveries[0]
    assigned.agent = first_agent
    assigned.status = DeliveryStatus.ASSIGNED
    assigned.assigned_at = now

    picked_up = deliveries[1]
    picked_up.agent = second_agent
    picked_up.status = DeliveryStatus.PICKED_UP
    picked_up.assigned_at = now - timedelta(hours=1)
    picked_up.picked_up_at = now - timedelta(minutes=30)

    await session.flush()
    print(f"Created {len(deliveries)} deliveries")
    return deliveries


async def seed(session: AsyncSession) -> None:
    """Insert sample agents and deliveries into empty tables, then commit."""
    if await _count(session, DeliveryAgent) == 0:
        agents = await create_agents(session)
    else:
        result = await session.execute(
            select(DeliveryAgent).order_by(DeliveryAgent.created_at)
        )
        agents = list(result.scalars().all())

    if agents and await _count(session, Delivery) == 0:
        await create_deliveries(session, agents)

    await session.commit()


async def main():
    """Create tables if needed and seed them."""
    await init_db()

    async with AsyncSessionLocal() as session:
        try:
            await seed(session)
        except Exception as e:
            await session.rollback()
            print(f"Error: {e}")
            raise

    await close_db()


if __name__ == "__main__":
    asyncio.run(main())
