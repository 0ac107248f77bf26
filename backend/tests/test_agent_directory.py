"""
Tests for the agent directory.
"""
from uuid import uuid4

import bcrypt
import pytest

from delivery_service.core.config import settings
from delivery_service.core.exceptions import (
    AgentNotFoundException,
    DuplicateEmailException,
    HasActiveDeliveriesException,
    InvalidInviteTokenException,
    InvalidStatusException,
)
from delivery_service.models.agent import AgentStatus
from delivery_service.models.delivery import DeliveryStatus
from delivery_service.services.agent_directory import parse_agent_status


class TestRegistration:
    """Self-service and admin creation paths."""

    @pytest.mark.asyncio
    async def test_self_registration_waits_for_approval(self, agents, publisher, sample_agent_data):
        agent = await agents.create_agent(**sample_agent_data, password="s3cret-pass")

        assert agent.id is not None
        assert agent.status == AgentStatus.PENDING_APPROVAL
        assert agent.password_hash != "s3cret-pass"
        assert bcrypt.checkpw(b"s3cret-pass", agent.password_hash.encode("utf-8"))
        assert not agent.has_pending_invite

        assert publisher.event_types() == ["DELIVERY_AGENT_REGISTRATION"]
        event = publisher.published[0]
        assert event.topic == settings.NOTIFICATION_EVENTS_TOPIC
        assert event.key == str(agent.id)
        assert event.payload["agentEmail"] == "john@example.com"

    @pytest.mark.asyncio
    async def test_admin_creation_is_active_with_invite(self, agents, publisher, sample_agent_data):
        agent = await agents.create_agent_by_admin(**sample_agent_data)

        assert agent.status == AgentStatus.ACTIVE
        assert agent.is_dispatchable
        assert agent.password_hash is None
        assert agent.has_pending_invite

        assert publisher.event_types() == ["DELIVERY_AGENT_CREATION"]
        payload = publisher.published[0].payload
        assert payload["inviteToken"]
        assert payload["inviteExpiresAt"] is not None
        # No default password is ever sent
        assert "password" not in payload

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, agents, sample_agent_data):
        await agents.create_agent(**sample_agent_data, password="s3cret-pass")

        with pytest.raises(DuplicateEmailException):
            await agents.create_agent_by_admin(**sample_agent_data)

        assert len(await agents.list_agents()) == 1


class TestInvites:
    """Invite acceptance for admin-created agents."""

    @pytest.mark.asyncio
    async def test_accept_invite_sets_password(self, agents, publisher, sample_agent_data):
        agent = await agents.create_agent_by_admin(**sample_agent_data)
        token = publisher.published[0].payload["inviteToken"]

        accepted = await agents.accept_invite(token, "new-password-1")

        assert accepted.id == agent.id
        assert bcrypt.checkpw(b"new-password-1", accepted.password_hash.encode("utf-8"))
        assert not accepted.has_pending_invite

    @pytest.mark.asyncio
    async def test_invite_is_single_use(self, agents, publisher, sample_agent_data):
        await agents.create_agent_by_admin(**sample_agent_data)
        token = publisher.published[0].payload["inviteToken"]
        await agents.accept_invite(token, "new-password-1")

        with pytest.raises(InvalidInviteTokenException):
            await agents.accept_invite(token, "other-password-2")

    @pytest.mark.asyncio
    async def test_garbage_token_rejected(self, agents):
        with pytest.raises(InvalidInviteTokenException):
            await agents.accept_invite("not-a-token", "new-password-1")


class TestQueries:
    """Availability and approval queues."""

    @pytest.mark.asyncio
    async def test_get_unknown_agent(self, agents):
        with pytest.raises(AgentNotFoundException):
            await agents.get_agent(uuid4())

    @pytest.mark.asyncio
    async def test_available_includes_active_and_available_only(self, agents, sample_agent_data):
        created = {}
        for status in AgentStatus:
            data = {**sample_agent_data, "email": f"{status.value.lower()}@example.com"}
            agent = await agents.create_agent_by_admin(**data)
            await agents.update_status(agent.id, status)
            created[status] = agent.id

        available = {a.id for a in await agents.list_available()}

        assert available == {created[AgentStatus.ACTIVE], created[AgentStatus.AVAILABLE]}

    @pytest.mark.asyncio
    async def test_available_most_recently_active_first(self, agents, sample_agent_data):
        first = await agents.create_agent_by_admin(**sample_agent_data)
        second = await agents.create_agent_by_admin(
            **{**sample_agent_data, "email": "jane@example.com"}
        )

        assert [a.id for a in await agents.list_available()] == [second.id, first.id]

        # Touching the older agent moves it to the front
        await agents.update_status(first.id, AgentStatus.AVAILABLE)

        assert [a.id for a in await agents.list_available()] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_pending_queue_and_approval(self, agents, sample_agent_data):
        agent = await agents.create_agent(**sample_agent_data, password="s3cret-pass")
        assert [a.id for a in await agents.list_pending()] == [agent.id]
        assert await agents.list_available() == []

        approved = await agents.approve_agent(agent.id)

        assert approved.status == AgentStatus.ACTIVE
        assert await agents.list_pending() == []
        assert [a.id for a in await agents.list_available()] == [agent.id]


class TestStatusParsing:
    """Agent status strings from query parameters."""

    def test_case_insensitive(self):
        assert parse_agent_status("busy") == AgentStatus.BUSY
        assert parse_agent_status(" Pending_Approval ") == AgentStatus.PENDING_APPROVAL

    def test_unknown_value(self):
        with pytest.raises(InvalidStatusException) as exc_info:
            parse_agent_status("SLEEPING")
        assert "AVAILABLE" in exc_info.value.details["allowed"]


class TestDeletion:
    """Agent deletion rules."""

    @pytest.mark.asyncio
    async def test_delete_refused_with_active_delivery(
        self, agents, assignment, active_agent, pending_delivery
    ):
        await assignment.assign(pending_delivery.id, active_agent.id)

        with pytest.raises(HasActiveDeliveriesException):
            await agents.delete_agent(active_agent.id)

        assert await agents.get_agent(active_agent.id) is active_agent

    @pytest.mark.asyncio
    async def test_delete_detaches_historical_deliveries(
        self, agents, assignment, transitions, ledger, active_agent, pending_delivery
    ):
        await assignment.assign(pending_delivery.id, active_agent.id)
        await transitions.update_status(pending_delivery.id, DeliveryStatus.DELIVERED)

        await agents.delete_agent(active_agent.id)

        with pytest.raises(AgentNotFoundException):
            await agents.get_agent(active_agent.id)

        delivery = await ledger.get_delivery(pending_delivery.id)
        assert delivery.agent_id is None
        assert delivery.agent is None
        assert delivery.status == DeliveryStatus.DELIVERED

    @pytest.mark.asyncio
    async def test_delete_unknown_agent(self, agents):
        with pytest.raises(AgentNotFoundException):
            await agents.delete_agent(uuid4())
