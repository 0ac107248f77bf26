"""
Tests for exception handling and error responses.
"""
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from delivery_service.core.exceptions import (
    AgentInactiveException,
    AgentNotFoundException,
    AppException,
    ConflictException,
    DeliveryForOrderNotFoundException,
    DeliveryNotFoundException,
    DuplicateEmailException,
    HasActiveDeliveriesException,
    InvalidInviteTokenException,
    InvalidStatusException,
    NoAvailableAgentsException,
    NotFoundException,
    TerminalStatusException,
    ValidationException,
    register_exception_handlers,
)


class TestAppException:
    """Tests for base AppException class."""

    def test_default_values(self):
        exc = AppException()
        assert exc.status_code == 500
        assert exc.error_code == "INTERNAL_ERROR"
        assert exc.message == "An unexpected error occurred"
        assert exc.details is None

    def test_to_response(self):
        exc = AppException(message="Test error", details={"key": "value"})
        response = exc.to_response(request_id="test-req-123")

        assert response.error.code == "INTERNAL_ERROR"
        assert response.error.message == "Test error"
        assert response.error.status_code == 500
        assert response.error.request_id == "test-req-123"
        assert response.error.details == {"key": "value"}
        assert response.error.timestamp.endswith("Z")


class TestDomainExceptions:
    """Status codes and messages of domain errors."""

    @pytest.mark.parametrize(
        "exc, status_code, code",
        [
            (DeliveryNotFoundException("d-1"), 404, "DELIVERY_NOT_FOUND"),
            (DeliveryForOrderNotFoundException(7), 404, "DELIVERY_NOT_FOUND"),
            (AgentNotFoundException("a-1"), 404, "AGENT_NOT_FOUND"),
            (DuplicateEmailException("x@y"), 409, "DUPLICATE_EMAIL"),
            (AgentInactiveException("a-1"), 400, "AGENT_INACTIVE"),
            (NoAvailableAgentsException(), 409, "NO_AVAILABLE_AGENTS"),
            (HasActiveDeliveriesException("a-1", 2), 409, "HAS_ACTIVE_DELIVERIES"),
            (InvalidStatusException("LOST", ["PENDING"]), 400, "INVALID_STATUS"),
            (TerminalStatusException("d-1", "DELIVERED", "PENDING"), 409, "DELIVERY_TERMINAL"),
            (InvalidInviteTokenException(), 400, "INVALID_INVITE_TOKEN"),
        ],
    )
    def test_status_and_code(self, exc, status_code, code):
        assert exc.status_code == status_code
        assert exc.error_code == code

    def test_hierarchy(self):
        assert isinstance(AgentNotFoundException("a"), NotFoundException)
        assert isinstance(DuplicateEmailException("x@y"), ConflictException)
        assert isinstance(AgentInactiveException("a"), ValidationException)

    def test_messages(self):
        assert DuplicateEmailException("x@y").message == "Agent with this email already exists"
        assert NoAvailableAgentsException().message == "No available agents"
        assert HasActiveDeliveriesException("a", 2).details == {
            "agent_id": "a",
            "active_deliveries": 2,
        }


class TestExceptionHandlers:
    """Rendering through a FastAPI app."""

    def test_register_handlers(self):
        app = FastAPI()
        register_exception_handlers(app)

        assert AppException in app.exception_handlers
        assert Exception in app.exception_handlers

    @pytest.mark.asyncio
    async def test_app_exception_rendered_as_json(self):
        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/boom")
        async def boom():
            raise AgentNotFoundException("a-1")

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/boom", headers={"X-Request-ID": "req-1"})

        assert response.status_code == 404
        assert response.headers["X-Request-ID"] == "req-1"
        error = response.json()["error"]
        assert error["code"] == "AGENT_NOT_FOUND"
        assert error["request_id"] == "req-1"
        assert error["details"] == {"agent_id": "a-1"}

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_500(self):
        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/crash")
        async def crash():
            raise RuntimeError("kaboom")

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/crash")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "INTERNAL_ERROR"
        assert "kaboom" not in error["message"]
