"""
Standardized exception handling.

Every business-rule failure is raised as an AppException subclass and
rendered as a JSON body:

    {"error": {"code", "message", "status_code", "timestamp",
               "request_id", "details"}}
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorDetail(BaseModel):
    """Standardized error response format."""
    code: str
    message: str
    status_code: int
    timestamp: str
    request_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Wrapper for error responses."""
    error: ErrorDetail


def _timestamp() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


# =============================================================================
# Base Exception Classes
# =============================================================================

class AppException(Exception):
    """Base exception for all application errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message or self.message
        self.details = details
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert exception to standardized error response."""
        return ErrorResponse(
            error=ErrorDetail(
                code=self.error_code,
                message=self.message,
                status_code=self.status_code,
                timestamp=_timestamp(),
                request_id=request_id,
                details=self.details,
            )
        )


class ValidationException(AppException):
    """Invalid input data."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"
    message = "Invalid input data"


class NotFoundException(AppException):
    """Resource not found."""
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    message = "Resource not found"


class ConflictException(AppException):
    """Resource conflict (duplicate, state conflict)."""
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    message = "Resource conflict"


# =============================================================================
# Domain-Specific Exceptions
# =============================================================================

class DeliveryNotFoundException(NotFoundException):
    """Delivery not found."""
    error_code = "DELIVERY_NOT_FOUND"
    message = "Delivery not found"

    def __init__(self, delivery_id: str):
        super().__init__(
            message=f"Delivery with ID '{delivery_id}' not found",
            details={"delivery_id": delivery_id}
        )


class DeliveryForOrderNotFoundException(NotFoundException):
    """No delivery exists for an order."""
    error_code = "DELIVERY_NOT_FOUND"

    def __init__(self, order_id: int):
        super().__init__(
            message=f"No delivery found for order {order_id}",
            details={"order_id": order_id}
        )


class AgentNotFoundException(NotFoundException):
    """Agent not found."""
    error_code = "AGENT_NOT_FOUND"
    message = "Agent not found"

    def __init__(self, agent_id: str):
        super().__init__(
            message=f"Agent with ID '{agent_id}' not found",
            details={"agent_id": agent_id}
        )


class DuplicateEmailException(ConflictException):
    """Agent email already registered."""
    error_code = "DUPLICATE_EMAIL"

    def __init__(self, email: str):
        super().__init__(
            message="Agent with this email already exists",
            details={"email": email}
        )


class AgentInactiveException(ValidationException):
    """Agent is administratively inactive."""
    error_code = "AGENT_INACTIVE"

    def __init__(self, agent_id: str):
        super().__init__(
            message="Agent is inactive and cannot be assigned deliveries",
            details={"agent_id": agent_id}
        )


class NoAvailableAgentsException(ConflictException):
    """Auto-assign found an empty agent pool."""
    error_code = "NO_AVAILABLE_AGENTS"
    message = "No available agents"


class HasActiveDeliveriesException(ConflictException):
    """Agent still holds in-flight deliveries."""
    error_code = "HAS_ACTIVE_DELIVERIES"

    def __init__(self, agent_id: str, active_count: int):
        super().__init__(
            message=(
                "Cannot delete agent with active deliveries. "
                "Please reassign or complete deliveries first."
            ),
            details={"agent_id": agent_id, "active_deliveries": active_count}
        )


class InvalidStatusException(ValidationException):
    """Unparseable status string."""
    error_code = "INVALID_STATUS"

    def __init__(self, value: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid status '{value}'",
            details={"status": value, "allowed": allowed}
        )


class TerminalStatusException(ConflictException):
    """Delivery already reached DELIVERED or CANCELLED."""
    error_code = "DELIVERY_TERMINAL"

    def __init__(self, delivery_id: str, current: str, requested: str):
        super().__init__(
            message=f"Delivery is already {current} and cannot change to {requested}",
            details={
                "delivery_id": delivery_id,
                "current_status": current,
                "requested_status": requested,
            }
        )


class InvalidInviteTokenException(ValidationException):
    """Invite token is malformed, expired or already used."""
    error_code = "INVALID_INVITE_TOKEN"
    message = "Invite token is invalid or expired"


# =============================================================================
# Exception Handler Registration
# =============================================================================

def get_request_id(request: Request) -> str:
    """Extract or generate request ID."""
    return (
        getattr(request.state, "request_id", None)
        or request.headers.get("X-Request-ID")
        or str(uuid4())
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle all application exceptions with standardized format."""
    request_id = get_request_id(request)
    response = exc.to_response(request_id=request_id)

    logger.info(
        f"{exc.error_code}: {exc.message} "
        f"({request.method} {request.url.path})"
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=response.model_dump(),
        headers={"X-Request-ID": request_id},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    request_id = get_request_id(request)

    logger.exception(f"Unhandled exception: {exc}", extra={"request_id": request_id})

    error = ErrorResponse(
        error=ErrorDetail(
            code="INTERNAL_ERROR",
            message="An unexpected error occurred",
            status_code=500,
            timestamp=_timestamp(),
            request_id=request_id,
        )
    )

    return JSONResponse(
        status_code=500,
        content=error.model_dump(),
        headers={"X-Request-ID": request_id},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
