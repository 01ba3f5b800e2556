"""
Custom exceptions and error handlers for consistent error responses.

Every failure leaves the service as ``{"error": ..., "error_code": ...,
"details": ...}`` so that consumers can show the message verbatim.
"""

import logging
from fastapi import Request, status
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class InvalidTransitionError(AppException):
    """Raised when a status change is not an edge of the transition table."""

    def __init__(self, current_status: str, requested_status: str):
        super().__init__(
            message=(
                f"Cannot change order status from {current_status} to {requested_status}. "
                "Orders can only progress forward or be cancelled."
            ),
            error_code="ERR_ORDER_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"currentStatus": current_status, "requestedStatus": requested_status}
        )


class MissingReasonError(AppException):
    """Raised when cancelling without a non-blank reason."""

    def __init__(self):
        super().__init__(
            message="Cancellation reason is required when canceling an order",
            error_code="ERR_ORDER_002",
            status_code=status.HTTP_400_BAD_REQUEST
        )


class OrderAlreadyAssignedError(AppException):
    """Raised when a second delivery agent tries to accept an order."""

    def __init__(self, order_id: int):
        super().__init__(
            message="Order is already assigned to another delivery agent",
            error_code="ERR_ORDER_003",
            status_code=status.HTTP_409_CONFLICT,
            details={"orderId": order_id}
        )


class AgentMismatchError(AppException):
    """Raised when an agent acts on an order assigned to someone else."""

    def __init__(self, message: str = "Order is not assigned to you"):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN
        )


class TrackingNotEnabledError(AppException):
    """Raised when a location sample arrives for an order without an agent."""

    def __init__(self, order_id: int, message: str = None):
        super().__init__(
            message=message or f"Location tracking is not enabled for order {order_id}",
            error_code="ERR_TRACKING_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"orderId": order_id}
        )


class LocationOutOfOrderError(AppException):
    """Raised when a GPS sample is older than the latest recorded one."""

    def __init__(self, order_id: int):
        super().__init__(
            message="Location timestamp is older than the latest recorded location",
            error_code="ERR_TRACKING_002",
            status_code=status.HTTP_409_CONFLICT,
            details={"orderId": order_id}
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "error_code": exc.error_code,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        404: "ERR_NOT_FOUND",
        405: "ERR_METHOD_NOT_ALLOWED",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "error_code": error_code,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    errors = exc.errors()
    message = "Validation error"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid {field}: {first.get('msg')}" if field else first.get("msg", message)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": message,
            "error_code": "ERR_VALIDATION",
            "details": {
                "errors": [
                    {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                    for e in errors
                ]
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s: %s", type(exc).__name__, exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "An internal server error occurred",
            "error_code": "ERR_INTERNAL_SERVER",
            "details": {}
        }
    )
