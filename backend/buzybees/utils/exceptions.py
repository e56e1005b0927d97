"""
Custom Exceptions and Error Handling
Booking engine error taxonomy and the FastAPI handlers that render it
"""

from enum import Enum
from typing import Optional
from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from fastapi import Request
from pydantic import ValidationError as PydanticValidationError
import logging

logger = logging.getLogger(__name__)


class BookingEngineException(Exception):
    """Base exception for the booking engine"""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[dict] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_response(self) -> dict:
        """Convert to API response format"""
        response = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message
            }
        }
        if self.details:
            response["error"]["details"] = self.details
        return response


class ValidationError(BookingEngineException):
    """Input refused before any state was touched"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"field": field} if field else None
        )
        self.field = field


class CatalogMismatchError(BookingEngineException):
    """Selection references a service or option missing from the loaded catalog"""

    def __init__(self, service_name: str, item_key: Optional[str] = None):
        if item_key:
            message = f"Option '{item_key}' is not available for service '{service_name}'"
        else:
            message = f"Service '{service_name}' not found in catalog"
        super().__init__(
            code="CATALOG_MISMATCH",
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details={"service_name": service_name, "item_key": item_key}
        )
        self.service_name = service_name
        self.item_key = item_key


class TransitionRejection(str, Enum):
    """Why no transition was available"""
    NOT_FOUND = "not_found"
    WRONG_STATE = "wrong_state"
    IN_FLIGHT = "in_flight"


class InvalidTransitionError(BookingEngineException):
    """Status transition not permitted for the booking"""

    def __init__(
        self,
        booking_id: str,
        reason: TransitionRejection,
        action: Optional[str] = None,
        current_status: Optional[str] = None
    ):
        if reason == TransitionRejection.NOT_FOUND:
            message = f"Booking '{booking_id}' not found"
        elif reason == TransitionRejection.IN_FLIGHT:
            message = f"Booking '{booking_id}' is already being processed"
        else:
            message = f"Cannot {action or 'transition'} booking '{booking_id}' from status '{current_status}'"
        super().__init__(
            code="INVALID_TRANSITION",
            message=message,
            status_code=(
                status.HTTP_404_NOT_FOUND
                if reason == TransitionRejection.NOT_FOUND
                else status.HTTP_409_CONFLICT
            ),
            details={
                "booking_id": booking_id,
                "reason": reason.value,
                "action": action,
                "current_status": current_status
            }
        )
        self.booking_id = booking_id
        self.reason = reason
        self.action = action
        self.current_status = current_status


class ExternalStoreError(BookingEngineException):
    """Failure surfaced by the persistence or delivery collaborator"""

    def __init__(self, operation: str, message: str = ""):
        super().__init__(
            code="EXTERNAL_STORE_ERROR",
            message=message or f"External store failed during {operation}",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"operation": operation}
        )
        self.operation = operation


# Exception Handlers for FastAPI
async def booking_engine_exception_handler(request: Request, exc: BookingEngineException) -> JSONResponse:
    """Handle booking engine exceptions"""
    if isinstance(exc, ExternalStoreError):
        logger.error(f"Booking engine exception: {exc.code} - {exc.message}", exc_info=exc.__cause__)
    else:
        logger.warning(f"Booking engine exception: {exc.code} - {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response()
    )


async def validation_exception_handler(request: Request, exc: PydanticValidationError) -> JSONResponse:
    """Handle Pydantic validation errors"""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Input validation failed",
                "details": {"errors": errors}
            }
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions"""
    detail = exc.detail
    if isinstance(detail, dict):
        code = detail.get("code", "HTTP_ERROR")
        message = detail.get("message", str(detail))
    else:
        code = "HTTP_ERROR"
        message = str(detail)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": {
                "code": code,
                "message": message
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions"""
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app"""
    from fastapi.exceptions import RequestValidationError

    app.add_exception_handler(BookingEngineException, booking_engine_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
