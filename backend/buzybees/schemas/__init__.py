"""
API Request/Response Schemas
"""

from buzybees.schemas.bookings import (
    QuoteRequest,
    QuoteResponse,
    BookingCreateRequest,
    RejectRequest,
    StatusChangeRequest
)
from buzybees.schemas.common import (
    SingleResponse,
    ListResponse,
    MessageResponse,
    ErrorResponse,
    ErrorDetail
)

__all__ = [
    # Bookings
    "QuoteRequest",
    "QuoteResponse",
    "BookingCreateRequest",
    "RejectRequest",
    "StatusChangeRequest",
    # Common
    "SingleResponse",
    "ListResponse",
    "MessageResponse",
    "ErrorResponse",
    "ErrorDetail"
]
