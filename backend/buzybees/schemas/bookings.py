"""
Booking request/response schemas
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from buzybees.models.booking import BookingStatus, CustomerInfo, PriceBreakdown
from buzybees.models.staff import StaffMember


class SelectionPayload(BaseModel):
    """Selected item keys per service name"""
    selections: dict[str, list[str]] = Field(default_factory=dict)
    discount_id: Optional[str] = None

    @field_validator("selections")
    @classmethod
    def drop_empty_services(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        return {name: keys for name, keys in value.items() if keys}


class QuoteRequest(SelectionPayload):
    """Price and staff lookup for a selection"""


class QuoteResponse(BaseModel):
    """Priced selection with the staff able to take it"""
    price: PriceBreakdown
    duration_minutes: int
    eligible_staff: list[StaffMember]


class BookingCreateRequest(SelectionPayload):
    """Confirm a priced selection as a pending booking"""
    staff_id: Optional[str] = None
    customer: Optional[CustomerInfo] = None
    booking_date: Optional[date] = None
    start_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    notes: Optional[str] = Field(None, max_length=1000)


class RejectRequest(BaseModel):
    """Provider declining a pending booking"""
    reason: Optional[str] = Field(None, max_length=500)


class StatusChangeRequest(BaseModel):
    """Status change reported by another actor"""
    status: BookingStatus
    note: Optional[str] = Field(None, max_length=500)
