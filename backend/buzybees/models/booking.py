"""
Booking Model
Confirmed bookings and their provider-driven lifecycle
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, EmailStr, ConfigDict

from buzybees.models.common import BaseDocument, generate_id, utc_now


class BookingStatus(str, Enum):
    """Booking lifecycle status"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
    BookingStatus.NO_SHOW,
})


class PriceBreakdown(BaseModel):
    """Derived price of a selection, all amounts in whole currency units"""
    subtotal: int
    discount_amount: int = 0
    discounted_subtotal: int
    tax_amount: int
    final_total: int
    has_discount: bool = False

    model_config = ConfigDict(frozen=True)


class CustomerInfo(BaseModel):
    """Who the booking is for"""
    name: str = "Customer"
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class BookedItem(BaseModel):
    """One selected item, frozen at confirmation time"""
    service_name: str
    item_key: str
    name: str
    price: int
    duration_minutes: int = 0


class StatusChange(BaseModel):
    """Entry in a booking's status history"""
    from_status: Optional[BookingStatus] = None
    to_status: BookingStatus
    at: datetime = Field(default_factory=utc_now)
    note: Optional[str] = None


class Booking(BaseDocument):
    """Booking document model"""
    booking_id: str = Field(default_factory=lambda: generate_id("bkg"))
    provider_id: str

    # Composition (frozen copy of the selection)
    selections: dict[str, list[str]]
    items: list[BookedItem] = Field(default_factory=list)
    staff_id: str
    discount_id: Optional[str] = None

    # Money
    price: PriceBreakdown
    amount: int

    # Schedule
    booking_date: Optional[date] = None
    start_time: Optional[str] = None  # HH:MM
    end_time: Optional[str] = None  # HH:MM (calculated)
    duration_minutes: int = 0

    customer: CustomerInfo = Field(default_factory=CustomerInfo)
    notes: Optional[str] = None

    # Status
    status: BookingStatus = BookingStatus.PENDING
    confirmed_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    status_history: list[StatusChange] = Field(default_factory=list)

    @property
    def revenue_date(self) -> date:
        """Date a completed booking counts towards revenue"""
        return self.booking_date or self.created_at.date()

    def with_status(self, status: BookingStatus, note: Optional[str] = None) -> "Booking":
        """Copy of this booking moved to a new status, with timestamps set"""
        now = utc_now()
        updated = self.model_copy(deep=True)
        updated.status_history.append(StatusChange(
            from_status=self.status,
            to_status=status,
            at=now,
            note=note
        ))
        updated.status = status
        updated.updated_at = now

        if status == BookingStatus.CONFIRMED:
            updated.confirmed_at = now
        elif status == BookingStatus.IN_PROGRESS:
            updated.started_at = now
        elif status == BookingStatus.COMPLETED:
            updated.completed_at = now
        elif status == BookingStatus.CANCELLED:
            updated.cancelled_at = now
            if note:
                updated.cancellation_reason = note
        return updated
