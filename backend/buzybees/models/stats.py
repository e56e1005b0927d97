"""
Queue Stats Model
Aggregate view over a provider's booking collection
"""

from datetime import date
from pydantic import BaseModel, Field, model_validator

from buzybees.models.booking import BookingStatus


def _zero_counts() -> dict[BookingStatus, int]:
    return {s: 0 for s in BookingStatus}


class QueueStats(BaseModel):
    """Per-status counts and completed revenue"""
    counts: dict[BookingStatus, int] = Field(default_factory=_zero_counts)
    total_bookings: int = 0
    today_revenue: int = 0
    weekly_revenue: int = 0
    as_of: date

    @model_validator(mode="after")
    def fill_counts(self) -> "QueueStats":
        for s in BookingStatus:
            self.counts.setdefault(s, 0)
        return self

    @property
    def pending_count(self) -> int:
        return self.counts[BookingStatus.PENDING]

    @property
    def confirmed_count(self) -> int:
        return self.counts[BookingStatus.CONFIRMED]

    @property
    def completed_count(self) -> int:
        return self.counts[BookingStatus.COMPLETED]

    @property
    def cancelled_count(self) -> int:
        return self.counts[BookingStatus.CANCELLED]
