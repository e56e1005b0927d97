"""
Staff Model
Team members who fulfil bookings
"""

from typing import Iterable, Optional
from pydantic import BaseModel, Field

from buzybees.models.common import generate_id

# Id of the synthetic "no staff preference" roster entry
ANY_STAFF_ID = "any"


class StaffMember(BaseModel):
    """Roster entry; only staff_id matters for eligibility"""
    staff_id: str = Field(default_factory=lambda: generate_id("stf"))
    name: str
    assigned_service_ids: list[str] = Field(default_factory=list)

    # Descriptive
    role: Optional[str] = None
    avatar_url: Optional[str] = None
    specialties: list[str] = Field(default_factory=list)

    @property
    def is_any(self) -> bool:
        """True for the "Any Available" sentinel"""
        return self.staff_id == ANY_STAFF_ID


def any_available_staff() -> StaffMember:
    """Build the sentinel member representing no staff preference"""
    return StaffMember(
        staff_id=ANY_STAFF_ID,
        name="Any Available",
        specialties=["All Services"]
    )


def build_roster(fetched: Iterable[StaffMember]) -> list[StaffMember]:
    """Sentinel first, followed by the fetched staff in their original order"""
    return [any_available_staff()] + [s for s in fetched if s.staff_id != ANY_STAFF_ID]
